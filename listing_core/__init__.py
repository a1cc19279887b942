from .config import ListingSettings, load_settings
from .controller import ListController
from .debounce import SearchDebouncer
from .equality import deep_equal, diff_fields, has_active_filters
from .errors import ConfigurationError, ListingError, PersistenceReadFailure, RequestFailure
from .models import ListConfiguration, ListState, PageResult, PaginationMode, SavedListState
from .pagination import (
    PageWindow,
    Summary,
    go_to_pages,
    page_window,
    pages_to_display,
    serialize_per_page_options,
    summary,
)
from .persistence import InMemoryStateStore, JsonFileStateStore
from .provider import ListProvider
from .registry import ListRegistry
from .view import AttrDescriptor, ListView, serialize_attrs

__all__ = [
    "AttrDescriptor",
    "ConfigurationError",
    "InMemoryStateStore",
    "JsonFileStateStore",
    "ListConfiguration",
    "ListController",
    "ListProvider",
    "ListRegistry",
    "ListState",
    "ListView",
    "ListingError",
    "ListingSettings",
    "PageResult",
    "PageWindow",
    "PaginationMode",
    "PersistenceReadFailure",
    "RequestFailure",
    "SavedListState",
    "SearchDebouncer",
    "Summary",
    "deep_equal",
    "diff_fields",
    "go_to_pages",
    "has_active_filters",
    "load_settings",
    "page_window",
    "pages_to_display",
    "serialize_attrs",
    "serialize_per_page_options",
    "summary",
]
