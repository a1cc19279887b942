from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError

QUERY_FIELDS = ("page", "per_page", "sort_by", "sort_order", "search", "filters")
SAVED_FIELDS = QUERY_FIELDS + ("attr_settings",)


class PaginationMode(str, Enum):
    PAGE_REPLACE = "page-replace"
    LOAD_MORE = "load-more"


@dataclass(frozen=True)
class ListConfiguration:
    endpoint: str
    version: int = 1
    page: int = 1
    per_page: int = 25
    sort_by: str = ""
    sort_order: str = "desc"
    search: str = ""
    filters: Mapping[str, Any] = field(default_factory=dict)
    attrs: Sequence[str | Mapping[str, Any]] | None = None
    pagination_mode: PaginationMode = PaginationMode.PAGE_REPLACE
    list_id: str | None = None
    meta: Mapping[str, Any] = field(default_factory=dict)
    id_key: str = "id"

    def __post_init__(self) -> None:
        try:
            mode = PaginationMode(self.pagination_mode)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown pagination mode: {self.pagination_mode!r}") from exc
        object.__setattr__(self, "pagination_mode", mode)
        self.validate()

    @property
    def is_load_more(self) -> bool:
        return self.pagination_mode is PaginationMode.LOAD_MORE

    def validate(self) -> None:
        if not self.endpoint or not str(self.endpoint).strip():
            raise ConfigurationError("ListConfiguration.endpoint cannot be empty")
        if self.page < 1:
            raise ConfigurationError(f"ListConfiguration.page must be >= 1, got {self.page}")
        if self.per_page < 1:
            raise ConfigurationError(f"ListConfiguration.per_page must be >= 1, got {self.per_page}")


@dataclass
class ListState:
    page: int | None
    per_page: int
    sort_by: str
    sort_order: str
    search: str
    filters: dict[str, Any]
    attr_settings: dict[str, dict[str, Any]] = field(default_factory=dict)
    items: list[dict[str, Any]] = field(default_factory=list)
    count: int = 0
    selection: frozenset[Any] = frozenset()
    error: Exception | None = None
    is_loading: bool = False
    is_initializing: bool = True
    response: Any = None

    @classmethod
    def from_configuration(cls, config: ListConfiguration) -> "ListState":
        return cls(
            page=config.page,
            per_page=config.per_page,
            sort_by=config.sort_by,
            sort_order=config.sort_order,
            search=config.search,
            filters=dict(config.filters),
        )


class PageResult(BaseModel):
    """Normalized request port result."""

    model_config = ConfigDict(extra="allow")

    items: list[dict[str, Any]]
    count: int = Field(ge=0)


class SavedListState(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page: Optional[int] = Field(default=None, ge=1)
    per_page: Optional[int] = Field(default=None, ge=1)
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    search: Optional[str] = None
    filters: Optional[dict[str, Any]] = None
    attr_settings: Optional[dict[str, dict[str, Any]]] = None

    def overrides(self) -> dict[str, Any]:
        return {key: value for key, value in self.model_dump().items() if value is not None}
