from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .equality import has_active_filters
from .errors import RequestFailure
from .models import ListConfiguration, ListState
from .pagination import display_range, pages_count


@dataclass(frozen=True)
class AttrDescriptor:
    name: str
    label: str
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {**self.extra, "name": self.name, "label": self.label}


def known_attr_names(attrs: Sequence[str | Mapping[str, Any]] | None, items: Sequence[Mapping[str, Any]]) -> list[str]:
    return [descriptor.name for descriptor in serialize_attrs(attrs, items)]


def serialize_attrs(
    attrs: Sequence[str | Mapping[str, Any]] | None,
    items: Sequence[Mapping[str, Any]],
) -> tuple[AttrDescriptor, ...]:
    source: Sequence[str | Mapping[str, Any]] = attrs if attrs is not None else list(items[0].keys()) if items else []
    serialized: list[AttrDescriptor] = []
    for attr in source:
        if isinstance(attr, Mapping):
            name = str(attr["name"])
            extra = {key: value for key, value in attr.items() if key not in {"name", "label"}}
            serialized.append(AttrDescriptor(name=name, label=str(attr.get("label") or name), extra=MappingProxyType(extra)))
        else:
            serialized.append(AttrDescriptor(name=str(attr), label=str(attr)))
    return tuple(serialized)


@dataclass(frozen=True)
class ListView:
    """Immutable snapshot published to presentation observers."""

    version: int
    items: tuple[Mapping[str, Any], ...]
    response: Any
    error: Exception | None
    error_payload: Mapping[str, Any] | None
    count: int
    selection: frozenset[Any]
    page: int | None
    per_page: int
    sort_by: str
    sort_order: str
    search: str
    filters: Mapping[str, Any]
    attrs: tuple[str, ...]
    serialized_attrs: tuple[AttrDescriptor, ...]
    attr_settings: Mapping[str, Mapping[str, Any]]
    is_loading: bool
    is_initializing: bool
    has_more: bool
    from_: int
    to: int
    pages_count: int
    has_next: bool
    has_prev: bool
    has_active_filters: bool
    context: Mapping[str, Any]

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def is_initial_loading(self) -> bool:
        return self.is_loading and self.is_initializing

    @property
    def visible_count(self) -> int:
        return len(self.items)

    def is_visible(self, attr_name: str) -> bool:
        return bool(self.attr_settings.get(attr_name, {}).get("visible", False))


def build_view(state: ListState, config: ListConfiguration, context: Mapping[str, Any], version: int) -> ListView:
    serialized = serialize_attrs(config.attrs, state.items)
    start, end = display_range(state.page, state.per_page, state.count)
    current_page = state.page or 1
    return ListView(
        version=version,
        items=tuple(dict(item) for item in state.items),
        response=state.response,
        error=state.error,
        error_payload=MappingProxyType(RequestFailure.wrap(state.error).to_payload()) if state.error is not None else None,
        count=state.count,
        selection=frozenset(state.selection),
        page=state.page,
        per_page=state.per_page,
        sort_by=state.sort_by,
        sort_order=state.sort_order,
        search=state.search,
        filters=MappingProxyType(dict(state.filters)),
        attrs=tuple(descriptor.name for descriptor in serialized),
        serialized_attrs=serialized,
        attr_settings=MappingProxyType({name: MappingProxyType(dict(setting)) for name, setting in state.attr_settings.items()}),
        is_loading=state.is_loading,
        is_initializing=state.is_initializing,
        has_more=len(state.items) < state.count,
        from_=start,
        to=end,
        pages_count=pages_count(state.count, state.per_page),
        has_next=current_page * state.per_page < state.count,
        has_prev=current_page != 1,
        has_active_filters=has_active_filters(state.filters, config.filters),
        context=MappingProxyType(dict(context)),
    )
