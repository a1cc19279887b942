from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PageWindow:
    page: int
    per_page: int
    count: int
    pages_count: int
    has_next: bool
    has_prev: bool
    pages_to_display: tuple[int, ...]


@dataclass(frozen=True)
class Summary:
    from_: int
    to: int
    visible_count: int
    count: int


def pages_count(count: int, per_page: int) -> int:
    if per_page <= 0:
        return 0
    return math.ceil(count / per_page)


def display_range(page: int | None, per_page: int, count: int) -> tuple[int, int]:
    if not page or count <= 0:
        return 0, 0
    start = (page - 1) * per_page + 1
    return start, min(page * per_page, count)


def pages_to_display(page: int, total_pages: int, page_links: int = 5) -> tuple[int, ...]:
    """Sliding window of at most ``page_links`` page numbers around ``page``."""
    size = min(page_links, total_pages)
    if size <= 0:
        return ()
    half_way = page_links // 2
    if page <= half_way:
        return tuple(range(1, size + 1))
    if total_pages - page < half_way:
        return tuple(range(total_pages - size + 1, total_pages + 1))
    start = page - half_way
    return tuple(range(start, start + size))


def page_window(page: int | None, per_page: int, count: int, page_links: int = 5) -> PageWindow:
    current = page or 1
    total = pages_count(count, per_page)
    return PageWindow(
        page=current,
        per_page=per_page,
        count=count,
        pages_count=total,
        has_next=current * per_page < count,
        has_prev=current != 1,
        pages_to_display=pages_to_display(current, total, page_links),
    )


def go_to_pages(count: int, per_page: int) -> list[int]:
    return list(range(1, pages_count(count, per_page) + 1))


def summary(page: int | None, per_page: int, count: int, visible_count: int) -> Summary:
    start, end = display_range(page, per_page, count)
    return Summary(from_=start, to=end, visible_count=visible_count, count=count)


def serialize_per_page_options(options: Sequence[int | Mapping[str, Any]] = (10, 25, 50, 100)) -> list[dict[str, Any]]:
    serialized: list[dict[str, Any]] = []
    for option in options:
        if isinstance(option, Mapping):
            serialized.append(dict(option))
        else:
            serialized.append({"value": option, "label": str(option)})
    return serialized
