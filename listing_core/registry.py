from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .log import get_logger

RefreshCallback = Callable[[Mapping[str, Any] | None], Awaitable[Any]]

logger = get_logger(__name__)


class ListRegistry:
    """Maps list ids to their refresh handlers for out-of-band refreshes."""

    def __init__(self) -> None:
        self._callbacks: dict[str, RefreshCallback] = {}

    def __contains__(self, list_id: object) -> bool:
        return list_id in self._callbacks

    def __len__(self) -> int:
        return len(self._callbacks)

    def register(self, list_id: str, refresh: RefreshCallback) -> None:
        self._callbacks[list_id] = refresh

    def unregister(self, list_id: str, refresh: RefreshCallback | None = None) -> None:
        current = self._callbacks.get(list_id)
        if current is None:
            return
        # a remounted list may already own the id
        if refresh is not None and current != refresh:
            return
        self._callbacks.pop(list_id, None)

    async def refresh_list(self, list_id: str | None = None, options: Mapping[str, Any] | None = None) -> None:
        if list_id is not None:
            refresh = self._callbacks.get(list_id)
            if refresh is not None:
                await refresh(options)
            return

        targets = list(self._callbacks.items())
        results = await asyncio.gather(*(refresh(options) for _, refresh in targets), return_exceptions=True)
        failures: list[BaseException] = []
        for (target_id, _), result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning("refresh of list %s failed: %s", target_id, result)
                failures.append(result)
        if failures:
            raise failures[0]

    def list_info(self) -> dict[str, Any]:
        return {"registered_lists": list(self._callbacks), "total_lists": len(self._callbacks)}
