from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from .errors import RequestFailure
from .log import get_logger

logger = get_logger(__name__)


class SearchDebouncer:
    """Buffers search keystrokes and forwards only the last one after ``delay_ms``."""

    def __init__(
        self,
        target: Callable[[str], Awaitable[Any]],
        *,
        delay_ms: int = 500,
        initial: str = "",
    ) -> None:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        self._target = target
        self.delay_ms = delay_ms
        self.value = initial
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._disposed = False

    @property
    def pending(self) -> bool:
        return self._timer is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def input(self, value: str) -> None:
        if self._disposed:
            raise RuntimeError("SearchDebouncer used after dispose()")
        self.value = value
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay_ms / 1000, self._fire)

    def sync(self, value: str | None) -> None:
        """Adopt a search value that changed outside this debouncer."""
        if self._timer is None and value != self.value:
            self.value = value or ""

    async def flush(self) -> None:
        if self._timer is None:
            return
        self._cancel_timer()
        await self._target(self.value)

    def cancel(self) -> None:
        self._cancel_timer()

    def dispose(self) -> None:
        self._cancel_timer()
        self._disposed = True

    async def drain(self) -> None:
        """Wait for searches already handed to the target."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        if self._disposed:
            return
        task = asyncio.ensure_future(self._target(self.value))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return
        if isinstance(error, RequestFailure):
            logger.warning("debounced search failed: %s", error)
        else:
            logger.error("debounced search raised", exc_info=error)
