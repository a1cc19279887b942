from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import Any, Protocol


class RequestPort(Protocol):
    def __call__(self, query: Mapping[str, Any]) -> Awaitable[Any]: ...


class PersistencePort(Protocol):
    def init(self, context: Mapping[str, Any]) -> None: ...

    def get(self, context: Mapping[str, Any]) -> Mapping[str, Any] | None: ...

    def set(self, context: Mapping[str, Any]) -> None: ...
