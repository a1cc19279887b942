from __future__ import annotations

import json
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .errors import PersistenceReadFailure
from .models import SAVED_FIELDS

KEY_PREFIX = "listing"


def state_key(endpoint: str, version: Any) -> str:
    return f"{KEY_PREFIX}--{endpoint}--{version}"


def same_endpoint(key: str, endpoint: str) -> bool:
    """True when ``key`` is a state key of ``endpoint`` for any version."""
    head, separator, _version = key.rpartition("--")
    return bool(separator) and head == f"{KEY_PREFIX}--{endpoint}"


def saved_fields(context: Mapping[str, Any]) -> dict[str, Any]:
    return {name: context.get(name) for name in SAVED_FIELDS}


class InMemoryStateStore:
    def __init__(self) -> None:
        self.entries: dict[str, dict[str, Any]] = {}

    def init(self, context: Mapping[str, Any]) -> None:
        latest = state_key(context["endpoint"], context["version"])
        stale_keys = [key for key in self.entries if same_endpoint(key, context["endpoint"]) and key != latest]
        for key in stale_keys:
            self.entries.pop(key, None)

    def get(self, context: Mapping[str, Any]) -> dict[str, Any] | None:
        entry = self.entries.get(state_key(context["endpoint"], context["version"]))
        return dict(entry) if entry is not None else None

    def set(self, context: Mapping[str, Any]) -> None:
        self.entries[state_key(context["endpoint"], context["version"])] = json.loads(
            json.dumps(saved_fields(context), default=str)
        )


class JsonFileStateStore:
    """One JSON document per endpoint/version under ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    @staticmethod
    def _safe(text: str) -> str:
        return re.sub(r"[^A-Za-z0-9._-]+", "_", text)

    def _path(self, key: str) -> Path:
        return self.directory / f"{self._safe(key)}.json"

    def init(self, context: Mapping[str, Any]) -> None:
        if not self.directory.exists():
            return
        endpoint = self._safe(str(context["endpoint"]))
        latest = self._path(state_key(context["endpoint"], context["version"]))
        for path in self.directory.glob("*.json"):
            if same_endpoint(path.stem, endpoint) and path != latest:
                path.unlink()

    def get(self, context: Mapping[str, Any]) -> dict[str, Any] | None:
        path = self._path(state_key(context["endpoint"], context["version"]))
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (ValueError, OSError) as exc:
            raise PersistenceReadFailure(f"Unreadable list state at {path}") from exc
        if not isinstance(payload, dict):
            raise PersistenceReadFailure(f"List state at {path} is not an object")
        return payload

    def set(self, context: Mapping[str, Any]) -> None:
        path = self._path(state_key(context["endpoint"], context["version"]))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(saved_fields(context), ensure_ascii=False, indent=2, default=str), encoding="utf-8")

    def clear(self) -> None:
        if not self.directory.exists():
            return
        for path in self.directory.glob(f"{KEY_PREFIX}--*.json"):
            path.unlink()
