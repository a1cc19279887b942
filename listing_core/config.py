from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_STATE_DIR = Path.home() / ".listing_core" / "state"
SORT_ORDERS = {"asc", "desc"}


@dataclass(frozen=True)
class ListingSettings:
    debounce_ms: int = 500
    default_per_page: int = 25
    default_sort_order: str = "desc"
    state_dir: Path = DEFAULT_STATE_DIR
    http_timeout_seconds: float = 15.0

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


def load_settings(env_file: str | None = None) -> ListingSettings:
    """Load listing defaults from the environment with optional .env override."""
    load_dotenv(env_file)

    debounce_ms = _read_int("LISTING_DEBOUNCE_MS", "500")
    _validate(debounce_ms >= 0, f"Invalid LISTING_DEBOUNCE_MS: expected >= 0, got {debounce_ms}")

    default_per_page = _read_int("LISTING_DEFAULT_PER_PAGE", "25")
    _validate(
        default_per_page >= 1,
        f"Invalid LISTING_DEFAULT_PER_PAGE: expected >= 1, got {default_per_page}",
    )

    default_sort_order = (os.getenv("LISTING_DEFAULT_SORT_ORDER") or "desc").strip().lower()
    _validate(
        default_sort_order in SORT_ORDERS,
        f"Invalid LISTING_DEFAULT_SORT_ORDER: expected asc or desc, got {default_sort_order!r}",
    )

    http_timeout_seconds = _read_float("LISTING_HTTP_TIMEOUT_SECONDS", "15")
    _validate(
        http_timeout_seconds > 0,
        f"Invalid LISTING_HTTP_TIMEOUT_SECONDS: expected > 0, got {http_timeout_seconds}",
    )

    configured_dir = (os.getenv("LISTING_STATE_DIR") or "").strip()
    state_dir = Path(configured_dir).expanduser() if configured_dir else DEFAULT_STATE_DIR

    return ListingSettings(
        debounce_ms=debounce_ms,
        default_per_page=default_per_page,
        default_sort_order=default_sort_order,
        state_dir=state_dir,
        http_timeout_seconds=http_timeout_seconds,
    )
