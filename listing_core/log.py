from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def log_action(
    logger: logging.Logger,
    *,
    list_id: str | None,
    endpoint: str,
    action: str,
    outcome: str,
    page: int | None = None,
    duration_ms: int | None = None,
    error_code: str | None = None,
    level: int = logging.INFO,
) -> None:
    payload: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": logging.getLevelName(level),
        "list_id": list_id,
        "endpoint": endpoint,
        "action": action,
        "page": page,
        "outcome": outcome,
    }
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    if error_code is not None:
        payload["error_code"] = error_code
    logger.log(level, json.dumps(payload, default=str))
