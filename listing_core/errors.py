from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ListingError(Exception):
    """Base class for every failure raised by listing_core."""


class ConfigurationError(ListingError, ValueError):
    pass


class PersistenceReadFailure(ListingError):
    """A saved list snapshot could not be read; callers treat it as a cache miss."""


@dataclass
class RequestFailure(ListingError):
    code: str
    message: str
    details: dict[str, Any] | list[Any] | str | None = None
    trace_id: str | None = None
    status_code: int | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"{self.code}: {self.message}{trace}"

    @classmethod
    def wrap(cls, error: BaseException) -> "RequestFailure":
        if isinstance(error, RequestFailure):
            return error
        return cls(
            code="REQUEST_FAILED",
            message=str(error) or type(error).__name__,
            details={"type": type(error).__name__},
        )

    @property
    def retryable(self) -> bool:
        """Whether re-running the same query through ``refresh`` can succeed."""
        if self.status_code is not None:
            return self.status_code >= 500 or self.status_code in RETRYABLE_STATUSES
        return self.code in RETRYABLE_CODES

    def to_payload(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "summary": FAILURE_SUMMARIES.get(self.code, self.message),
            "details": self.details,
            "trace_id": self.trace_id,
            "status_code": self.status_code,
            "retryable": self.retryable,
        }


RETRYABLE_CODES = frozenset({"TIMEOUT_ERROR", "NETWORK_ERROR", "REQUEST_FAILED"})
RETRYABLE_STATUSES = frozenset({408, 429})

# codes produced by the controller and the bundled httpx port
FAILURE_SUMMARIES = {
    "INVALID_RESPONSE": "The list source answered without items and a count.",
    "REQUEST_FAILED": "The request handler raised while loading the list.",
    "TIMEOUT_ERROR": "Loading the list timed out.",
    "NETWORK_ERROR": "The list endpoint could not be reached.",
    "HTTP_ERROR": "The list endpoint answered with an error status.",
}
