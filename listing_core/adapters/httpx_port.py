from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from ..errors import RequestFailure

SKIPPED_QUERY_KEYS = {"endpoint", "version", "meta", "filters", "is_refresh"}


def _extract_trace_id(response: httpx.Response, payload: Any) -> str | None:
    if isinstance(payload, dict) and payload.get("trace_id"):
        return str(payload["trace_id"])
    return response.headers.get("X-Trace-ID") or response.headers.get("X-Trace-Id")


def failure_from_response(response: httpx.Response) -> RequestFailure:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    trace_id = _extract_trace_id(response, payload)
    if isinstance(payload, dict):
        return RequestFailure(
            code=str(payload.get("code") or "HTTP_ERROR"),
            message=str(payload.get("message") or response.text or "HTTP request failed"),
            details=payload.get("details"),
            trace_id=trace_id,
            status_code=response.status_code,
        )
    return RequestFailure(
        code="HTTP_ERROR",
        message=response.text or "HTTP request failed",
        details=payload,
        trace_id=trace_id,
        status_code=response.status_code,
    )


def build_params(query: Mapping[str, Any]) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for key, value in query.items():
        if key in SKIPPED_QUERY_KEYS or value in (None, ""):
            continue
        params[key] = value
    for key, value in (query.get("filters") or {}).items():
        if value in (None, ""):
            continue
        params[f"filter[{key}]"] = value
    return params


class HttpxRequestPort:
    """Request port that GETs ``<base_url>/<endpoint>`` and reads ``{items, count}``."""

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 15.0,
        headers: Mapping[str, str] | None = None,
        items_key: str = "items",
        count_key: str = "count",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.items_key = items_key
        self.count_key = count_key
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds, headers=dict(headers or {}))
        self._owns_client = client is None

    async def __call__(self, query: Mapping[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/{str(query['endpoint']).lstrip('/')}"
        try:
            response = await self._client.get(url, params=build_params(query))
        except httpx.TimeoutException as exc:
            raise RequestFailure(code="TIMEOUT_ERROR", message="The list request timed out.") from exc
        except httpx.TransportError as exc:
            raise RequestFailure(code="NETWORK_ERROR", message=str(exc) or "The API is not reachable.") from exc

        if response.status_code >= 400:
            raise failure_from_response(response)
        try:
            payload = response.json()
        except ValueError as exc:
            raise RequestFailure(
                code="INVALID_RESPONSE",
                message="The list endpoint did not return JSON.",
                status_code=response.status_code,
            ) from exc
        if isinstance(payload, list):
            return {"items": payload, "count": len(payload)}
        if not isinstance(payload, dict):
            raise RequestFailure(
                code="INVALID_RESPONSE",
                message="The list endpoint returned an unexpected payload.",
                status_code=response.status_code,
            )
        return {
            **payload,
            "items": payload.get(self.items_key),
            "count": payload.get(self.count_key),
        }

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
