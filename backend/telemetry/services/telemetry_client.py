from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.errors import TelemetryAPIError, TransportError
from ..schemas.records import (
    EmitResponse,
    ErrorsResponse,
    ErrorSummary,
    EventsResponse,
    OutgoingEvent,
    SemanticEventsResponse,
    TagsResponse,
    TracesResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_ERRORS_LIMIT = 100


def _build_params(**values: Any) -> Dict[str, str]:
    return {key: str(value) for key, value in values.items() if value is not None and value != ""}


class TelemetryClient:
    """Async client for the remote telemetry service.

    Every request opens its own ``httpx.AsyncClient``; nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        timeout = httpx.Timeout(self.timeout_seconds)
        logger.debug("Telemetry request %s %s params=%s", method, path, params)
        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    params=params or None,
                    json=body,
                )
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to reach telemetry service: {exc}") from exc

        if response.is_error:
            message = response.text
            try:
                payload = response.json()
            except json.JSONDecodeError:
                payload = None
            if isinstance(payload, dict):
                message = payload.get("error") or payload.get("message") or message
            raise TelemetryAPIError(
                f"API error ({response.status_code}): {message}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            raise TelemetryAPIError(
                f"Invalid JSON from telemetry service: {exc}",
                status_code=response.status_code,
            ) from exc

        # Some deployments wrap payloads as {"success": ..., "data": ...}.
        if isinstance(data, dict) and "success" in data:
            if not data["success"]:
                raise TelemetryAPIError(data.get("error") or "Unknown error", status_code=response.status_code)
            return data.get("data")
        return data

    async def get_events(
        self,
        *,
        since: Optional[str] = None,
        until: Optional[str] = None,
        channel: Optional[str] = None,
        model: Optional[str] = None,
        status: Optional[str] = None,
        session: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> EventsResponse:
        params = _build_params(
            start=since,
            end=until,
            channel=channel,
            model=model,
            status=status,
            session_id=session,
            search=search,
            limit=limit,
            offset=offset,
        )
        data = await self._request("GET", "/v1/events", params=params)
        return EventsResponse.model_validate(data or {})

    async def get_traces(
        self,
        *,
        since: Optional[str] = None,
        until: Optional[str] = None,
        channel: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> TracesResponse:
        params = _build_params(
            start=since,
            end=until,
            channel=channel,
            status=status,
            limit=limit,
            offset=offset,
        )
        data = await self._request("GET", "/v1/traces", params=params)
        return TracesResponse.model_validate(data or {})

    async def get_errors(
        self,
        *,
        since: Optional[str] = None,
        until: Optional[str] = None,
        channel: Optional[str] = None,
        error_type: Optional[str] = None,
        trace_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> ErrorsResponse:
        """Fetch one page of errors.

        ``/v1/errors`` only understands a time range and a row limit, so the
        page is over-fetched, filtered and sliced here. ``summary.total`` is
        the page length, not a total across pages.
        """
        page_offset = offset or 0
        requested_limit = limit or DEFAULT_ERRORS_LIMIT
        params = _build_params(start=since, end=until, limit=requested_limit + page_offset)
        data = await self._request("GET", "/v1/errors", params=params)
        raw = ErrorsResponse.model_validate(data or {})

        filtered = raw.errors
        if channel:
            filtered = [item for item in filtered if item.channel == channel]
        if error_type:
            filtered = [item for item in filtered if item.error_type == error_type]
        if trace_id:
            filtered = [item for item in filtered if item.trace_id == trace_id]

        page = filtered[page_offset : page_offset + requested_limit]
        by_type: Dict[str, int] = {}
        for item in page:
            by_type[item.error_type] = by_type.get(item.error_type, 0) + 1
        return ErrorsResponse(errors=page, summary=ErrorSummary(total=len(page), by_type=by_type))

    async def get_semantic_events(
        self,
        *,
        since: Optional[str] = None,
        until: Optional[str] = None,
        source: Optional[str] = None,
        type: Optional[str] = None,
        agent: Optional[str] = None,
        severity: Optional[str] = None,
        name: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> SemanticEventsResponse:
        params = _build_params(
            start=since,
            end=until,
            source=source,
            type=type,
            agent_id=agent,
            severity=severity,
            name=name,
            limit=limit or None,
            offset=offset or None,
        )
        data = await self._request("GET", "/v1/semantic-events", params=params)
        return SemanticEventsResponse.model_validate(data or {})

    async def get_tags(self, since: Optional[str] = None, limit: Optional[int] = None) -> TagsResponse:
        params = _build_params(since=since, limit=limit or None)
        data = await self._request("GET", "/v1/tags", params=params)
        return TagsResponse.model_validate(data or {})

    async def emit(self, events: List[OutgoingEvent]) -> EmitResponse:
        body = {"events": [event.model_dump(exclude_none=True) for event in events]}
        data = await self._request("POST", "/v1/events", body=body)
        return EmitResponse.model_validate(data or {})
