"""Route trace/error/event queries to the endpoint that can answer them.

The specialized ``/v1/traces`` and ``/v1/errors`` endpoints only filter by
time range, channel and a few exact fields. Anything else (agent, model,
session, free-text search, and ``status=success`` for traces) is answered
by the generic ``/v1/events`` endpoint, refined client-side when the server
could not express the filter. Any client-side pass makes the total unknown.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..schemas.query import (
    UNKNOWN,
    ErrorFilters,
    EventFilters,
    ExactCount,
    QueryResult,
    SemanticFilters,
    TimeRange,
    Total,
    TraceFilters,
)
from ..schemas.records import ErrorRecord, SemanticEvent, SpanEvent, TraceRecord
from .telemetry_client import TelemetryClient
from .transforms import (
    STATUS_CODE_ERROR,
    contains_insensitive,
    matches_agent,
    matches_search,
    simplify_status,
    to_error_record,
    to_trace_record,
)

logger = logging.getLogger(__name__)


def _server_search(agent: Optional[str], search: Optional[str]) -> Optional[str]:
    if agent:
        return f"agent:{agent}:"
    return search


def _refine_events(
    events: List[SpanEvent],
    total: Total,
    agent: Optional[str],
    search: Optional[str],
) -> Tuple[List[SpanEvent], Total]:
    if agent:
        events = [event for event in events if matches_agent(event.session_id, agent)]
        total = UNKNOWN
    # The server already searched for the agent marker, so the caller's text
    # search has to run here.
    if agent and search:
        events = [event for event in events if matches_search(event, search)]
        total = UNKNOWN
    return events, total


def needs_trace_fallback(filters: TraceFilters) -> bool:
    return bool(
        filters.agent
        or filters.model
        or filters.session
        or filters.search
        or filters.status == "success"
    )


def needs_error_fallback(filters: ErrorFilters) -> bool:
    return bool(filters.agent or filters.model or filters.session or filters.search)


async def fetch_span_events(
    client: TelemetryClient,
    filters: EventFilters,
    time_range: TimeRange,
    limit: int,
    offset: int,
) -> QueryResult[SpanEvent]:
    response = await client.get_events(
        since=time_range.start,
        until=time_range.end,
        channel=filters.channel,
        model=filters.model,
        status=filters.status,
        session=filters.session,
        search=_server_search(filters.agent, filters.search),
        limit=limit,
        offset=offset,
    )
    events, total = _refine_events(response.events, ExactCount(response.total), filters.agent, filters.search)
    return QueryResult(records=events, total=total)


async def fetch_trace_records(
    client: TelemetryClient,
    filters: TraceFilters,
    time_range: TimeRange,
    limit: int,
    offset: int,
) -> QueryResult[TraceRecord]:
    if needs_trace_fallback(filters):
        logger.debug("Trace query needs event fallback: %s", filters.model_dump(exclude_none=True))
        events = await fetch_span_events(
            client,
            EventFilters(**filters.model_dump()),
            time_range,
            limit,
            offset,
        )
        return QueryResult(
            records=[to_trace_record(event) for event in events.records],
            total=events.total,
        )

    status = filters.status
    if status == "error":
        status = STATUS_CODE_ERROR

    response = await client.get_traces(
        since=time_range.start,
        until=time_range.end,
        channel=filters.channel,
        status=status,
        limit=limit,
        offset=offset,
    )
    traces = [
        trace.model_copy(update={"status": simplify_status(trace.status)})
        for trace in response.traces
    ]
    return QueryResult(records=traces, total=ExactCount(response.total))


async def fetch_error_records(
    client: TelemetryClient,
    filters: ErrorFilters,
    time_range: TimeRange,
    limit: int,
    offset: int,
) -> QueryResult[ErrorRecord]:
    errors: List[ErrorRecord]
    total: Total

    if needs_error_fallback(filters):
        logger.debug("Error query needs event fallback: %s", filters.model_dump(exclude_none=True))
        events = await fetch_span_events(
            client,
            EventFilters(
                channel=filters.channel,
                status="error",
                model=filters.model,
                session=filters.session,
                search=filters.search,
                agent=filters.agent,
            ),
            time_range,
            limit,
            offset,
        )
        errors = [to_error_record(event) for event in events.records]
        total = events.total
    else:
        response = await client.get_errors(
            since=time_range.start,
            until=time_range.end,
            channel=filters.channel,
            error_type=filters.error_type,
            trace_id=filters.trace,
            limit=limit,
            offset=offset,
        )
        errors = response.errors
        # /v1/errors reports the page length as its total.
        total = UNKNOWN

    if filters.error_type:
        errors = [error for error in errors if error.error_type == filters.error_type]
        total = UNKNOWN
    if filters.trace:
        errors = [error for error in errors if error.trace_id == filters.trace]
        total = UNKNOWN

    return QueryResult(records=errors, total=total)


async def fetch_semantic_events(
    client: TelemetryClient,
    filters: SemanticFilters,
    time_range: TimeRange,
    limit: int,
    offset: int,
) -> QueryResult[SemanticEvent]:
    response = await client.get_semantic_events(
        since=time_range.start,
        until=time_range.end,
        source=filters.source,
        type=filters.type,
        severity=filters.severity,
        agent=filters.agent,
        limit=limit,
        offset=offset,
    )
    events = response.events
    total: Total = ExactCount(response.total)
    if filters.name:
        events = [event for event in events if contains_insensitive(event.name, filters.name)]
        total = UNKNOWN
    return QueryResult(records=events, total=total)
