from __future__ import annotations

import asyncio
import logging
import math
from typing import List

from ..schemas.query import (
    UNKNOWN,
    ExactCount,
    PageInfo,
    TimelineFilters,
    TimelineResult,
    TimelineScan,
    TimeRange,
    Total,
)
from ..schemas.records import ErrorRecord, Marker, TimelineItem, TraceRecord
from .markers import DEFAULT_BATCH_SIZE, DEFAULT_MAX_EVENTS, fetch_markers
from .routing import fetch_error_records, fetch_trace_records
from .telemetry_client import TelemetryClient
from .transforms import resolve_agent, simplify_status

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def trace_to_item(trace: TraceRecord) -> TimelineItem:
    return TimelineItem(
        kind="trace",
        timestamp=trace.start_time,
        summary=f"{simplify_status(trace.status)} {trace.model or '-'} {_round_half_up(trace.duration_ms)}ms",
        trace_id=trace.trace_id,
        channel=trace.channel,
        model=trace.model,
        agent=resolve_agent(trace.agent_id, trace.session_id),
    )


def error_to_item(error: ErrorRecord) -> TimelineItem:
    summary = error.error_type
    if error.message:
        summary = f"{summary}: {error.message}"
    return TimelineItem(
        kind="error",
        timestamp=error.timestamp,
        summary=summary,
        trace_id=error.trace_id,
        channel=error.channel,
        model=error.model,
        agent=resolve_agent(error.agent_id, error.session_id),
        severity="error",
    )


def marker_to_item(marker: Marker) -> TimelineItem:
    return TimelineItem(
        kind="marker",
        timestamp=marker.timestamp,
        summary=f"{marker.severity} {marker.type}:{marker.name} x{marker.count}",
        severity=marker.severity,
    )


async def merge_timeline(
    client: TelemetryClient,
    filters: TimelineFilters,
    time_range: TimeRange,
    page: PageInfo,
    *,
    marker_batch_size: int = DEFAULT_BATCH_SIZE,
    marker_max_events: int = DEFAULT_MAX_EVENTS,
) -> TimelineResult:
    """Merge traces, errors and markers into one page, newest first.

    Each source is asked for enough rows to fill every page up to this one.
    If a source comes back exactly full it may have been truncated, so
    ``has_more`` is raised and the total becomes unknown.
    """
    merge_window = max(page.limit + page.offset, page.limit)

    trace_result, error_result, markers = await asyncio.gather(
        fetch_trace_records(client, filters.for_traces(), time_range, merge_window, 0),
        fetch_error_records(client, filters.for_errors(), time_range, merge_window, 0),
        fetch_markers(
            client,
            filters.for_markers(),
            time_range,
            batch_size=marker_batch_size,
            max_events=marker_max_events,
        ),
    )

    trace_items = [trace_to_item(trace) for trace in trace_result.records]
    error_items = [error_to_item(error) for error in error_result.records]
    marker_items = [marker_to_item(marker) for marker in markers]

    merged: List[TimelineItem] = sorted(
        trace_items + error_items + marker_items,
        key=lambda item: item.timestamp,
        reverse=True,
    )
    page_end = page.offset + page.limit
    page_items = merged[page.offset : page_end]

    source_may_have_more = (
        len(trace_result.records) == merge_window or len(error_result.records) == merge_window
    )
    has_more = source_may_have_more or len(merged) > page_end
    total: Total = UNKNOWN if source_may_have_more else ExactCount(len(merged))

    logger.debug(
        "Merged timeline: traces=%d errors=%d markers=%d window=%d",
        len(trace_items),
        len(error_items),
        len(marker_items),
        merge_window,
    )
    return TimelineResult(
        items=page_items,
        total=total,
        has_more=has_more,
        scanned=TimelineScan(
            traces=len(trace_items),
            errors=len(error_items),
            markers=len(marker_items),
            merged=len(merged),
        ),
    )
