from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, Iterable, List, Tuple

from ..schemas.query import MarkerFilters, TimeRange
from ..schemas.records import Marker, SemanticEvent
from ..utils.timestamps import ensure_utc
from .telemetry_client import TelemetryClient
from .transforms import contains_insensitive

logger = logging.getLogger(__name__)

BUCKET_MINUTES = 5
DEFAULT_BATCH_SIZE = 500
DEFAULT_MAX_EVENTS = 50_000


def bucket_5m(timestamp: dt.datetime) -> dt.datetime:
    value = ensure_utc(timestamp)
    return value.replace(
        minute=value.minute - value.minute % BUCKET_MINUTES,
        second=0,
        microsecond=0,
    )


def build_marker_records(events: Iterable[SemanticEvent]) -> List[Marker]:
    """Count events per (5-minute bucket, type, name, severity).

    Newest bucket first; within a bucket the busiest key first.
    """
    counts: Dict[Tuple[dt.datetime, str, str, str], int] = {}
    for event in events:
        key = (bucket_5m(event.timestamp), event.type, event.name, event.severity)
        counts[key] = counts.get(key, 0) + 1

    markers = [
        Marker(timestamp=bucket, type=type_, name=name, severity=severity, count=count)
        for (bucket, type_, name, severity), count in counts.items()
    ]
    markers.sort(key=lambda marker: (marker.timestamp, marker.count), reverse=True)
    return markers


async def fetch_all_semantic_events(
    client: TelemetryClient,
    filters: MarkerFilters,
    time_range: TimeRange,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_events: int = DEFAULT_MAX_EVENTS,
) -> List[SemanticEvent]:
    events: List[SemanticEvent] = []
    offset = 0
    while len(events) < max_events:
        response = await client.get_semantic_events(
            since=time_range.start,
            until=time_range.end,
            source=filters.source,
            type=filters.type,
            severity=filters.severity,
            agent=filters.agent,
            limit=batch_size,
            offset=offset,
        )
        events.extend(response.events)
        if len(response.events) < batch_size:
            break
        offset += batch_size
    else:
        logger.info(
            "Semantic event scan stopped at the %d event cap; markers may be incomplete",
            max_events,
        )
    logger.debug("Fetched %d semantic events for marker aggregation", len(events))
    return events


async def fetch_markers(
    client: TelemetryClient,
    filters: MarkerFilters,
    time_range: TimeRange,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_events: int = DEFAULT_MAX_EVENTS,
) -> List[Marker]:
    events = await fetch_all_semantic_events(
        client,
        filters,
        time_range,
        batch_size=batch_size,
        max_events=max_events,
    )
    if filters.name:
        events = [event for event in events if contains_insensitive(event.name, filters.name)]
    return build_marker_records(events)
