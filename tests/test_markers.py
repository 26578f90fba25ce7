from __future__ import annotations

import asyncio
import datetime as dt
import logging

from telemetry_stub import StubTelemetryClient, semantic, ts

from backend.telemetry.schemas.query import MarkerFilters, TimeRange
from backend.telemetry.services.markers import (
    bucket_5m,
    build_marker_records,
    fetch_all_semantic_events,
    fetch_markers,
)

RANGE = TimeRange(start="2026-02-28T00:00:00.000Z", end="2026-02-28T23:59:59.000Z")


def test_bucket_floors_to_five_minutes() -> None:
    assert bucket_5m(ts("2026-02-28T12:03:10.250Z")) == ts("2026-02-28T12:00:00Z")
    assert bucket_5m(ts("2026-02-28T12:04:59Z")) == ts("2026-02-28T12:00:00Z")
    assert bucket_5m(ts("2026-02-28T12:05:00Z")) == ts("2026-02-28T12:05:00Z")


def test_bucket_converts_to_utc() -> None:
    local = dt.datetime(2026, 2, 28, 14, 7, tzinfo=dt.timezone(dt.timedelta(hours=2)))
    assert bucket_5m(local) == ts("2026-02-28T12:05:00Z")


def test_events_in_same_bucket_collapse() -> None:
    markers = build_marker_records(
        [
            semantic("2026-02-28T12:03:10Z"),
            semantic("2026-02-28T12:04:59Z"),
            semantic("2026-02-28T12:05:00Z"),
        ]
    )
    assert [(marker.timestamp, marker.count) for marker in markers] == [
        (ts("2026-02-28T12:05:00Z"), 1),
        (ts("2026-02-28T12:00:00Z"), 2),
    ]
    assert markers[1].type == "task"
    assert markers[1].name == "dinner-poll"
    assert markers[1].severity == "info"


def test_distinct_keys_stay_separate() -> None:
    markers = build_marker_records(
        [
            semantic("2026-02-28T12:01:00Z", severity="info"),
            semantic("2026-02-28T12:02:00Z", severity="warn"),
            semantic("2026-02-28T12:03:00Z", type="feedback"),
        ]
    )
    assert len(markers) == 3
    assert sum(marker.count for marker in markers) == 3


def test_busiest_marker_first_within_bucket() -> None:
    markers = build_marker_records(
        [
            semantic("2026-02-28T12:01:00Z", name="quiet"),
            semantic("2026-02-28T12:01:30Z", name="busy"),
            semantic("2026-02-28T12:02:00Z", name="busy"),
            semantic("2026-02-28T12:03:00Z", name="busy"),
            semantic("2026-02-28T11:59:00Z", name="busy"),
        ]
    )
    assert [(marker.name, marker.count) for marker in markers] == [
        ("busy", 3),
        ("quiet", 1),
        ("busy", 1),
    ]


def test_empty_input_gives_no_markers() -> None:
    assert build_marker_records([]) == []


def _many(count: int):
    base = ts("2026-02-28T00:00:00Z")
    return [
        semantic((base + dt.timedelta(seconds=index)).strftime("%Y-%m-%dT%H:%M:%SZ"), name=f"n{index % 3}")
        for index in range(count)
    ]


def test_fetch_all_pages_until_short_batch() -> None:
    client = StubTelemetryClient(semantic_events=_many(1200))

    events = asyncio.run(fetch_all_semantic_events(client, MarkerFilters(), RANGE))

    assert len(events) == 1200
    assert [(call["limit"], call["offset"]) for call in client.calls_to("semantic")] == [
        (500, 0),
        (500, 500),
        (500, 1000),
    ]


def test_fetch_all_stops_at_cap(caplog) -> None:
    client = StubTelemetryClient(semantic_events=_many(100))

    with caplog.at_level(logging.INFO, logger="backend.telemetry.services.markers"):
        events = asyncio.run(
            fetch_all_semantic_events(client, MarkerFilters(), RANGE, batch_size=10, max_events=25)
        )

    assert len(events) == 30
    assert len(client.calls_to("semantic")) == 3
    assert "event cap" in caplog.text


def test_fetch_all_exact_multiple_needs_empty_batch() -> None:
    client = StubTelemetryClient(semantic_events=_many(20))
    events = asyncio.run(fetch_all_semantic_events(client, MarkerFilters(), RANGE, batch_size=10))
    assert len(events) == 20
    assert [call["offset"] for call in client.calls_to("semantic")] == [0, 10, 20]


def test_server_side_filters_are_forwarded() -> None:
    client = StubTelemetryClient()
    filters = MarkerFilters(source="agent", type="task", severity="warn", agent="ops", name="poll")

    asyncio.run(fetch_markers(client, filters, RANGE))

    call = client.calls_to("semantic")[0]
    assert call["since"] == RANGE.start
    assert call["until"] == RANGE.end
    assert (call["source"], call["type"], call["severity"], call["agent"]) == ("agent", "task", "warn", "ops")
    assert "name" not in call


def test_name_filter_applies_before_bucketing() -> None:
    client = StubTelemetryClient(
        semantic_events=[
            semantic("2026-02-28T12:01:00Z", name="dinner-poll"),
            semantic("2026-02-28T12:02:00Z", name="Lunch-Poll"),
            semantic("2026-02-28T12:03:00Z", name="weather-check"),
        ]
    )

    markers = asyncio.run(fetch_markers(client, MarkerFilters(name="poll"), RANGE))

    assert sorted(marker.name for marker in markers) == ["Lunch-Poll", "dinner-poll"]
    assert all(marker.count == 1 for marker in markers)
