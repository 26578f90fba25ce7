from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header

from ..core.config import AppConfig
from ..core.dependencies import get_app_config, get_telemetry_client
from ..schemas import (
    ErrorFilters,
    ErrorsPageResponse,
    EventFilters,
    ExactCount,
    MarkerFilters,
    MarkersPageResponse,
    PageInfo,
    SemanticEventsPageResponse,
    SemanticFilters,
    SpanEventsPageResponse,
    TimelineFilters,
    TimelinePaginationResponse,
    TimelineResponse,
    TimelineScannedResponse,
    TimeRange,
    TracesPageResponse,
    TraceFilters,
    total_to_json,
)
from ..services.markers import fetch_markers
from ..services.pagination import compute_page_info
from ..services.routing import (
    fetch_error_records,
    fetch_semantic_events,
    fetch_span_events,
    fetch_trace_records,
)
from ..services.time_range import resolve_time_range
from ..services.timeline import merge_timeline
from .common import to_pagination, translate_errors

router = APIRouter(prefix="/pull", tags=["pull"])


def _window(
    app_config: AppConfig,
    since: Optional[str],
    until: Optional[str],
    limit: Optional[int],
    offset: Optional[int],
    page: Optional[int],
) -> tuple[PageInfo, TimeRange]:
    page_info = compute_page_info(
        limit=limit,
        offset=offset,
        page=page,
        default_limit=app_config.query.default_limit,
    )
    time_range = resolve_time_range(since, until, app_config.query.default_since)
    return page_info, time_range


@router.get("/all", response_model=TimelineResponse)
async def pull_timeline(
    since: Optional[str] = None,
    until: Optional[str] = None,
    channel: Optional[str] = None,
    model: Optional[str] = None,
    status: Optional[str] = None,
    trace: Optional[str] = None,
    session: Optional[str] = None,
    agent: Optional[str] = None,
    search: Optional[str] = None,
    source: Optional[str] = None,
    type: Optional[str] = None,
    severity: Optional[str] = None,
    name: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    page: Optional[int] = None,
    x_api_key: Optional[str] = Header(None),
    app_config: AppConfig = Depends(get_app_config),
):
    filters = TimelineFilters(
        channel=channel,
        model=model,
        status=status,
        trace=trace,
        session=session,
        agent=agent,
        search=search,
        source=source,
        type=type,
        severity=severity,
        name=name,
    )
    with translate_errors():
        page_info, time_range = _window(app_config, since, until, limit, offset, page)
        client = get_telemetry_client(app_config, x_api_key)
        result = await merge_timeline(
            client,
            filters,
            time_range,
            page_info,
            marker_batch_size=app_config.query.marker_batch_size,
            marker_max_events=app_config.query.marker_max_events,
        )
    return TimelineResponse(
        items=result.items,
        scanned=TimelineScannedResponse(
            traces=result.scanned.traces,
            errors=result.scanned.errors,
            markers=result.scanned.markers,
            merged=result.scanned.merged,
        ),
        pagination=TimelinePaginationResponse(
            limit=page_info.limit,
            offset=page_info.offset,
            page=page_info.page,
            total=total_to_json(result.total),
            has_more=result.has_more,
        ),
    )


@router.get("/traces", response_model=TracesPageResponse)
async def pull_traces(
    since: Optional[str] = None,
    until: Optional[str] = None,
    channel: Optional[str] = None,
    status: Optional[str] = None,
    model: Optional[str] = None,
    session: Optional[str] = None,
    agent: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    page: Optional[int] = None,
    x_api_key: Optional[str] = Header(None),
    app_config: AppConfig = Depends(get_app_config),
):
    filters = TraceFilters(
        channel=channel,
        status=status,
        model=model,
        session=session,
        agent=agent,
        search=search,
    )
    with translate_errors():
        page_info, time_range = _window(app_config, since, until, limit, offset, page)
        client = get_telemetry_client(app_config, x_api_key)
        result = await fetch_trace_records(client, filters, time_range, page_info.limit, page_info.offset)
    return TracesPageResponse(traces=result.records, pagination=to_pagination(page_info, result.total))


@router.get("/errors", response_model=ErrorsPageResponse)
async def pull_errors(
    since: Optional[str] = None,
    until: Optional[str] = None,
    channel: Optional[str] = None,
    type: Optional[str] = None,
    trace: Optional[str] = None,
    model: Optional[str] = None,
    session: Optional[str] = None,
    agent: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    page: Optional[int] = None,
    x_api_key: Optional[str] = Header(None),
    app_config: AppConfig = Depends(get_app_config),
):
    filters = ErrorFilters(
        channel=channel,
        error_type=type,
        trace=trace,
        model=model,
        session=session,
        agent=agent,
        search=search,
    )
    with translate_errors():
        page_info, time_range = _window(app_config, since, until, limit, offset, page)
        client = get_telemetry_client(app_config, x_api_key)
        result = await fetch_error_records(client, filters, time_range, page_info.limit, page_info.offset)
    return ErrorsPageResponse(errors=result.records, pagination=to_pagination(page_info, result.total))


@router.get("/events", response_model=SpanEventsPageResponse)
async def pull_events(
    since: Optional[str] = None,
    until: Optional[str] = None,
    channel: Optional[str] = None,
    model: Optional[str] = None,
    status: Optional[str] = None,
    session: Optional[str] = None,
    agent: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    page: Optional[int] = None,
    x_api_key: Optional[str] = Header(None),
    app_config: AppConfig = Depends(get_app_config),
):
    filters = EventFilters(
        channel=channel,
        model=model,
        status=status,
        session=session,
        agent=agent,
        search=search,
    )
    with translate_errors():
        page_info, time_range = _window(app_config, since, until, limit, offset, page)
        client = get_telemetry_client(app_config, x_api_key)
        result = await fetch_span_events(client, filters, time_range, page_info.limit, page_info.offset)
    return SpanEventsPageResponse(events=result.records, pagination=to_pagination(page_info, result.total))


@router.get("/semantic", response_model=SemanticEventsPageResponse)
async def pull_semantic(
    since: Optional[str] = None,
    until: Optional[str] = None,
    source: Optional[str] = None,
    type: Optional[str] = None,
    severity: Optional[str] = None,
    agent: Optional[str] = None,
    name: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    page: Optional[int] = None,
    x_api_key: Optional[str] = Header(None),
    app_config: AppConfig = Depends(get_app_config),
):
    filters = SemanticFilters(source=source, type=type, severity=severity, agent=agent, name=name)
    with translate_errors():
        page_info, time_range = _window(app_config, since, until, limit, offset, page)
        client = get_telemetry_client(app_config, x_api_key)
        result = await fetch_semantic_events(client, filters, time_range, page_info.limit, page_info.offset)
    return SemanticEventsPageResponse(
        events=result.records,
        pagination=to_pagination(page_info, result.total),
    )


@router.get("/markers", response_model=MarkersPageResponse)
async def pull_markers(
    since: Optional[str] = None,
    until: Optional[str] = None,
    source: Optional[str] = None,
    type: Optional[str] = None,
    severity: Optional[str] = None,
    agent: Optional[str] = None,
    name: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    page: Optional[int] = None,
    x_api_key: Optional[str] = Header(None),
    app_config: AppConfig = Depends(get_app_config),
):
    filters = MarkerFilters(source=source, type=type, severity=severity, agent=agent, name=name)
    with translate_errors():
        page_info, time_range = _window(app_config, since, until, limit, offset, page)
        client = get_telemetry_client(app_config, x_api_key)
        markers = await fetch_markers(
            client,
            filters,
            time_range,
            batch_size=app_config.query.marker_batch_size,
            max_events=app_config.query.marker_max_events,
        )
    page_items = markers[page_info.offset : page_info.offset + page_info.limit]
    return MarkersPageResponse(
        markers=page_items,
        pagination=to_pagination(page_info, ExactCount(len(markers))),
    )
