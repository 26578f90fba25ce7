from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .records import ErrorRecord, Marker, SemanticEvent, SpanEvent, TimelineItem, TraceRecord


class PaginationResponse(BaseModel):
    limit: int
    offset: int
    page: int
    total: Optional[int] = None


class TimelinePaginationResponse(PaginationResponse):
    has_more: bool


class TimelineScannedResponse(BaseModel):
    traces: int
    errors: int
    markers: int
    merged: int


class TimelineResponse(BaseModel):
    items: List[TimelineItem]
    scanned: TimelineScannedResponse
    pagination: TimelinePaginationResponse


class TracesPageResponse(BaseModel):
    traces: List[TraceRecord]
    pagination: PaginationResponse


class ErrorsPageResponse(BaseModel):
    errors: List[ErrorRecord]
    pagination: PaginationResponse


class SpanEventsPageResponse(BaseModel):
    events: List[SpanEvent]
    pagination: PaginationResponse


class SemanticEventsPageResponse(BaseModel):
    events: List[SemanticEvent]
    pagination: PaginationResponse


class MarkersPageResponse(BaseModel):
    markers: List[Marker]
    pagination: PaginationResponse


class EmitRequest(BaseModel):
    type: str
    name: str
    source: str = "agent"
    severity: str = "info"
    agent: Optional[str] = None
    session: Optional[str] = None
    channel: Optional[str] = None
    target: Optional[str] = None
    quality_tags: Optional[List[str]] = None
    action_tags: Optional[List[str]] = None
    domain_tags: Optional[List[str]] = None
    meta: Optional[Dict[str, Any]] = None
    duration_ms: Optional[int] = None
    parent_id: Optional[str] = None
    trace_id: Optional[str] = None


class EmitResultResponse(BaseModel):
    event_id: Optional[str] = None
    accepted: int
    event_ids: List[str] = Field(default_factory=list)
