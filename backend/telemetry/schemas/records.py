from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..utils.timestamps import ensure_utc


class WireModel(BaseModel):
    """Base for payloads read from the telemetry service.

    Explicit nulls fall back to field defaults, and timestamps are normalized
    to timezone-aware UTC.
    """

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_timestamps(cls, value: Any) -> Any:
        if isinstance(value, dt.datetime):
            return ensure_utc(value)
        return value


class SpanEvent(WireModel):
    trace_id: str = ""
    span_id: str = ""
    name: str = ""
    start_time: dt.datetime
    duration_ms: float = 0
    status_code: str = ""
    channel: str = ""
    model: str = ""
    provider: str = ""
    session_id: str = ""
    agent_id: str = ""
    tokens_input: int = 0
    tokens_output: int = 0
    tokens_cache_read: int = 0
    tokens_cache_write: int = 0
    cost_usd: float = 0
    error_type: str = ""
    outcome: str = ""
    state: str = ""


class TraceRecord(WireModel):
    trace_id: str
    start_time: dt.datetime
    duration_ms: float = 0
    channel: str = ""
    model: str = ""
    session_id: Optional[str] = None
    agent_id: Optional[str] = None
    tokens_input: int = 0
    tokens_output: int = 0
    status: str = ""
    error: Optional[str] = None


class ErrorRecord(WireModel):
    timestamp: dt.datetime
    trace_id: str = ""
    channel: str = ""
    error_type: str = "unknown"
    message: str = ""
    session_id: Optional[str] = None
    agent_id: Optional[str] = None
    model: Optional[str] = None


class SemanticEvent(WireModel):
    id: str = ""
    timestamp: dt.datetime
    source: str = ""
    type: str = ""
    name: str = ""
    severity: str = ""
    agent_id: Optional[str] = None
    session_id: Optional[str] = None
    channel: Optional[str] = None
    target: Optional[str] = None
    quality_tags: List[str] = Field(default_factory=list)
    action_tags: List[str] = Field(default_factory=list)
    domain_tags: List[str] = Field(default_factory=list)
    meta: Optional[Any] = None


class Marker(BaseModel):
    timestamp: dt.datetime
    type: str
    name: str
    severity: str
    count: int


TimelineKind = Literal["trace", "error", "marker"]


class TimelineItem(BaseModel):
    kind: TimelineKind
    timestamp: dt.datetime
    summary: str
    trace_id: Optional[str] = None
    channel: Optional[str] = None
    model: Optional[str] = None
    agent: Optional[str] = None
    severity: Optional[str] = None


class EventsResponse(WireModel):
    events: List[SpanEvent] = Field(default_factory=list)
    total: int = 0


class TracesResponse(WireModel):
    traces: List[TraceRecord] = Field(default_factory=list)
    total: int = 0


class ErrorSummary(WireModel):
    total: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict)


class ErrorsResponse(WireModel):
    errors: List[ErrorRecord] = Field(default_factory=list)
    summary: ErrorSummary = Field(default_factory=ErrorSummary)


class SemanticEventsResponse(WireModel):
    events: List[SemanticEvent] = Field(default_factory=list)
    total: int = 0


class TagInfo(WireModel):
    tag: str
    count: int = 0
    last_used: Optional[dt.datetime] = None


class TagsResponse(WireModel):
    quality_tags: List[TagInfo] = Field(default_factory=list)
    action_tags: List[TagInfo] = Field(default_factory=list)
    domain_tags: List[TagInfo] = Field(default_factory=list)


class OutgoingEvent(BaseModel):
    type: str
    name: str
    source: Optional[str] = None
    severity: Optional[str] = None
    agent_id: Optional[str] = None
    session_id: Optional[str] = None
    channel: Optional[str] = None
    target: Optional[str] = None
    quality_tags: Optional[List[str]] = None
    action_tags: Optional[List[str]] = None
    domain_tags: Optional[List[str]] = None
    meta: Optional[Dict[str, Any]] = None
    duration_ms: Optional[int] = None
    parent_id: Optional[str] = None
    trace_id: Optional[str] = None
    timestamp: Optional[str] = None


class EmitError(WireModel):
    index: int = 0
    code: str = ""
    message: str = ""


class EmitResponse(WireModel):
    accepted: int = 0
    rejected: int = 0
    event_ids: List[str] = Field(default_factory=list)
    errors: List[EmitError] = Field(default_factory=list)
