from .pull import (
    EmitRequest,
    EmitResultResponse,
    ErrorsPageResponse,
    MarkersPageResponse,
    PaginationResponse,
    SemanticEventsPageResponse,
    SpanEventsPageResponse,
    TimelinePaginationResponse,
    TimelineResponse,
    TimelineScannedResponse,
    TracesPageResponse,
)
from .query import (
    UNKNOWN,
    ErrorFilters,
    EventFilters,
    ExactCount,
    MarkerFilters,
    PageInfo,
    QueryResult,
    SemanticFilters,
    TimelineFilters,
    TimelineResult,
    TimelineScan,
    TimeRange,
    Total,
    TraceFilters,
    Unknown,
    total_to_json,
)
from .records import (
    ErrorRecord,
    Marker,
    SemanticEvent,
    SpanEvent,
    TagInfo,
    TagsResponse,
    TimelineItem,
    TraceRecord,
)

__all__ = [
    "EmitRequest",
    "EmitResultResponse",
    "ErrorsPageResponse",
    "MarkersPageResponse",
    "PaginationResponse",
    "SemanticEventsPageResponse",
    "SpanEventsPageResponse",
    "TimelinePaginationResponse",
    "TimelineResponse",
    "TimelineScannedResponse",
    "TracesPageResponse",
    "UNKNOWN",
    "ErrorFilters",
    "EventFilters",
    "ExactCount",
    "MarkerFilters",
    "PageInfo",
    "QueryResult",
    "SemanticFilters",
    "TimelineFilters",
    "TimelineResult",
    "TimelineScan",
    "TimeRange",
    "Total",
    "TraceFilters",
    "Unknown",
    "total_to_json",
    "ErrorRecord",
    "Marker",
    "SemanticEvent",
    "SpanEvent",
    "TagInfo",
    "TagsResponse",
    "TimelineItem",
    "TraceRecord",
]
