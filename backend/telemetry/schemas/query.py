from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel

from .records import TimelineItem

T = TypeVar("T")


@dataclass(frozen=True)
class TimeRange:
    start: str
    end: str


@dataclass(frozen=True)
class PageInfo:
    limit: int
    offset: int
    page: int


@dataclass(frozen=True)
class ExactCount:
    value: int


class Unknown:
    """Marker for a total that could not be derived after client-side filtering."""

    _instance: Optional["Unknown"] = None

    def __new__(cls) -> "Unknown":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False


UNKNOWN = Unknown()

Total = Union[ExactCount, Unknown]


def total_to_json(total: Total) -> Optional[int]:
    if isinstance(total, ExactCount):
        return total.value
    return None


@dataclass
class QueryResult(Generic[T]):
    records: List[T]
    total: Total


@dataclass(frozen=True)
class TimelineScan:
    traces: int
    errors: int
    markers: int
    merged: int


@dataclass
class TimelineResult:
    items: List[TimelineItem]
    total: Total
    has_more: bool
    scanned: TimelineScan


class TraceFilters(BaseModel):
    channel: Optional[str] = None
    status: Optional[str] = None
    model: Optional[str] = None
    session: Optional[str] = None
    search: Optional[str] = None
    agent: Optional[str] = None


class ErrorFilters(BaseModel):
    channel: Optional[str] = None
    error_type: Optional[str] = None
    trace: Optional[str] = None
    model: Optional[str] = None
    session: Optional[str] = None
    search: Optional[str] = None
    agent: Optional[str] = None


class EventFilters(BaseModel):
    channel: Optional[str] = None
    status: Optional[str] = None
    model: Optional[str] = None
    session: Optional[str] = None
    search: Optional[str] = None
    agent: Optional[str] = None


class SemanticFilters(BaseModel):
    source: Optional[str] = None
    type: Optional[str] = None
    severity: Optional[str] = None
    agent: Optional[str] = None
    name: Optional[str] = None


class MarkerFilters(SemanticFilters):
    pass


class TimelineFilters(BaseModel):
    """Filters accepted by the merged timeline.

    ``type`` narrows both sources: error records by error type and markers by
    semantic event type.
    """

    channel: Optional[str] = None
    status: Optional[str] = None
    model: Optional[str] = None
    session: Optional[str] = None
    search: Optional[str] = None
    agent: Optional[str] = None
    trace: Optional[str] = None
    source: Optional[str] = None
    type: Optional[str] = None
    severity: Optional[str] = None
    name: Optional[str] = None

    def for_traces(self) -> TraceFilters:
        return TraceFilters(
            channel=self.channel,
            status=self.status,
            model=self.model,
            session=self.session,
            search=self.search,
            agent=self.agent,
        )

    def for_errors(self) -> ErrorFilters:
        return ErrorFilters(
            channel=self.channel,
            error_type=self.type,
            trace=self.trace,
            model=self.model,
            session=self.session,
            search=self.search,
            agent=self.agent,
        )

    def for_markers(self) -> MarkerFilters:
        return MarkerFilters(
            source=self.source,
            type=self.type,
            severity=self.severity,
            agent=self.agent,
            name=self.name,
        )

