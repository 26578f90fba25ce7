from __future__ import annotations

from typing import Optional

from ..schemas.records import ErrorRecord, SpanEvent, TraceRecord

STATUS_CODE_ERROR = "STATUS_CODE_ERROR"
STATUS_CODE_OK = "STATUS_CODE_OK"
STATUS_CODE_UNSET = "STATUS_CODE_UNSET"


def simplify_status(status_code: str) -> str:
    if status_code == STATUS_CODE_ERROR:
        return "error"
    if status_code in (STATUS_CODE_OK, STATUS_CODE_UNSET):
        return "success"
    return status_code


def agent_from_session(session_id: str) -> str:
    parts = session_id.split(":")
    if len(parts) >= 2 and parts[0] == "agent":
        return parts[1]
    return session_id or "-"


def resolve_agent(agent_id: Optional[str], session_id: Optional[str]) -> Optional[str]:
    if agent_id:
        return agent_id
    if session_id:
        return agent_from_session(session_id)
    return None


def matches_agent(session_id: str, agent: str) -> bool:
    return f"agent:{agent}:" in session_id


def contains_insensitive(text: str, query: str) -> bool:
    return query.lower() in text.lower()


def matches_search(event: SpanEvent, query: str) -> bool:
    return (
        contains_insensitive(event.name, query)
        or contains_insensitive(event.model, query)
        or contains_insensitive(event.session_id, query)
    )


def to_trace_record(event: SpanEvent) -> TraceRecord:
    return TraceRecord(
        trace_id=event.trace_id,
        start_time=event.start_time,
        duration_ms=event.duration_ms,
        channel=event.channel,
        model=event.model,
        session_id=event.session_id,
        agent_id=event.agent_id or None,
        tokens_input=event.tokens_input,
        tokens_output=event.tokens_output,
        status=simplify_status(event.status_code),
        error=event.error_type or None,
    )


def to_error_record(event: SpanEvent) -> ErrorRecord:
    return ErrorRecord(
        timestamp=event.start_time,
        trace_id=event.trace_id,
        channel=event.channel,
        error_type=event.error_type or "unknown",
        message=event.error_type or event.status_code,
        session_id=event.session_id,
        agent_id=event.agent_id or None,
        model=event.model,
    )
