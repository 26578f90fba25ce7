from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from ..core.errors import EventRejectedError, InvalidEventError
from ..schemas.records import EmitResponse, OutgoingEvent
from .telemetry_client import TelemetryClient

logger = logging.getLogger(__name__)

EVENT_TYPES = ["task", "output", "correction", "error", "feedback", "health", "note"]
QUALITY_TAGS = [
    "hallucination",
    "wrong-recipient",
    "wrong-data",
    "self-corrected",
    "user-corrected",
    "retry",
    "fallback",
    "slow",
    "started",
]
SEVERITIES = ["info", "warn", "error"]
SOURCES = ["agent", "gateway", "cron", "channel", "user"]

MAX_TAGS = 5
MAX_TAG_LENGTH = 24
NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50

KEBAB_CASE_RE = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")
TRACE_ID_RE = re.compile(r"^[a-f0-9]{32}$")


def _validate_kebab_case(value: str, name: str) -> None:
    if not KEBAB_CASE_RE.match(value):
        raise InvalidEventError(f'{name} must be lowercase kebab-case (e.g., "my-event-name")')


def _validate_choice(value: str, choices: List[str], label: str) -> None:
    if value not in choices:
        raise InvalidEventError(f'Invalid {label} "{value}". Must be one of: {", ".join(choices)}')


def _validate_tags(tags: List[str], name: str) -> None:
    for tag in tags:
        _validate_kebab_case(tag, f"{name} tag")
        if len(tag) > MAX_TAG_LENGTH:
            raise InvalidEventError(f'{name} tag "{tag}" exceeds {MAX_TAG_LENGTH} character limit')


def build_event(
    event_type: str,
    name: str,
    *,
    source: str = "agent",
    severity: str = "info",
    agent: Optional[str] = None,
    default_agent: Optional[str] = None,
    session: Optional[str] = None,
    channel: Optional[str] = None,
    target: Optional[str] = None,
    quality_tags: Optional[List[str]] = None,
    action_tags: Optional[List[str]] = None,
    domain_tags: Optional[List[str]] = None,
    meta: Optional[Dict[str, Any]] = None,
    duration_ms: Optional[int] = None,
    parent_id: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> OutgoingEvent:
    """Validate a semantic event locally before it is sent anywhere."""
    _validate_choice(event_type, EVENT_TYPES, "event type")
    _validate_kebab_case(name, "Event name")
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise InvalidEventError(f"Event name must be {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters")
    _validate_choice(severity, SEVERITIES, "severity")
    _validate_choice(source, SOURCES, "source")

    for tag in quality_tags or []:
        _validate_choice(tag, QUALITY_TAGS, "quality tag")
    _validate_tags(action_tags or [], "Action")
    _validate_tags(domain_tags or [], "Domain")

    total_tags = len(quality_tags or []) + len(action_tags or []) + len(domain_tags or [])
    if total_tags > MAX_TAGS:
        raise InvalidEventError(
            f"Too many tags ({total_tags}). Maximum is {MAX_TAGS} total across all categories."
        )

    if channel:
        _validate_kebab_case(channel, "Channel")
    if trace_id and not TRACE_ID_RE.match(trace_id):
        raise InvalidEventError("Trace ID must be 32 hexadecimal characters")

    return OutgoingEvent(
        type=event_type,
        name=name,
        source=source,
        severity=severity,
        agent_id=agent or default_agent,
        session_id=session,
        channel=channel,
        target=target,
        quality_tags=quality_tags or None,
        action_tags=action_tags or None,
        domain_tags=domain_tags or None,
        meta=meta,
        duration_ms=duration_ms,
        parent_id=parent_id,
        trace_id=trace_id,
    )


async def emit_event(client: TelemetryClient, event: OutgoingEvent) -> EmitResponse:
    response = await client.emit([event])
    if response.accepted <= 0:
        logger.warning("Semantic event %s:%s rejected", event.type, event.name)
        raise EventRejectedError([error.model_dump() for error in response.errors])
    logger.info(
        "Semantic event %s:%s accepted as %s",
        event.type,
        event.name,
        response.event_ids[0] if response.event_ids else "-",
    )
    return response
