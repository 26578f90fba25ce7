from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, status

from ..core.config import AppConfig
from ..core.dependencies import get_app_config, get_telemetry_client
from ..schemas import EmitRequest, EmitResultResponse
from ..services.emitter import build_event, emit_event
from .common import translate_errors

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EmitResultResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EmitRequest,
    x_api_key: Optional[str] = Header(None),
    app_config: AppConfig = Depends(get_app_config),
):
    with translate_errors():
        event = build_event(
            payload.type,
            payload.name,
            source=payload.source,
            severity=payload.severity,
            agent=payload.agent,
            default_agent=app_config.default_agent,
            session=payload.session,
            channel=payload.channel,
            target=payload.target,
            quality_tags=payload.quality_tags,
            action_tags=payload.action_tags,
            domain_tags=payload.domain_tags,
            meta=payload.meta,
            duration_ms=payload.duration_ms,
            parent_id=payload.parent_id,
            trace_id=payload.trace_id,
        )
        client = get_telemetry_client(app_config, x_api_key)
        result = await emit_event(client, event)
    return EmitResultResponse(
        event_id=result.event_ids[0] if result.event_ids else None,
        accepted=result.accepted,
        event_ids=result.event_ids,
    )
