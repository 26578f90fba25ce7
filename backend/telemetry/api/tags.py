from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Header, Query

from ..core.config import AppConfig
from ..core.dependencies import get_app_config, get_telemetry_client
from ..schemas import TagsResponse
from .common import translate_errors

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=TagsResponse)
async def list_tags(
    since: Optional[str] = None,
    limit: int = Query(20, ge=1),
    category: Optional[Literal["quality", "action", "domain"]] = None,
    x_api_key: Optional[str] = Header(None),
    app_config: AppConfig = Depends(get_app_config),
):
    with translate_errors():
        client = get_telemetry_client(app_config, x_api_key)
        tags = await client.get_tags(since or app_config.query.tags_default_since, limit)
    if category is None:
        return tags
    return TagsResponse(**{f"{category}_tags": getattr(tags, f"{category}_tags")})
