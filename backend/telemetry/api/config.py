from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.config import AppConfig, ConfigLoaderError
from ..core.dependencies import get_app_config, get_config_service
from ..services.config_loader import ConfigService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config", tags=["config"])


@router.get("", name="get_config")
async def get_config(app_config: AppConfig = Depends(get_app_config)):
    return app_config.safe_payload


@router.post("/reload", name="reload_config")
async def reload_config(config_service: ConfigService = Depends(get_config_service)):
    """Re-read service.json and environment overrides without a restart."""
    try:
        config_set = config_service.load()
    except ConfigLoaderError as exc:
        logger.error("Configuration reload from %s failed: %s", config_service.config_dir, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    logger.info("Configuration reloaded from %s", config_service.config_dir)
    return config_set.app_config.safe_payload
