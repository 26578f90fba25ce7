from __future__ import annotations

from functools import lru_cache
from typing import Optional

from ..core.config import AppConfig
from ..core.errors import MissingAPIKeyError
from ..services.config_loader import ConfigService, create_config_service
from ..services.telemetry_client import TelemetryClient


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    return create_config_service()


async def get_app_config() -> AppConfig:
    service = get_config_service()
    return service.get_app_config()


def require_api_key(app_config: AppConfig, api_key_override: Optional[str] = None) -> str:
    api_key = api_key_override or app_config.telemetry.api_key
    if not api_key:
        raise MissingAPIKeyError(
            "API key required. Set it via the X-API-Key header, the TELEMETRY_API_KEY "
            "environment variable, or telemetry.api_key in config/service.json"
        )
    return api_key


def get_telemetry_client(app_config: AppConfig, api_key_override: Optional[str] = None) -> TelemetryClient:
    telemetry = app_config.telemetry
    return TelemetryClient(
        base_url=telemetry.base_url,
        api_key=require_api_key(app_config, api_key_override),
        timeout_seconds=telemetry.request_timeout_seconds,
    )
