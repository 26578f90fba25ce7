from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field, ValidationError, constr

DEFAULT_ENDPOINT = "https://api.clawiq.md"


class TelemetryConfig(BaseModel):
    base_url: str = Field(DEFAULT_ENDPOINT, description="Base URL of the remote telemetry service")
    api_key: Optional[str] = Field(None, description="Bearer key used against the telemetry service")
    request_timeout_seconds: float = Field(
        30,
        ge=1,
        description="Timeout in seconds for telemetry HTTP requests",
    )


class QueryConfig(BaseModel):
    default_since: constr(strip_whitespace=True, min_length=1) = "24h"
    default_limit: int = Field(50, ge=1)
    marker_batch_size: int = Field(500, ge=1)
    marker_max_events: int = Field(50_000, ge=1)
    tags_default_since: constr(strip_whitespace=True, min_length=1) = "7d"


class AppConfig(BaseModel):
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    default_agent: Optional[str] = None

    @property
    def safe_payload(self) -> Dict[str, object]:
        """Return a version of the configuration safe to expose to clients."""
        return {
            "telemetry": self.telemetry.model_dump(exclude={"api_key"}),
            "query": self.query.model_dump(),
            "default_agent": self.default_agent,
            "api_key_configured": bool(self.telemetry.api_key),
        }


@dataclass
class ConfigSet:
    telemetry: TelemetryConfig
    query: QueryConfig
    default_agent: Optional[str] = None

    @property
    def app_config(self) -> AppConfig:
        return AppConfig(
            telemetry=self.telemetry,
            query=self.query,
            default_agent=self.default_agent,
        )


class ConfigLoaderError(RuntimeError):
    pass


def _read_json(path: Path) -> dict:
    if not path.exists():
        raise ConfigLoaderError(f"Configuration file not found: {path}")
    try:
        payload = json.loads(path.read_text("utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigLoaderError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigLoaderError(f"Expected a JSON object in {path}")
    return payload


def _apply_env_overrides(telemetry: TelemetryConfig) -> None:
    """Apply environment variable overrides to the telemetry configuration."""
    endpoint_override = os.getenv("TELEMETRY_ENDPOINT")
    if endpoint_override:
        telemetry.base_url = endpoint_override.strip()

    api_key_override = os.getenv("TELEMETRY_API_KEY")
    if api_key_override:
        telemetry.api_key = api_key_override.strip()


def load_config_set(config_dir: Path) -> ConfigSet:
    """Load the service configuration from the provided directory."""
    payload = _read_json(config_dir / "service.json")
    try:
        telemetry = TelemetryConfig(**(payload.get("telemetry") or {}))
        _apply_env_overrides(telemetry)
        query = QueryConfig(**(payload.get("query") or {}))
    except ValidationError as exc:
        raise ConfigLoaderError(str(exc)) from exc

    default_agent = payload.get("default_agent")
    if default_agent is not None and not isinstance(default_agent, str):
        raise ConfigLoaderError("default_agent must be a string")

    return ConfigSet(
        telemetry=telemetry,
        query=query,
        default_agent=default_agent or None,
    )


def load_app_config(config_dir: Path) -> AppConfig:
    return load_config_set(config_dir).app_config
