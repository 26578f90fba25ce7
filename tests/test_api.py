from __future__ import annotations

from pathlib import Path
import sys

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from fastapi.testclient import TestClient

import backend.telemetry.api.events as events_api
import backend.telemetry.api.pull as pull_api
import backend.telemetry.api.tags as tags_api
from backend.telemetry.core.config import AppConfig, TelemetryConfig
from backend.telemetry.core.dependencies import get_app_config, get_config_service
from backend.telemetry.core.errors import TransportError
from backend.telemetry.main import app
from backend.telemetry.schemas.records import TagInfo, TagsResponse
from backend.telemetry.services.config_loader import ConfigService
from telemetry_stub import StubTelemetryClient, error, semantic, trace


@pytest.fixture
def app_config():
    config = AppConfig(telemetry=TelemetryConfig(api_key="config-key"), default_agent="ops")
    app.dependency_overrides[get_app_config] = lambda: config
    yield config
    app.dependency_overrides.clear()


def _install(monkeypatch, stub: StubTelemetryClient) -> list:
    keys: list = []

    def _factory(app_config, api_key_override=None):
        keys.append(api_key_override)
        return stub

    for module in (pull_api, tags_api, events_api):
        monkeypatch.setattr(module, "get_telemetry_client", _factory)
    return keys


def _traces():
    return [
        trace("t3", "2026-02-28T12:30:00Z"),
        trace("t2", "2026-02-28T12:10:00Z", status="STATUS_CODE_ERROR"),
        trace("t1", "2026-02-28T11:00:00Z"),
    ]


def test_health() -> None:
    with TestClient(app) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_config_hides_api_key(app_config) -> None:
    with TestClient(app) as client:
        response = client.get("/config")
    assert response.status_code == 200
    payload = response.json()
    assert "api_key" not in payload["telemetry"]
    assert payload["api_key_configured"] is True
    assert payload["default_agent"] == "ops"


def test_pull_traces(monkeypatch, app_config) -> None:
    stub = StubTelemetryClient(traces=_traces(), traces_total=3)
    keys = _install(monkeypatch, stub)

    with TestClient(app) as client:
        response = client.get(
            "/pull/traces",
            params={"channel": "imessage", "limit": 2},
            headers={"X-API-Key": "header-key"},
        )

    assert response.status_code == 200
    payload = response.json()
    assert [item["trace_id"] for item in payload["traces"]] == ["t3", "t2"]
    assert [item["status"] for item in payload["traces"]] == ["success", "error"]
    assert payload["pagination"] == {"limit": 2, "offset": 0, "page": 1, "total": 3}
    assert keys == ["header-key"]
    assert stub.calls_to("traces")[0]["channel"] == "imessage"


def test_pull_traces_with_agent_has_no_total(monkeypatch, app_config) -> None:
    _install(monkeypatch, StubTelemetryClient())
    with TestClient(app) as client:
        response = client.get("/pull/traces", params={"agent": "ops", "page": 2, "limit": 10})
    assert response.status_code == 200
    assert response.json()["pagination"] == {"limit": 10, "offset": 10, "page": 2, "total": None}


def test_pull_errors_maps_type_filter(monkeypatch, app_config) -> None:
    stub = StubTelemetryClient(
        errors=[
            error("t1", "2026-02-28T12:00:00Z", error_type="timeout"),
            error("t2", "2026-02-28T11:00:00Z", error_type="rate_limit"),
        ]
    )
    _install(monkeypatch, stub)
    with TestClient(app) as client:
        response = client.get("/pull/errors", params={"type": "rate_limit"})
    assert response.status_code == 200
    assert stub.calls_to("errors")[0]["error_type"] == "rate_limit"
    assert [item["trace_id"] for item in response.json()["errors"]] == ["t2"]


def test_pull_all_reports_has_more(monkeypatch, app_config) -> None:
    stub = StubTelemetryClient(
        traces=_traces(),
        errors=[error("t2", "2026-02-28T12:10:01Z")],
        semantic_events=[semantic("2026-02-28T12:21:00Z")],
    )
    _install(monkeypatch, stub)

    with TestClient(app) as client:
        response = client.get("/pull/all", params={"limit": 2})

    assert response.status_code == 200
    payload = response.json()
    assert [item["kind"] for item in payload["items"]] == ["trace", "marker"]
    assert payload["pagination"]["has_more"] is True
    assert payload["pagination"]["total"] is None
    assert payload["scanned"] == {"traces": 2, "errors": 1, "markers": 1, "merged": 4}


def test_pull_markers_pages_locally(monkeypatch, app_config) -> None:
    stub = StubTelemetryClient(
        semantic_events=[
            semantic("2026-02-28T12:21:00Z", name="a"),
            semantic("2026-02-28T12:11:00Z", name="b"),
            semantic("2026-02-28T12:01:00Z", name="c"),
        ]
    )
    _install(monkeypatch, stub)
    with TestClient(app) as client:
        response = client.get("/pull/markers", params={"limit": 1, "offset": 1})
    payload = response.json()
    assert [marker["name"] for marker in payload["markers"]] == ["b"]
    assert payload["pagination"] == {"limit": 1, "offset": 1, "page": 2, "total": 3}


@pytest.mark.parametrize(
    "params",
    [
        {"limit": 0},
        {"offset": -3},
        {"since": "1h", "until": "2h"},
        {"since": "yesterday"},
    ],
)
def test_invalid_query_is_rejected_before_fetching(monkeypatch, app_config, params) -> None:
    stub = StubTelemetryClient()
    _install(monkeypatch, stub)
    with TestClient(app) as client:
        response = client.get("/pull/events", params=params)
    assert response.status_code == 400
    assert stub.calls == []


def test_missing_api_key_is_unauthorized() -> None:
    app.dependency_overrides[get_app_config] = lambda: AppConfig()
    try:
        with TestClient(app) as client:
            response = client.get("/pull/semantic")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 401
    assert "API key required" in response.json()["detail"]


def test_upstream_failure_is_bad_gateway(monkeypatch, app_config) -> None:
    stub = StubTelemetryClient(failures={"traces": TransportError("Failed to reach telemetry service: boom")})
    _install(monkeypatch, stub)
    with TestClient(app) as client:
        response = client.get("/pull/traces")
    assert response.status_code == 502
    assert "boom" in response.json()["detail"]


def test_tags_filtered_by_category(monkeypatch, app_config) -> None:
    stub = StubTelemetryClient(
        tags=TagsResponse(
            quality_tags=[TagInfo(tag="retry", count=4)],
            action_tags=[TagInfo(tag="resend", count=1)],
        )
    )
    _install(monkeypatch, stub)
    with TestClient(app) as client:
        response = client.get("/tags", params={"category": "quality"})
    payload = response.json()
    assert [item["tag"] for item in payload["quality_tags"]] == ["retry"]
    assert payload["action_tags"] == []
    assert stub.calls_to("tags")[0] == {"since": "7d", "limit": 20}


def test_emit_event(monkeypatch, app_config) -> None:
    stub = StubTelemetryClient()
    _install(monkeypatch, stub)
    with TestClient(app) as client:
        response = client.post("/events", json={"type": "task", "name": "dinner-poll"})
    assert response.status_code == 201
    assert response.json() == {"event_id": "evt-1", "accepted": 1, "event_ids": ["evt-1"]}
    assert stub.emitted[0].agent_id == "ops"


def test_emit_invalid_event(monkeypatch, app_config) -> None:
    stub = StubTelemetryClient()
    _install(monkeypatch, stub)
    with TestClient(app) as client:
        response = client.post("/events", json={"type": "task", "name": "Dinner Poll"})
    assert response.status_code == 400
    assert stub.calls == []


def test_reload_config(tmp_path) -> None:
    (tmp_path / "service.json").write_text('{"default_agent": "writer"}', "utf-8")
    app.dependency_overrides[get_config_service] = lambda: ConfigService(tmp_path)
    try:
        with TestClient(app) as client:
            response = client.post("/config/reload")
            (tmp_path / "service.json").write_text("{broken", "utf-8")
            broken = client.post("/config/reload")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 200
    assert response.json()["default_agent"] == "writer"
    assert broken.status_code == 500
    assert "Invalid JSON" in broken.json()["detail"]


def test_pull_all_type_filter_narrows_errors(monkeypatch, app_config) -> None:
    stub = StubTelemetryClient(
        errors=[
            error("t1", "2026-02-28T12:00:00Z", error_type="timeout"),
            error("t2", "2026-02-28T11:00:00Z", error_type="rate_limit"),
        ]
    )
    _install(monkeypatch, stub)
    with TestClient(app) as client:
        response = client.get("/pull/all", params={"type": "timeout"})
    assert response.status_code == 200
    assert stub.calls_to("errors")[0]["error_type"] == "timeout"
    assert stub.calls_to("semantic")[0]["type"] == "timeout"
    assert [item["trace_id"] for item in response.json()["items"] if item["kind"] == "error"] == ["t1"]
