from __future__ import annotations

from fastapi.testclient import TestClient

from investease.config import Settings, get_settings
from investease.main import app


def test_health_endpoint_reports_coaching_disabled() -> None:
    app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, OPEN_AI_API_KEY="")  # type: ignore[call-arg]
    try:
        response = TestClient(app).get("/healthz")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "coaching_enabled": False}


def test_health_endpoint_reports_coaching_enabled() -> None:
    app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, OPEN_AI_API_KEY="sk-test")  # type: ignore[call-arg]
    try:
        response = TestClient(app).get("/healthz")
    finally:
        app.dependency_overrides.clear()

    assert response.json()["coaching_enabled"] is True
