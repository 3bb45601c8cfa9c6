"""End-to-end tests for the session-scoped studio API."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator

import pytest
from fastapi.testclient import TestClient

from investease import coaching
from investease.config import Settings, get_settings
from investease.main import app


@pytest.fixture
def client() -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, OPEN_AI_API_KEY="")  # type: ignore[call-arg]
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_session(client: TestClient, profile: Dict[str, int] | None = None) -> Dict[str, Any]:
    body = {"profile": profile} if profile is not None else {}
    response = client.post("/api/studio/sessions", json=body)
    assert response.status_code == 201
    return response.json()


def _lesson_url(session_id: str, lesson_id: str) -> str:
    return f"/api/studio/sessions/{session_id}/lessons/{lesson_id}"


def test_catalog_lists_lessons_and_checklist(client: TestClient) -> None:
    response = client.get("/api/studio/catalog")

    assert response.status_code == 200
    payload = response.json()
    assert len(payload["foundation_checklist"]) == 4
    assert [lesson["id"] for lesson in payload["lessons"]] == [
        "business-models",
        "management-quality",
        "portfolio-management",
        "fair-value",
        "idea-discovery",
        "investor-psychology",
    ]
    assert payload["profile_linked_lessons"] == [
        "business-models",
        "fair-value",
        "investor-psychology",
        "portfolio-management",
    ]


def test_new_session_uses_sample_profile(client: TestClient) -> None:
    session = _create_session(client)

    assert session["profile"] == {"confidence": 4, "valuationSkill": 3, "behaviorDiscipline": 6}
    assert [entry["lesson_id"] for entry in session["pathway"]] == [
        "fair-value",
        "business-models",
        "investor-psychology",
        "portfolio-management",
    ]
    assert [entry["need_score"] for entry in session["pathway"]] == [7, 6, 4, 3]
    assert session["progress"]["total_activities"] == 18
    assert session["progress"]["overall_completion_ratio"] == 0.0
    assert session["progress"]["course_complete"] is False


def test_profile_replacement_recomputes_pathway(client: TestClient) -> None:
    session = _create_session(client)

    response = client.put(
        f"/api/studio/sessions/{session['session_id']}/profile",
        json={"confidence": 1, "valuationSkill": 10, "behaviorDiscipline": 10},
    )

    assert response.status_code == 200
    assert response.json()["pathway"][0]["lesson_id"] == "business-models"


def test_unknown_session_and_lesson_return_404(client: TestClient) -> None:
    assert client.get("/api/studio/sessions/missing").status_code == 404

    session = _create_session(client)
    response = client.get(_lesson_url(session["session_id"], "day-trading"))
    assert response.status_code == 404


def test_lesson_detail_includes_training_pack(client: TestClient) -> None:
    session = _create_session(client)

    response = client.get(_lesson_url(session["session_id"], "idea-discovery"))

    assert response.status_code == 200
    payload = response.json()
    assert len(payload["lesson"]["activities"]) == 3
    assert payload["training_pack"]["generated"] is True
    assert len(payload["training_pack"]["checkpoint"]) == 3
    assert payload["progress"]["stage_label"] == "Brief"
    assert payload["can_advance"] is True


def test_activity_marking_is_idempotent_and_validated(client: TestClient) -> None:
    session = _create_session(client)
    url = _lesson_url(session["session_id"], "fair-value")

    first = client.post(f"{url}/activities/0").json()
    second = client.post(f"{url}/activities/0").json()

    assert first["newly_completed"] is True
    assert second["newly_completed"] is False
    assert second["overall_completion_ratio"] == pytest.approx(1 / 18)
    assert client.post(f"{url}/activities/3").status_code == 422


def test_full_lesson_walkthrough(client: TestClient) -> None:
    session = _create_session(client)
    url = _lesson_url(session["session_id"], "business-models")

    assert client.post(f"{url}/begin").json()["changed"] is True
    assert client.post(f"{url}/advance").json()["changed"] is False
    for index in range(3):
        client.post(f"{url}/activities/{index}")
    assert client.post(f"{url}/advance").json()["progress"]["stage_label"] == "Deep Training"
    assert client.post(f"{url}/advance").json()["progress"]["stage_label"] == "Checkpoint"

    client.put(f"{url}/answers/0", json={"option": 0})
    client.put(f"{url}/answers/1", json={"option": 0})
    failed = client.post(f"{url}/checkpoint").json()
    assert failed["submitted"] is True
    assert failed["result"]["passed"] is False
    assert failed["result"]["score"] == 0

    changed = client.put(f"{url}/answers/0", json={"option": 1}).json()
    assert changed["progress"]["submitted"] is False
    client.put(f"{url}/answers/1", json={"option": 2})
    passed = client.post(f"{url}/checkpoint").json()
    assert passed["result"]["passed"] is True
    assert passed["result"]["stage_label"] == "Completion"
    assert passed["course_complete"] is False

    back = client.post(f"{url}/back").json()
    assert back["progress"]["stage_label"] == "Checkpoint"
    assert back["progress"]["ever_completed"] is True


def test_answers_outside_checkpoint_are_refused(client: TestClient) -> None:
    session = _create_session(client)
    url = _lesson_url(session["session_id"], "business-models")

    response = client.put(f"{url}/answers/0", json={"option": 1})

    assert response.status_code == 200
    assert response.json()["changed"] is False
    assert client.put(f"{url}/answers/7", json={"option": 1}).status_code == 422
    assert client.put(f"{url}/answers/0", json={"option": -1}).status_code == 422


def test_submission_outside_checkpoint_is_refused(client: TestClient) -> None:
    session = _create_session(client)

    payload = client.post(f"{_lesson_url(session['session_id'], 'fair-value')}/checkpoint").json()

    assert payload["submitted"] is False
    assert payload["result"] is None


def test_coaching_without_key_is_unavailable(client: TestClient) -> None:
    session = _create_session(client)
    url = f"/api/studio/sessions/{session['session_id']}/coach"

    assert client.get(url).json()["outcome"] is None
    payload = client.post(url).json()

    assert payload["applied"] is True
    assert payload["pending"] is False
    assert payload["outcome"]["status"] == "unavailable"
    assert client.get(url).json()["outcome"]["status"] == "unavailable"


def test_coaching_with_key_returns_guidance(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    prompts = []

    async def fake_run(agent: Any, prompt: str) -> Any:
        prompts.append(prompt)
        return json.dumps({"headline": "Start with value", "summary": "Build three cases.", "nextStep": "Go."})

    monkeypatch.setattr(coaching, "_run_coach_agent", fake_run)
    app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, OPEN_AI_API_KEY="sk-test")  # type: ignore[call-arg]
    session = _create_session(client)

    payload = client.post(f"/api/studio/sessions/{session['session_id']}/coach").json()

    assert payload["outcome"]["status"] == "ready"
    assert payload["outcome"]["summary"] == "Build three cases."
    assert "Estimating Fair Value" in prompts[0]
