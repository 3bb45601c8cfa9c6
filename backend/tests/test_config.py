from __future__ import annotations

import pytest

from investease.config import DEFAULT_APP_URL, Settings, get_settings, normalize_app_url


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://studio.example.com/", "https://studio.example.com"),
        ("  http://localhost:5173  ", "http://localhost:5173"),
        ("", DEFAULT_APP_URL),
        (None, DEFAULT_APP_URL),
        ("ftp://files.example.com", DEFAULT_APP_URL),
        ("not a url", DEFAULT_APP_URL),
    ],
)
def test_normalize_app_url(raw: str | None, expected: str) -> None:
    assert normalize_app_url(raw) == expected


def test_either_key_variable_is_accepted(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPEN_AI_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-standard")
    assert Settings(_env_file=None).openai_api_key == "sk-standard"  # type: ignore[call-arg]

    monkeypatch.setenv("OPEN_AI_API_KEY", "sk-legacy")
    assert Settings(_env_file=None).openai_api_key == "sk-legacy"  # type: ignore[call-arg]


def test_blank_key_disables_coaching(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("OPEN_AI_API_KEY", "   ")

    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert settings.openai_api_key is None
    assert settings.coaching_enabled is False


def test_coach_defaults_and_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INVESTEASE_COACH_MODEL", "gpt-4.1-mini")
    monkeypatch.setenv("INVESTEASE_APP_URL", "https://learn.example.com/")

    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert settings.coach_model == "gpt-4.1-mini"
    assert settings.app_url == "https://learn.example.com"
    assert settings.coach_temperature == pytest.approx(0.3)
    assert settings.coach_lesson_limit == 4


def test_invalid_configuration_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INVESTEASE_COACH_TEMPERATURE", "hot")
    get_settings.cache_clear()
    try:
        with pytest.raises(RuntimeError, match="Invalid backend configuration"):
            get_settings()
    finally:
        monkeypatch.delenv("INVESTEASE_COACH_TEMPERATURE")
        get_settings.cache_clear()
