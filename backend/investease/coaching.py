"""AI coaching adapter. Failures never reach the progression core."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Annotated, Any, Dict, Literal, Optional, Sequence, Tuple, Union

from agents import Agent, ModelSettings, Runner
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .adaptive import LearnerProfile
from .config import Settings, get_settings
from .prompt_utils import COACH_INSTRUCTIONS, build_coaching_prompt, clean_lesson_titles
from .telemetry import emit_event

logger = logging.getLogger(__name__)

FALLBACK_HEADLINE = "AI Coach"
FALLBACK_SUMMARY = "No coaching summary available."


class CoachingError(RuntimeError):
    """Raised when coaching guidance cannot be produced."""


class CoachingConfigurationError(CoachingError):
    """Raised when the text-generation credential is missing."""


class CoachingUpstreamError(CoachingError):
    """Raised when the model call itself fails."""


class CoachingPayloadError(CoachingError):
    """Raised when the model answers with something other than the expected JSON."""


class CoachingResponsePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    headline: Optional[str] = None
    summary: Optional[str] = None
    next_step: Optional[str] = Field(default=None, alias="nextStep")


class CoachingGuidance(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ready"] = "ready"
    headline: Optional[str] = None
    summary: Optional[str] = None
    next_step: Optional[str] = Field(default=None, alias="nextStep")


class CoachingUnavailable(BaseModel):
    status: Literal["unavailable"] = "unavailable"
    reason: str = "Guidance unavailable."


CoachingOutcome = Annotated[Union[CoachingGuidance, CoachingUnavailable], Field(discriminator="status")]


_COACH_CACHE: Dict[Tuple[str, float], Agent] = {}


def _coach_agent(model: str, temperature: float) -> Agent:
    key = (model, temperature)
    if key not in _COACH_CACHE:
        _COACH_CACHE[key] = Agent(
            name="Investease Coach",
            instructions=COACH_INSTRUCTIONS,
            model=model,
            tools=[],
            model_settings=ModelSettings(temperature=temperature, store=False),
        )
    return _COACH_CACHE[key]


async def _run_coach_agent(agent: Agent, prompt: str) -> Any:
    result = await Runner.run(agent, prompt)
    return result.final_output


def _parse_guidance(raw: Any) -> CoachingGuidance:
    if not isinstance(raw, str):
        return CoachingGuidance(headline=FALLBACK_HEADLINE, summary=FALLBACK_SUMMARY, next_step="")
    try:
        payload = CoachingResponsePayload.model_validate_json(raw)
    except ValidationError as exc:
        raise CoachingPayloadError(f"Coaching model returned invalid payload: {exc}") from exc
    return CoachingGuidance(headline=payload.headline, summary=payload.summary, next_step=payload.next_step)


async def generate_coaching(
    profile: LearnerProfile,
    lesson_titles: Sequence[str],
    *,
    settings: Optional[Settings] = None,
) -> CoachingGuidance:
    """Ask the coaching model for guidance, raising ``CoachingError`` on any failure."""
    resolved_settings = settings or get_settings()
    if not resolved_settings.openai_api_key:
        raise CoachingConfigurationError("OpenAI API key is not configured")

    titles = clean_lesson_titles(lesson_titles, limit=resolved_settings.coach_lesson_limit)
    if not titles:
        raise ValueError("At least one lesson title is required for coaching.")

    agent = _coach_agent(resolved_settings.coach_model, resolved_settings.coach_temperature)
    prompt = build_coaching_prompt(profile, titles)

    started = perf_counter()
    try:
        raw = await _run_coach_agent(agent, prompt)
    except Exception as exc:  # noqa: BLE001
        raise CoachingUpstreamError(f"Coaching model call failed: {exc}") from exc
    latency_ms = round((perf_counter() - started) * 1000.0, 2)

    guidance = _parse_guidance(raw)
    emit_event(
        "coaching_generated",
        model=resolved_settings.coach_model,
        lesson_count=len(titles),
        latency_ms=latency_ms,
    )
    return guidance


async def request_coaching(
    profile: LearnerProfile,
    lesson_titles: Sequence[str],
    *,
    settings: Optional[Settings] = None,
) -> Union[CoachingGuidance, CoachingUnavailable]:
    """Best-effort variant of :func:`generate_coaching` that never raises ``CoachingError``."""
    try:
        guidance = await generate_coaching(profile, lesson_titles, settings=settings)
    except CoachingConfigurationError as exc:
        logger.info("Coaching disabled: %s", exc)
        return CoachingUnavailable(reason=str(exc))
    except CoachingError as exc:
        logger.warning("Coaching unavailable: %s", exc)
        return CoachingUnavailable(reason=str(exc))
    if not (guidance.summary or "").strip():
        return CoachingUnavailable(reason="Coaching model returned no summary.")
    return guidance


__all__ = [
    "CoachingConfigurationError",
    "CoachingError",
    "CoachingGuidance",
    "CoachingOutcome",
    "CoachingPayloadError",
    "CoachingResponsePayload",
    "CoachingUnavailable",
    "CoachingUpstreamError",
    "generate_coaching",
    "request_coaching",
]
