"""Stateless AI coach endpoint used by the dashboard preview."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError
from starlette.responses import JSONResponse

from .adaptive import LearnerProfile
from .coaching import (
    CoachingConfigurationError,
    CoachingPayloadError,
    CoachingUpstreamError,
    generate_coaching,
)
from .config import Settings, get_settings
from .prompt_utils import clean_lesson_titles
from .telemetry import emit_event

router = APIRouter(prefix="/api/ai", tags=["coach"])
logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(body, status_code=status_code)


@router.post("/coach")
async def coach(request: Request, settings: Settings = Depends(get_settings)) -> JSONResponse:
    if not settings.openai_api_key:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "OpenAI API key is not configured")

    try:
        body = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Request body must be JSON")

    raw_profile = body.get("learnerProfile") if isinstance(body, dict) else None
    raw_lessons = body.get("nextLessons") if isinstance(body, dict) else None
    lessons = clean_lesson_titles(raw_lessons) if isinstance(raw_lessons, list) else []
    if not raw_profile or not lessons:
        return _error(status.HTTP_400_BAD_REQUEST, "learnerProfile and nextLessons are required")

    try:
        profile = LearnerProfile.model_validate(raw_profile)
    except ValidationError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, "learnerProfile is malformed", str(exc))

    try:
        guidance = await generate_coaching(profile, lessons, settings=settings)
    except CoachingConfigurationError as exc:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    except CoachingUpstreamError as exc:
        logger.warning("Coaching upstream failure: %s", exc)
        emit_event("coaching_failed", stage="upstream", error=str(exc))
        return _error(status.HTTP_502_BAD_GATEWAY, "OpenAI request failed", str(exc))
    except CoachingPayloadError as exc:
        logger.warning("Coaching payload rejected: %s", exc)
        emit_event("coaching_failed", stage="payload", error=str(exc))
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate coaching guidance", str(exc))

    return JSONResponse(guidance.model_dump(by_alias=True, exclude={"status"}, exclude_none=True))


__all__ = ["router"]
