"""Utilities that build coaching prompts."""

from __future__ import annotations

import json
from typing import Optional, Sequence

from .adaptive import LearnerProfile

COACH_INSTRUCTIONS = (
    "You provide practical learning guidance for investing education. "
    "Do not provide personalized financial advice."
)

COACH_RESPONSE_KEYS = ("headline", "summary", "nextStep")


def clean_lesson_titles(titles: Sequence[str], *, limit: Optional[int] = None) -> list[str]:
    """Drop blank and repeated titles while keeping the recommended order."""
    cleaned: list[str] = []
    for title in titles:
        if not isinstance(title, str):
            continue
        stripped = title.strip()
        if stripped and stripped not in cleaned:
            cleaned.append(stripped)
    if limit is not None:
        cleaned = cleaned[: max(limit, 0)]
    return cleaned


def build_coaching_prompt(profile: LearnerProfile, lesson_titles: Sequence[str]) -> str:
    profile_json = json.dumps(profile.model_dump(by_alias=True), ensure_ascii=False)
    lessons_json = json.dumps(list(lesson_titles), ensure_ascii=False)
    return (
        "You are an investing learning coach. Provide concise educational guidance only.\n"
        f"Learner profile: {profile_json}\n"
        f"Next lessons: {lessons_json}\n"
        f"Return JSON with keys: {', '.join(COACH_RESPONSE_KEYS)}."
    )


__all__ = [
    "COACH_INSTRUCTIONS",
    "COACH_RESPONSE_KEYS",
    "build_coaching_prompt",
    "clean_lesson_titles",
]
