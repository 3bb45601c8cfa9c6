"""Adaptive pathway ranking driven by the learner's self-assessment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .catalog import Lesson, LessonCatalog, default_catalog


class LearnerProfile(BaseModel):
    """Self-reported scores, nominally 1-10. Replaced wholesale on every adjustment."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    confidence: int
    valuation_skill: int = Field(..., alias="valuationSkill")
    behavior_discipline: int = Field(..., alias="behaviorDiscipline")


SAMPLE_PROFILE = LearnerProfile(confidence=4, valuation_skill=3, behavior_discipline=6)


@dataclass(frozen=True)
class _NeedCriterion:
    lesson_id: str
    score: Callable[[LearnerProfile], int]


# Listing order doubles as the tie-break for equal need-scores.
NEED_CRITERIA: Tuple[_NeedCriterion, ...] = (
    _NeedCriterion("business-models", lambda profile: 10 - profile.confidence),
    _NeedCriterion("fair-value", lambda profile: 10 - profile.valuation_skill),
    _NeedCriterion("investor-psychology", lambda profile: 10 - profile.behavior_discipline),
    _NeedCriterion(
        "portfolio-management",
        lambda profile: 7 - min(profile.confidence, profile.behavior_discipline),
    ),
)


def need_scores(profile: LearnerProfile) -> Dict[str, int]:
    return {criterion.lesson_id: criterion.score(profile) for criterion in NEED_CRITERIA}


def recommend_path(profile: LearnerProfile) -> List[str]:
    """Rank the profile-linked lessons by descending need.

    Only lessons with a need criterion are ranked; the rest of the catalog is
    never part of the pathway. Python's sort is stable, so equal scores keep
    the order of ``NEED_CRITERIA``.
    """
    scored = need_scores(profile)
    ordered = sorted(NEED_CRITERIA, key=lambda criterion: -scored[criterion.lesson_id])
    return [criterion.lesson_id for criterion in ordered]


def recommend_lessons(
    profile: LearnerProfile,
    *,
    catalog: Optional[LessonCatalog] = None,
    limit: Optional[int] = None,
) -> List[Lesson]:
    resolved = catalog if catalog is not None else default_catalog
    path = recommend_path(profile)
    if limit is not None:
        path = path[: max(limit, 0)]
    return [resolved.get(lesson_id) for lesson_id in path]


__all__ = [
    "LearnerProfile",
    "NEED_CRITERIA",
    "SAMPLE_PROFILE",
    "need_scores",
    "recommend_lessons",
    "recommend_path",
]
