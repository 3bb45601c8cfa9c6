"""Read-only lesson catalog for the intermediate investing curriculum."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field


class UnknownLessonError(LookupError):
    """Raised when an operation references a lesson id outside the catalog."""

    def __init__(self, lesson_id: str) -> None:
        super().__init__(f"Lesson '{lesson_id}' was not found in the catalog.")
        self.lesson_id = lesson_id


class Lesson(BaseModel):
    """Single module in the curriculum. Activity order drives guided practice."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    objective: str
    activities: Tuple[str, ...] = Field(default_factory=tuple)
    mastery_signals: Tuple[str, ...] = Field(default_factory=tuple)

    @property
    def activity_count(self) -> int:
        return len(self.activities)


FOUNDATION_CHECKLIST: Tuple[str, ...] = (
    "Select one listed business and map what it sells, who buys it, and how it makes money.",
    "Identify major revenue streams, major costs, and one long-term growth driver.",
    "Document competitive pressure, barriers to entry, and key business risks.",
    "Write one reflection on how evidence changed your original assumption.",
)


INTERMEDIATE_LESSONS: Tuple[Lesson, ...] = (
    Lesson(
        id="business-models",
        title="Business Models and Industry Forces",
        objective="Compare three listed businesses and explain which has stronger structural advantages.",
        activities=(
            "Map each business model: revenue sources, cost base, and customer type.",
            "Score industry forces: buyer power, supplier power, substitution risk, and rivalry.",
            "Rate barriers to entry as high, medium, or low with reasoning.",
        ),
        mastery_signals=(
            "Complete a 3-business comparison worksheet.",
            "Explain one durable advantage and one possible erosion risk.",
        ),
    ),
    Lesson(
        id="management-quality",
        title="Assessing Leadership and Capital Allocation",
        objective="Evaluate leadership quality from decisions, communication, and ownership alignment.",
        activities=(
            "Collect examples of clear and unclear decision-making from investor updates.",
            "Review reinvestment choices, debt usage, and return goals.",
            "Score transparency using a reusable rubric.",
        ),
        mastery_signals=(
            "Provide one positive and one negative leadership case with three evidence points each.",
        ),
    ),
    Lesson(
        id="portfolio-management",
        title="Portfolio Construction and Risk Positioning",
        objective="Position holdings according to conviction, downside risk, and diversification need.",
        activities=(
            "Identify highest and lowest sector exposure.",
            "Set target position sizes using probability-weighted risk/reward.",
            "Create rebalance rules for new information and thesis breaks.",
        ),
        mastery_signals=("Submit a portfolio map with risk notes and action triggers.",),
    ),
    Lesson(
        id="fair-value",
        title="Estimating Fair Value",
        objective="Use simple valuation assumptions to classify opportunities as fair, high, or low priced.",
        activities=(
            "Build baseline, optimistic, and conservative cases.",
            "Estimate value range and margin of safety.",
            "Document assumptions in plain language.",
        ),
        mastery_signals=("Label three opportunities with valuation rationale.",),
    ),
    Lesson(
        id="idea-discovery",
        title="Discovering New Ideas",
        objective="Expand beyond current holdings into underrepresented sectors.",
        activities=(
            "Use screeners to find one opportunity in an unfamiliar segment.",
            "Run a quick quality and risk triage.",
            "Decide whether to watch, research deeper, or reject.",
        ),
        mastery_signals=("Add at least one new sector exposure to watchlist or portfolio plan.",),
    ),
    Lesson(
        id="investor-psychology",
        title="Investor Psychology",
        objective="Reduce bias-driven decisions with a personal checklist.",
        activities=(
            "Identify one previous mistake and the bias behind it.",
            "Build a pre-buy checklist for evidence quality, position sizing, and downside planning.",
            "Practice journaling before and after decisions.",
        ),
        mastery_signals=("Submit a personal anti-bias checklist and one reflection entry.",),
    ),
)


class LessonCatalog:
    """Ordered, id-indexed view over an immutable set of lessons."""

    def __init__(self, lessons: Iterable[Lesson]) -> None:
        ordered = tuple(lessons)
        index: Dict[str, Lesson] = {}
        for lesson in ordered:
            if lesson.id in index:
                raise ValueError(f"Duplicate lesson id '{lesson.id}' in catalog.")
            index[lesson.id] = lesson
        self._lessons = ordered
        self._index = index

    def __iter__(self) -> Iterator[Lesson]:
        return iter(self._lessons)

    def __len__(self) -> int:
        return len(self._lessons)

    def __contains__(self, lesson_id: object) -> bool:
        return lesson_id in self._index

    @property
    def lessons(self) -> Tuple[Lesson, ...]:
        return self._lessons

    def ids(self) -> List[str]:
        return [lesson.id for lesson in self._lessons]

    def find(self, lesson_id: str) -> Optional[Lesson]:
        return self._index.get(lesson_id)

    def get(self, lesson_id: str) -> Lesson:
        lesson = self._index.get(lesson_id)
        if lesson is None:
            raise UnknownLessonError(lesson_id)
        return lesson

    def titles_for(self, lesson_ids: Sequence[str]) -> List[str]:
        """Resolve ids to titles, skipping ids the catalog does not know."""
        return [lesson.title for lesson in (self._index.get(lesson_id) for lesson_id in lesson_ids) if lesson]

    def total_activities(self) -> int:
        return sum(lesson.activity_count for lesson in self._lessons)


default_catalog = LessonCatalog(INTERMEDIATE_LESSONS)

__all__ = [
    "FOUNDATION_CHECKLIST",
    "INTERMEDIATE_LESSONS",
    "Lesson",
    "LessonCatalog",
    "UnknownLessonError",
    "default_catalog",
]
