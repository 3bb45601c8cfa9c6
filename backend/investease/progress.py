"""Session-scoped progress records, one per lesson, guarded per lesson key."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Set

from pydantic import BaseModel, Field

from .catalog import Lesson, LessonCatalog, default_catalog

logger = logging.getLogger(__name__)


class ModuleStage(IntEnum):
    BRIEF = 0
    GUIDED_PRACTICE = 1
    DEEP_TRAINING = 2
    CHECKPOINT = 3
    COMPLETION = 4

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


class InvalidProgressError(ValueError):
    """Raised when an activity, question, or option index does not exist for a lesson."""


@dataclass
class LessonProgress:
    lesson_id: str
    completed_activities: Set[int] = field(default_factory=set)
    stage: ModuleStage = ModuleStage.BRIEF
    answers: Dict[int, int] = field(default_factory=dict)
    submitted: bool = False
    last_score: Optional[int] = None
    ever_completed: bool = False

    def copy(self) -> "LessonProgress":
        return LessonProgress(
            lesson_id=self.lesson_id,
            completed_activities=set(self.completed_activities),
            stage=self.stage,
            answers=dict(self.answers),
            submitted=self.submitted,
            last_score=self.last_score,
            ever_completed=self.ever_completed,
        )


class LessonProgressSnapshot(BaseModel):
    lesson_id: str
    stage: int
    stage_label: str
    completed_activities: List[int] = Field(default_factory=list)
    completion_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    answers: Dict[int, int] = Field(default_factory=dict)
    submitted: bool = False
    last_score: Optional[int] = None
    ever_completed: bool = False


class ProgressSummary(BaseModel):
    total_activities: int
    completed_activities: int
    overall_completion_ratio: float = Field(ge=0.0, le=1.0)
    completed_lessons: int
    total_lessons: int
    course_complete: bool
    lessons: List[LessonProgressSnapshot] = Field(default_factory=list)


def _ratio(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator


class ProgressStore:
    """In-memory progress keyed by lesson id.

    Writes go through :meth:`editing`, which serializes mutations per lesson.
    Reading one lesson never waits on another lesson's lock.
    """

    def __init__(self, catalog: Optional[LessonCatalog] = None) -> None:
        self._catalog = catalog if catalog is not None else default_catalog
        self._records: Dict[str, LessonProgress] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @property
    def catalog(self) -> LessonCatalog:
        return self._catalog

    def _lock_for(self, lesson_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(lesson_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[lesson_id] = lock
            return lock

    def _validate_activity(self, lesson: Lesson, index: int) -> None:
        if not 0 <= index < lesson.activity_count:
            raise InvalidProgressError(
                f"Activity {index} does not exist for lesson '{lesson.id}' "
                f"({lesson.activity_count} activities)."
            )

    @contextmanager
    def editing(self, lesson_id: str) -> Iterator[LessonProgress]:
        """Yield the live record for ``lesson_id`` while holding its lock."""
        self._catalog.get(lesson_id)
        with self._lock_for(lesson_id):
            record = self._records.get(lesson_id)
            if record is None:
                record = LessonProgress(lesson_id=lesson_id)
                self._records[lesson_id] = record
            yield record

    def record(self, lesson_id: str) -> LessonProgress:
        """Return a detached copy of the lesson's progress."""
        self._catalog.get(lesson_id)
        with self._lock_for(lesson_id):
            record = self._records.get(lesson_id)
            if record is None:
                return LessonProgress(lesson_id=lesson_id)
            return record.copy()

    def is_activity_complete(self, lesson_id: str, index: int) -> bool:
        lesson = self._catalog.get(lesson_id)
        self._validate_activity(lesson, index)
        record = self._records.get(lesson_id)
        return record is not None and index in record.completed_activities

    def mark_activity_complete(self, lesson_id: str, index: int) -> bool:
        """Mark an activity done. Returns False when it was already marked."""
        lesson = self._catalog.get(lesson_id)
        self._validate_activity(lesson, index)
        with self.editing(lesson_id) as record:
            if index in record.completed_activities:
                return False
            record.completed_activities.add(index)
        logger.debug("Marked activity %s complete for %s", index, lesson_id)
        return True

    def completion_ratio(self, lesson_id: str) -> float:
        lesson = self._catalog.get(lesson_id)
        record = self._records.get(lesson_id)
        completed = len(record.completed_activities) if record else 0
        return _ratio(completed, lesson.activity_count)

    def all_activities_complete(self, lesson_id: str) -> bool:
        lesson = self._catalog.get(lesson_id)
        record = self._records.get(lesson_id)
        completed = record.completed_activities if record else set()
        return all(index in completed for index in range(lesson.activity_count))

    def completed_activity_total(self) -> int:
        return sum(len(record.completed_activities) for record in list(self._records.values()))

    def overall_completion_ratio(self) -> float:
        return _ratio(self.completed_activity_total(), self._catalog.total_activities())

    def ever_completed(self, lesson_id: str) -> bool:
        self._catalog.get(lesson_id)
        record = self._records.get(lesson_id)
        return record is not None and record.ever_completed

    def completed_lesson_count(self) -> int:
        return sum(1 for record in list(self._records.values()) if record.ever_completed)

    def course_complete(self) -> bool:
        """True once every catalog lesson has reached Completion at least once."""
        if len(self._catalog) == 0:
            return False
        return all(self.ever_completed(lesson.id) for lesson in self._catalog)

    def snapshot(self, lesson_id: str) -> LessonProgressSnapshot:
        lesson = self._catalog.get(lesson_id)
        record = self.record(lesson_id)
        return LessonProgressSnapshot(
            lesson_id=lesson_id,
            stage=int(record.stage),
            stage_label=record.stage.label,
            completed_activities=sorted(record.completed_activities),
            completion_ratio=_ratio(len(record.completed_activities), lesson.activity_count),
            answers=dict(sorted(record.answers.items())),
            submitted=record.submitted,
            last_score=record.last_score,
            ever_completed=record.ever_completed,
        )

    def summary(self) -> ProgressSummary:
        return ProgressSummary(
            total_activities=self._catalog.total_activities(),
            completed_activities=self.completed_activity_total(),
            overall_completion_ratio=self.overall_completion_ratio(),
            completed_lessons=self.completed_lesson_count(),
            total_lessons=len(self._catalog),
            course_complete=self.course_complete(),
            lessons=[self.snapshot(lesson.id) for lesson in self._catalog],
        )


__all__ = [
    "InvalidProgressError",
    "LessonProgress",
    "LessonProgressSnapshot",
    "ModuleStage",
    "ProgressStore",
    "ProgressSummary",
]
