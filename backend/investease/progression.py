"""Module progression state machine: brief → practice → training → checkpoint → completion."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Callable, Dict, List, Literal, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from .catalog import Lesson
from .progress import InvalidProgressError, LessonProgress, ModuleStage, ProgressStore
from .telemetry import emit_event
from .training import CheckpointQuestion, TrainingPack, training_pack_for

logger = logging.getLogger(__name__)

PASS_FRACTION = Fraction(2, 3)

TransitionGuard = Literal["activities_complete", "checkpoint_passed"]


@dataclass(frozen=True)
class _Transition:
    target: ModuleStage
    guard: Optional[TransitionGuard] = None


# Completion has no outgoing forward edge and is only reachable from Checkpoint.
TRANSITIONS: Dict[ModuleStage, _Transition] = {
    ModuleStage.BRIEF: _Transition(ModuleStage.GUIDED_PRACTICE),
    ModuleStage.GUIDED_PRACTICE: _Transition(ModuleStage.DEEP_TRAINING, guard="activities_complete"),
    ModuleStage.DEEP_TRAINING: _Transition(ModuleStage.CHECKPOINT),
    ModuleStage.CHECKPOINT: _Transition(ModuleStage.COMPLETION, guard="checkpoint_passed"),
}


def pass_threshold(question_count: int) -> int:
    """Minimum score to pass: two thirds of the questions, rounded up."""
    return math.ceil(PASS_FRACTION * max(question_count, 0))


def score_answers(questions: Sequence[CheckpointQuestion], answers: Mapping[int, int]) -> int:
    return sum(1 for index, question in enumerate(questions) if answers.get(index) == question.correct_index)


class QuestionReview(BaseModel):
    index: int
    prompt: str
    selected_index: Optional[int] = None
    correct_index: int
    correct: bool
    explanation: str = ""


class CheckpointResult(BaseModel):
    lesson_id: str
    score: int = Field(ge=0)
    required: int = Field(ge=0)
    total: int = Field(ge=0)
    passed: bool
    stage: int
    stage_label: str
    review: List[QuestionReview] = Field(default_factory=list)


class ModuleProgression:
    """Drives lessons through their stages against a :class:`ProgressStore`.

    Refused transitions return ``False`` (or ``None`` for submissions) and leave
    the store untouched. Unknown lesson ids raise ``UnknownLessonError``.
    """

    def __init__(
        self,
        store: ProgressStore,
        *,
        pack_resolver: Callable[[Lesson], TrainingPack] = training_pack_for,
    ) -> None:
        self._store = store
        self._pack_resolver = pack_resolver
        self._packs: Dict[str, TrainingPack] = {}

    @property
    def store(self) -> ProgressStore:
        return self._store

    def training_pack(self, lesson_id: str) -> TrainingPack:
        pack = self._packs.get(lesson_id)
        if pack is None:
            pack = self._pack_resolver(self._store.catalog.get(lesson_id))
            self._packs[lesson_id] = pack
        return pack

    def questions(self, lesson_id: str) -> List[CheckpointQuestion]:
        return list(self.training_pack(lesson_id).checkpoint)

    def stage(self, lesson_id: str) -> ModuleStage:
        return self._store.record(lesson_id).stage

    def _guard_allows(self, record: LessonProgress, guard: Optional[TransitionGuard]) -> bool:
        if guard is None:
            return True
        if guard == "activities_complete":
            return self._store.all_activities_complete(record.lesson_id)
        if guard == "checkpoint_passed":
            if not record.submitted:
                return False
            questions = self.questions(record.lesson_id)
            return score_answers(questions, record.answers) >= pass_threshold(len(questions))
        raise ValueError(f"Unknown transition guard '{guard}'.")

    def can_advance(self, lesson_id: str) -> bool:
        record = self._store.record(lesson_id)
        transition = TRANSITIONS.get(record.stage)
        if transition is None:
            return False
        return self._guard_allows(record, transition.guard)

    def advance(self, lesson_id: str) -> bool:
        with self._store.editing(lesson_id) as record:
            transition = TRANSITIONS.get(record.stage)
            if transition is None or not self._guard_allows(record, transition.guard):
                logger.debug("Refused advance for %s at stage %s", lesson_id, record.stage.label)
                return False
            previous = record.stage
            self._enter(record, transition.target)
        self._emit_stage_change(lesson_id, previous, transition.target, "advance")
        return True

    def begin_practice(self, lesson_id: str) -> bool:
        """Explicit Brief → Guided Practice action; refused from any other stage."""
        with self._store.editing(lesson_id) as record:
            if record.stage != ModuleStage.BRIEF:
                return False
            self._enter(record, ModuleStage.GUIDED_PRACTICE)
        self._emit_stage_change(lesson_id, ModuleStage.BRIEF, ModuleStage.GUIDED_PRACTICE, "begin_practice")
        return True

    def go_back(self, lesson_id: str) -> bool:
        """Step back one stage for review. Completion data is left untouched."""
        with self._store.editing(lesson_id) as record:
            if record.stage == ModuleStage.BRIEF:
                return False
            previous = record.stage
            record.stage = ModuleStage(previous - 1)
            target = record.stage
        self._emit_stage_change(lesson_id, previous, target, "go_back")
        return True

    def select_answer(self, lesson_id: str, question_index: int, option_index: int) -> bool:
        """Record a checkpoint answer. Any change after submission requires resubmitting."""
        questions = self.questions(lesson_id)
        if not 0 <= question_index < len(questions):
            raise InvalidProgressError(
                f"Question {question_index} does not exist for lesson '{lesson_id}' ({len(questions)} questions)."
            )
        options = questions[question_index].options
        if not 0 <= option_index < len(options):
            raise InvalidProgressError(
                f"Option {option_index} does not exist for question {question_index} ({len(options)} options)."
            )
        with self._store.editing(lesson_id) as record:
            if record.stage != ModuleStage.CHECKPOINT:
                return False
            record.answers[question_index] = option_index
            if record.submitted:
                record.submitted = False
                logger.debug("Answer changed after submission for %s; resubmission required", lesson_id)
        return True

    def submit_checkpoint(self, lesson_id: str) -> Optional[CheckpointResult]:
        """Score the checkpoint and, on a pass, move the lesson to Completion."""
        questions = self.questions(lesson_id)
        required = pass_threshold(len(questions))
        with self._store.editing(lesson_id) as record:
            if record.stage != ModuleStage.CHECKPOINT:
                return None
            answers = dict(record.answers)
            score = score_answers(questions, answers)
            passed = score >= required
            record.submitted = True
            record.last_score = score
            if passed:
                self._enter(record, ModuleStage.COMPLETION)
            stage = record.stage

        emit_event(
            "checkpoint_submitted",
            lesson_id=lesson_id,
            score=score,
            required=required,
            total=len(questions),
            passed=passed,
        )
        if passed:
            self._emit_stage_change(lesson_id, ModuleStage.CHECKPOINT, ModuleStage.COMPLETION, "checkpoint_pass")

        return CheckpointResult(
            lesson_id=lesson_id,
            score=score,
            required=required,
            total=len(questions),
            passed=passed,
            stage=int(stage),
            stage_label=stage.label,
            review=[
                QuestionReview(
                    index=index,
                    prompt=question.prompt,
                    selected_index=answers.get(index),
                    correct_index=question.correct_index,
                    correct=answers.get(index) == question.correct_index,
                    explanation=question.explanation,
                )
                for index, question in enumerate(questions)
            ],
        )

    @staticmethod
    def _enter(record: LessonProgress, target: ModuleStage) -> None:
        record.stage = target
        if target == ModuleStage.COMPLETION:
            record.ever_completed = True

    @staticmethod
    def _emit_stage_change(lesson_id: str, source: ModuleStage, target: ModuleStage, trigger: str) -> None:
        emit_event(
            "module_stage_changed",
            lesson_id=lesson_id,
            from_stage=source,
            to_stage=target,
            trigger=trigger,
        )


__all__ = [
    "CheckpointResult",
    "ModuleProgression",
    "PASS_FRACTION",
    "QuestionReview",
    "TRANSITIONS",
    "pass_threshold",
    "score_answers",
]
