"""Session-scoped REST endpoints for pathways, lesson progression, and coaching."""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Path, status
from pydantic import BaseModel, Field

from .adaptive import NEED_CRITERIA, LearnerProfile, need_scores, recommend_path
from .cache import coaching_cache
from .catalog import FOUNDATION_CHECKLIST, Lesson, UnknownLessonError
from .coaching import CoachingGuidance, CoachingOutcome, CoachingUnavailable, request_coaching
from .config import Settings, get_settings
from .progress import InvalidProgressError, LessonProgressSnapshot, ProgressSummary
from .progression import CheckpointResult
from .sessions import LearningSession, UnknownSessionError, session_store
from .training import TrainingPack

router = APIRouter(prefix="/api/studio", tags=["studio"])
logger = logging.getLogger(__name__)


class CatalogResponse(BaseModel):
    foundation_checklist: List[str]
    lessons: List[Lesson]
    profile_linked_lessons: List[str]


class SessionCreateRequest(BaseModel):
    profile: Optional[LearnerProfile] = None


class PathwayEntry(BaseModel):
    lesson_id: str
    title: str
    need_score: int


class SessionResponse(BaseModel):
    session_id: str
    profile: LearnerProfile
    pathway: List[PathwayEntry]
    progress: ProgressSummary


class LessonDetailResponse(BaseModel):
    lesson: Lesson
    training_pack: TrainingPack
    progress: LessonProgressSnapshot
    can_advance: bool


class TransitionResponse(BaseModel):
    lesson_id: str
    changed: bool
    can_advance: bool
    progress: LessonProgressSnapshot


class ActivityResponse(BaseModel):
    lesson_id: str
    index: int
    newly_completed: bool
    can_advance: bool
    overall_completion_ratio: float
    progress: LessonProgressSnapshot


class AnswerRequest(BaseModel):
    option: int = Field(..., ge=0)


class SubmissionResponse(BaseModel):
    lesson_id: str
    submitted: bool
    result: Optional[CheckpointResult] = None
    course_complete: bool


class CoachingStateResponse(BaseModel):
    applied: bool = True
    pending: bool = False
    outcome: Optional[CoachingOutcome] = None


def _require_session(session_id: str = Path(..., min_length=1)) -> LearningSession:
    try:
        return session_store.require(session_id)
    except UnknownSessionError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def _require_lesson(session: LearningSession, lesson_id: str) -> Lesson:
    try:
        return session.catalog.get(lesson_id)
    except UnknownLessonError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def _invalid(exc: InvalidProgressError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


def _pathway(session: LearningSession) -> List[PathwayEntry]:
    scores = need_scores(session.profile)
    entries: List[PathwayEntry] = []
    for lesson_id in recommend_path(session.profile):
        lesson = session.catalog.find(lesson_id)
        entries.append(
            PathwayEntry(
                lesson_id=lesson_id,
                title=lesson.title if lesson else lesson_id,
                need_score=scores[lesson_id],
            )
        )
    return entries


def _session_payload(session: LearningSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        profile=session.profile,
        pathway=_pathway(session),
        progress=session.progress.summary(),
    )


def _transition_payload(session: LearningSession, lesson_id: str, changed: bool) -> TransitionResponse:
    return TransitionResponse(
        lesson_id=lesson_id,
        changed=changed,
        can_advance=session.progression.can_advance(lesson_id),
        progress=session.progress.snapshot(lesson_id),
    )


@router.get("/catalog", response_model=CatalogResponse)
def get_catalog() -> CatalogResponse:
    catalog = session_store.catalog
    return CatalogResponse(
        foundation_checklist=list(FOUNDATION_CHECKLIST),
        lessons=list(catalog.lessons),
        profile_linked_lessons=[criterion.lesson_id for criterion in NEED_CRITERIA],
    )


@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(payload: Optional[SessionCreateRequest] = None) -> SessionResponse:
    session = session_store.create(payload.profile if payload else None)
    return _session_payload(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session: LearningSession = Depends(_require_session)) -> SessionResponse:
    return _session_payload(session)


@router.put("/sessions/{session_id}/profile", response_model=SessionResponse)
def replace_profile(
    profile: LearnerProfile,
    session: LearningSession = Depends(_require_session),
) -> SessionResponse:
    session.replace_profile(profile)
    logger.debug("Profile replaced for session %s", session.session_id)
    return _session_payload(session)


@router.get("/sessions/{session_id}/lessons/{lesson_id}", response_model=LessonDetailResponse)
def get_lesson(lesson_id: str, session: LearningSession = Depends(_require_session)) -> LessonDetailResponse:
    lesson = _require_lesson(session, lesson_id)
    return LessonDetailResponse(
        lesson=lesson,
        training_pack=session.progression.training_pack(lesson_id),
        progress=session.progress.snapshot(lesson_id),
        can_advance=session.progression.can_advance(lesson_id),
    )


@router.post("/sessions/{session_id}/lessons/{lesson_id}/activities/{index}", response_model=ActivityResponse)
def complete_activity(
    lesson_id: str,
    index: int,
    session: LearningSession = Depends(_require_session),
) -> ActivityResponse:
    _require_lesson(session, lesson_id)
    try:
        newly_completed = session.progress.mark_activity_complete(lesson_id, index)
    except InvalidProgressError as exc:
        raise _invalid(exc) from exc
    return ActivityResponse(
        lesson_id=lesson_id,
        index=index,
        newly_completed=newly_completed,
        can_advance=session.progression.can_advance(lesson_id),
        overall_completion_ratio=session.progress.overall_completion_ratio(),
        progress=session.progress.snapshot(lesson_id),
    )


@router.post("/sessions/{session_id}/lessons/{lesson_id}/begin", response_model=TransitionResponse)
def begin_practice(lesson_id: str, session: LearningSession = Depends(_require_session)) -> TransitionResponse:
    _require_lesson(session, lesson_id)
    changed = session.progression.begin_practice(lesson_id)
    return _transition_payload(session, lesson_id, changed)


@router.post("/sessions/{session_id}/lessons/{lesson_id}/advance", response_model=TransitionResponse)
def advance_stage(lesson_id: str, session: LearningSession = Depends(_require_session)) -> TransitionResponse:
    _require_lesson(session, lesson_id)
    changed = session.progression.advance(lesson_id)
    return _transition_payload(session, lesson_id, changed)


@router.post("/sessions/{session_id}/lessons/{lesson_id}/back", response_model=TransitionResponse)
def go_back(lesson_id: str, session: LearningSession = Depends(_require_session)) -> TransitionResponse:
    _require_lesson(session, lesson_id)
    changed = session.progression.go_back(lesson_id)
    return _transition_payload(session, lesson_id, changed)


@router.put("/sessions/{session_id}/lessons/{lesson_id}/answers/{question}", response_model=TransitionResponse)
def select_answer(
    lesson_id: str,
    question: int,
    payload: AnswerRequest,
    session: LearningSession = Depends(_require_session),
) -> TransitionResponse:
    _require_lesson(session, lesson_id)
    try:
        changed = session.progression.select_answer(lesson_id, question, payload.option)
    except InvalidProgressError as exc:
        raise _invalid(exc) from exc
    return _transition_payload(session, lesson_id, changed)


@router.post("/sessions/{session_id}/lessons/{lesson_id}/checkpoint", response_model=SubmissionResponse)
def submit_checkpoint(lesson_id: str, session: LearningSession = Depends(_require_session)) -> SubmissionResponse:
    _require_lesson(session, lesson_id)
    result = session.progression.submit_checkpoint(lesson_id)
    return SubmissionResponse(
        lesson_id=lesson_id,
        submitted=result is not None,
        result=result,
        course_complete=session.progress.course_complete(),
    )


@router.post("/sessions/{session_id}/coach", response_model=CoachingStateResponse)
async def refresh_coaching(
    session: LearningSession = Depends(_require_session),
    settings: Settings = Depends(get_settings),
) -> CoachingStateResponse:
    ticket = coaching_cache.begin(session.session_id)
    profile = session.profile
    titles = session.catalog.titles_for(recommend_path(profile))
    outcome: Union[CoachingGuidance, CoachingUnavailable]
    if titles:
        outcome = await request_coaching(profile, titles, settings=settings)
    else:
        outcome = CoachingUnavailable(reason="No recommended lessons to coach on.")
    applied = coaching_cache.resolve(session.session_id, ticket, outcome)
    if not applied:
        logger.info("Dropped superseded coaching response for session %s", session.session_id)
    return CoachingStateResponse(
        applied=applied,
        pending=coaching_cache.pending(session.session_id),
        outcome=coaching_cache.get(session.session_id),
    )


@router.get("/sessions/{session_id}/coach", response_model=CoachingStateResponse)
def get_coaching(session: LearningSession = Depends(_require_session)) -> CoachingStateResponse:
    return CoachingStateResponse(
        pending=coaching_cache.pending(session.session_id),
        outcome=coaching_cache.get(session.session_id),
    )


__all__ = ["router"]
