"""Session-scoped learner workspaces kept in process memory."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .adaptive import SAMPLE_PROFILE, LearnerProfile, recommend_path
from .catalog import LessonCatalog, default_catalog
from .progress import ProgressStore
from .progression import ModuleProgression

logger = logging.getLogger(__name__)


class UnknownSessionError(LookupError):
    """Raised when a session id is not registered in the store."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session '{session_id}' was not found.")
        self.session_id = session_id


@dataclass
class LearningSession:
    session_id: str
    profile: LearnerProfile
    progress: ProgressStore
    progression: ModuleProgression
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def catalog(self) -> LessonCatalog:
        return self.progress.catalog

    def recommended_path(self) -> List[str]:
        return recommend_path(self.profile)

    def replace_profile(self, profile: LearnerProfile) -> List[str]:
        """Swap in a new profile value and return the recomputed pathway."""
        self.profile = profile
        return recommend_path(profile)


def _normalize_session_id(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise UnknownSessionError(value)
    return normalized


class SessionStore:
    """Registry of active sessions. Nothing here outlives the process."""

    def __init__(self, catalog: Optional[LessonCatalog] = None) -> None:
        self._catalog = catalog if catalog is not None else default_catalog
        self._sessions: Dict[str, LearningSession] = {}
        self._lock = threading.Lock()

    @property
    def catalog(self) -> LessonCatalog:
        return self._catalog

    def create(self, profile: Optional[LearnerProfile] = None) -> LearningSession:
        progress = ProgressStore(self._catalog)
        session = LearningSession(
            session_id=uuid.uuid4().hex,
            profile=profile or SAMPLE_PROFILE,
            progress=progress,
            progression=ModuleProgression(progress),
        )
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info("Created learning session %s", session.session_id)
        return session

    def get(self, session_id: str) -> Optional[LearningSession]:
        try:
            key = _normalize_session_id(session_id)
        except UnknownSessionError:
            return None
        return self._sessions.get(key)

    def require(self, session_id: str) -> LearningSession:
        session = self.get(session_id)
        if session is None:
            raise UnknownSessionError(session_id)
        return session

    def delete(self, session_id: str) -> bool:
        key = _normalize_session_id(session_id)
        with self._lock:
            return self._sessions.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


session_store = SessionStore()

__all__ = [
    "LearningSession",
    "SessionStore",
    "UnknownSessionError",
    "session_store",
]
