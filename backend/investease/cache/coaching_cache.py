"""In-memory, last-request-wins cache for session coaching outcomes."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _normalize_session_id(session_id: str) -> str:
    normalized = session_id.strip().lower()
    if not normalized:
        raise ValueError("Session id cannot be empty when caching coaching outcomes.")
    return normalized


@dataclass
class _CoachingEntry:
    latest_ticket: int = 0
    applied_ticket: int = 0
    outcome: Any = None
    resolved_at: Optional[datetime] = None


class CoachingCache:
    """Process-local cache holding the newest coaching outcome per session.

    ``begin`` hands out increasing tickets; ``resolve`` only stores an outcome
    whose ticket is still the newest, so late answers from superseded
    requests are dropped.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, _CoachingEntry] = {}
        self._lock = threading.Lock()

    def begin(self, session_id: str) -> int:
        key = _normalize_session_id(session_id)
        with self._lock:
            entry = self._entries.setdefault(key, _CoachingEntry())
            entry.latest_ticket += 1
            return entry.latest_ticket

    def resolve(self, session_id: str, ticket: int, outcome: Any) -> bool:
        key = _normalize_session_id(session_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or ticket != entry.latest_ticket:
                return False
            payload = outcome
            if hasattr(outcome, "model_copy"):
                payload = outcome.model_copy(deep=True)
            entry.outcome = payload
            entry.applied_ticket = ticket
            entry.resolved_at = datetime.now(timezone.utc)
            return True

    def get(self, session_id: str) -> Optional[Any]:
        key = _normalize_session_id(session_id)
        entry = self._entries.get(key)
        if entry is None or entry.outcome is None:
            return None
        outcome = entry.outcome
        if hasattr(outcome, "model_copy"):
            return outcome.model_copy(deep=True)
        return outcome

    def pending(self, session_id: str) -> bool:
        key = _normalize_session_id(session_id)
        entry = self._entries.get(key)
        return entry is not None and entry.latest_ticket != entry.applied_ticket

    def invalidate(self, session_id: str) -> None:
        key = _normalize_session_id(session_id)
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


coaching_cache = CoachingCache()

__all__ = ["CoachingCache", "coaching_cache"]
