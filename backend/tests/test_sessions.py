from __future__ import annotations

import pytest

from investease.adaptive import SAMPLE_PROFILE, LearnerProfile
from investease.catalog import Lesson, LessonCatalog
from investease.sessions import SessionStore, UnknownSessionError


def test_sessions_are_isolated() -> None:
    store = SessionStore()
    first = store.create()
    second = store.create()

    first.progress.mark_activity_complete("fair-value", 0)

    assert first.session_id != second.session_id
    assert second.progress.completed_activity_total() == 0
    assert first.profile == SAMPLE_PROFILE


def test_replace_profile_returns_new_pathway() -> None:
    store = SessionStore()
    session = store.create()

    path = session.replace_profile(LearnerProfile(confidence=1, valuation_skill=10, behavior_discipline=10))

    assert path[0] == "business-models"
    assert session.recommended_path() == path


def test_lookup_is_case_insensitive_and_delete_works() -> None:
    store = SessionStore()
    session = store.create()

    assert store.require(session.session_id.upper()) is session
    assert store.delete(session.session_id) is True
    assert store.get(session.session_id) is None
    with pytest.raises(UnknownSessionError):
        store.require(session.session_id)
    assert store.get("   ") is None


def test_custom_catalog_flows_into_sessions() -> None:
    catalog = LessonCatalog([Lesson(id="orientation", title="Orientation", objective="Meet the studio.")])
    store = SessionStore(catalog)

    session = store.create()

    assert session.catalog is catalog
    assert session.progress.summary().total_lessons == 1
