from __future__ import annotations

from investease.cache import CoachingCache
from investease.coaching import CoachingGuidance, CoachingUnavailable


def test_latest_request_wins_even_when_it_resolves_first() -> None:
    cache = CoachingCache()
    first = cache.begin("session-a")
    second = cache.begin("session-a")

    assert cache.resolve("session-a", second, CoachingGuidance(summary="Newest"))
    assert cache.resolve("session-a", first, CoachingGuidance(summary="Stale")) is False

    outcome = cache.get("session-a")
    assert isinstance(outcome, CoachingGuidance)
    assert outcome.summary == "Newest"


def test_pending_until_latest_ticket_resolves() -> None:
    cache = CoachingCache()
    ticket = cache.begin("session-a")
    assert cache.pending("session-a") is True

    cache.resolve("session-a", ticket, CoachingUnavailable(reason="offline"))

    assert cache.pending("session-a") is False
    assert cache.pending("unknown") is False


def test_session_ids_are_normalized() -> None:
    cache = CoachingCache()
    ticket = cache.begin("  Session-A ")
    cache.resolve("session-a", ticket, CoachingGuidance(summary="Hi"))

    assert cache.get("SESSION-A") is not None


def test_returned_outcomes_are_copies() -> None:
    cache = CoachingCache()
    ticket = cache.begin("session-a")
    original = CoachingGuidance(summary="Original")
    cache.resolve("session-a", ticket, original)

    first = cache.get("session-a")
    second = cache.get("session-a")

    assert first == second
    assert first is not second
    assert first is not original


def test_invalidate_drops_entry_and_late_answers() -> None:
    cache = CoachingCache()
    ticket = cache.begin("session-a")
    cache.invalidate("session-a")

    assert cache.resolve("session-a", ticket, CoachingGuidance(summary="Late")) is False
    assert cache.get("session-a") is None
