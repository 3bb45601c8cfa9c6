from __future__ import annotations

from typing import Iterator

import pytest

from investease.cache import coaching_cache
from investease.sessions import session_store
from investease.telemetry import clear_listeners


@pytest.fixture(autouse=True)
def _reset_process_state() -> Iterator[None]:
    session_store.clear()
    coaching_cache.clear()
    clear_listeners()
    yield
    session_store.clear()
    coaching_cache.clear()
    clear_listeners()
