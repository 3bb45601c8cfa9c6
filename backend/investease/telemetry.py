"""In-process telemetry hooks for progression and coaching events."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, Iterator, List

from pydantic import BaseModel

logger = logging.getLogger("investease.telemetry")

TelemetryListener = Callable[["TelemetryEvent"], None]


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


_listeners: List[TelemetryListener] = []
_lock = RLock()


def register_listener(listener: TelemetryListener) -> None:
    with _lock:
        _listeners.append(listener)


def unregister_listener(listener: TelemetryListener) -> None:
    with _lock:
        if listener in _listeners:
            _listeners.remove(listener)


def clear_listeners() -> None:
    with _lock:
        _listeners.clear()


@contextmanager
def capture_events(*names: str) -> Iterator[List[TelemetryEvent]]:
    """Collect events emitted inside the block, optionally filtered by name."""
    captured: List[TelemetryEvent] = []

    def _collect(event: TelemetryEvent) -> None:
        if not names or event.name in names:
            captured.append(event)

    register_listener(_collect)
    try:
        yield captured
    finally:
        unregister_listener(_collect)


def emit_event(name: str, **fields: Any) -> None:
    """Deliver an event to every listener, then log it as one JSON line.

    A failing listener is logged and skipped; the remaining listeners still run.
    """
    event = TelemetryEvent(name=name, payload={key: _plain(value) for key, value in fields.items()})

    with _lock:
        listeners = list(_listeners)
    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    if logger.isEnabledFor(logging.INFO):
        record = {"event": name, "at": event.emitted_at.isoformat(), **event.payload}
        logger.info("TELEMETRY %s", json.dumps(record, default=str, sort_keys=True))


def _plain(value: Any) -> Any:
    # Stages and other enums are reported by lower-case name ("deep_training").
    if isinstance(value, Enum):
        return value.name.lower()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(item) for item in value]
    return value


__all__ = [
    "TelemetryEvent",
    "TelemetryListener",
    "capture_events",
    "clear_listeners",
    "emit_event",
    "register_listener",
    "unregister_listener",
]
