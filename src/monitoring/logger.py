# JSONL sink for navigation events
"""
Writes navigation MonitoringEvents to disk and publishes them.

- JsonFileLogger: one JSON object per line for every event on a bus, used
  by tools/nav_demo.py --events to keep a replayable record of a run.
- log_event: builds and publishes a MonitoringEvent; every Navigator event
  goes through it (see runtime.failure_mitigation for the failure kinds).
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from .bus import EventBus
from .events import EventType, MonitoringEvent


log = logging.getLogger(__name__)


class JsonFileLogger:
    """Append every event published on `bus` to `path` as UTF-8 JSON lines."""

    def __init__(self, path: Path, bus: EventBus) -> None:
        self._path = path
        self._bus = bus
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file = path.open("a", encoding="utf-8")
        bus.subscribe(self._on_event)

    @property
    def path(self) -> Path:
        return self._path

    def _on_event(self, event: MonitoringEvent) -> None:
        """Write one event as a JSON object line."""
        line = json.dumps(event.to_dict(), ensure_ascii=False)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except (OSError, ValueError):
            # Disk full or handle already closed; logging must not crash navigation.
            log.warning("Dropping monitoring event %s for %s", event.event_type.name, self._path)

    def close(self) -> None:
        """Stop listening and close the file."""
        self._bus.unsubscribe(self._on_event)
        self._file.close()


def log_event(
    bus: Optional[EventBus],
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Publish one MonitoringEvent stamped with the current time.

    bus=None is a no-op, so a Navigator built without monitoring pays
    nothing. `correlation_id` ties together the events of one goal.
    """
    if bus is None:
        return
    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)
