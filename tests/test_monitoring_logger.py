#tests/test_monitoring_logger.py
"""
Tests for monitoring.logger.JsonFileLogger and log_event.

Covers:
- One JSON object per line with the expected fields
- Non-finite costs in payloads are written as strings
- log_event without a bus is a no-op
- close() detaches from the bus
"""

from __future__ import annotations

import json
import math
from pathlib import Path

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import JsonFileLogger, log_event


def test_json_file_logger_writes_jsonl(tmp_path: Path):
    bus = EventBus()
    log_path = tmp_path / "nested" / "events.log"
    logger = JsonFileLogger(log_path, bus)

    log_event(
        bus=bus,
        module="blocknav.navigator",
        event_type=EventType.PLAN_CREATED,
        message="Path of 6 cells",
        payload={"length": 6, "goal": [5, 0]},
        correlation_id="goal-1",
    )
    log_event(bus, "blocknav.navigator", EventType.GOAL_REACHED, "done")
    logger.close()

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2

    first = json.loads(lines[0])
    assert first["module"] == "blocknav.navigator"
    assert first["event_type"] == "PLAN_CREATED"
    assert first["payload"] == {"length": 6, "goal": [5, 0]}
    assert first["correlation_id"] == "goal-1"
    assert isinstance(first["ts"], (int, float))

    second = json.loads(lines[1])
    assert second["event_type"] == "GOAL_REACHED"
    assert second["payload"] == {}
    assert logger.path == log_path


def test_infinite_costs_are_json_safe(tmp_path: Path):
    bus = EventBus()
    log_path = tmp_path / "events.log"
    logger = JsonFileLogger(log_path, bus)

    log_event(
        bus,
        "blocknav.scanner",
        EventType.SCAN_COMPLETED,
        "scan",
        payload={"costs": {"lava": math.inf, "water": 10.0}, "window": (1, 2)},
    )
    logger.close()

    data = json.loads(log_path.read_text(encoding="utf-8"))
    assert data["payload"]["costs"] == {"lava": "inf", "water": 10.0}
    assert data["payload"]["window"] == [1, 2]


def test_log_event_without_bus_is_noop():
    log_event(None, "blocknav.navigator", EventType.LOG, "nobody listening")


def test_closed_logger_stops_writing(tmp_path: Path):
    bus = EventBus()
    log_path = tmp_path / "events.log"
    logger = JsonFileLogger(log_path, bus)
    logger.close()

    log_event(bus, "test", EventType.LOG, "after close")

    assert log_path.read_text(encoding="utf-8") == ""
