# path: src/monitoring/events.py
"""
Event schemas for navigation monitoring.

This module defines:
- EventType enum
- MonitoringEvent (structured navigation events)

All events are JSON-serializable via `.to_dict()` and are intended
for use with monitoring.bus.EventBus and monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the navigation core."""

    # Goal lifecycle
    GOAL_SET = auto()
    GOAL_REACHED = auto()

    # Perception
    SCAN_COMPLETED = auto()

    # Planning
    PLAN_CREATED = auto()
    PLAN_FAILED = auto()
    REPLANNED = auto()

    # Execution
    STEP_COMPLETED = auto()

    # Stuck detection + recovery
    STUCK_DETECTED = auto()
    RECOVERY_ATTEMPTED = auto()
    NAVIGATION_STALLED = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

def _json_safe(value: Any) -> Any:
    """Replace non-finite floats (impassable costs) with strings for JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return "inf" if value > 0 else ("-inf" if value < 0 else "nan")
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the navigator, scanner or control loop.

    All fields must be JSON-safe after to_dict().
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("blocknav.navigator", etc.)
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (goal, path length, counters)
    correlation_id: Optional[str] = None  # Used for grouping events per goal

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name  # store name, not enum
        data["payload"] = _json_safe(data["payload"])
        return data
