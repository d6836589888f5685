# path: src/runtime/failure_mitigation.py

"""
Navigation failure helpers for blocknav.

This module centralizes how we turn navigation failures into structured
monitoring events.

It DOES NOT try to detect failures itself. Instead, it provides small,
explicit helpers that the Navigator calls when it hits trouble.

Failure classes covered:

1) Search failure
   - No path under current knowledge, or the expansion cap was hit:
       emit_search_failure(...)

2) Stale-plan obstruction
   - The immediate next cell turned out to be blocked:
       emit_obstruction_replan(...)

3) Movement non-confirmation
   - Stuck threshold reached and a recovery was attempted:
       emit_stuck_recovery(...)
   - Recovery repeatedly failed; the caller should pick a new goal:
       emit_navigation_stalled(...)
"""

from __future__ import annotations  # forward type references in type hints

from typing import Any, Dict, Optional, Sequence  # type hints

from monitoring.bus import EventBus                    # event bus used across system
from monitoring.events import EventType                # monitoring event type enum
from monitoring.logger import log_event                # convenience helper for publishing
from spec.types import Coord                           # (x, z) grid coordinate


JsonDict = Dict[str, Any]

MODULE_NAME = "blocknav.navigator"


def _coord(value: Optional[Coord]) -> Optional[list[int]]:
    return None if value is None else [int(value[0]), int(value[1])]


# ------------------------------------------------------------------------------
# 1. Search failure
# ------------------------------------------------------------------------------

def emit_search_failure(
    bus: Optional[EventBus],
    *,
    start: Coord,
    goal: Coord,
    reason: Optional[str],
    expansions: int,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Emit a PLAN_FAILED event when A* returns an empty path.

    The navigator transitions to FAILED after calling this; the caller decides
    whether to pick another goal.
    """
    payload: JsonDict = {
        "start": _coord(start),
        "goal": _coord(goal),
        "reason": reason,
        "expansions": expansions,
    }

    log_event(
        bus=bus,
        module=MODULE_NAME,
        event_type=EventType.PLAN_FAILED,
        message=f"No path from {start} to {goal} ({reason})",
        payload=payload,
        correlation_id=correlation_id,
    )


# ------------------------------------------------------------------------------
# 2. Stale-plan obstruction
# ------------------------------------------------------------------------------

def emit_obstruction_replan(
    bus: Optional[EventBus],
    *,
    position: Coord,
    blocked_cell: Coord,
    direction: str,
    new_path_length: int,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Emit a REPLANNED event after the immediate check found the next cell blocked.
    """
    payload: JsonDict = {
        "reason": "blocked",
        "position": _coord(position),
        "blocked_cell": _coord(blocked_cell),
        "direction": direction,
        "new_path_length": new_path_length,
    }

    log_event(
        bus=bus,
        module=MODULE_NAME,
        event_type=EventType.REPLANNED,
        message=f"Next cell {blocked_cell} blocked; replanned",
        payload=payload,
        correlation_id=correlation_id,
    )


# ------------------------------------------------------------------------------
# 3. Movement non-confirmation
# ------------------------------------------------------------------------------

def emit_stuck_recovery(
    bus: Optional[EventBus],
    *,
    position: Coord,
    strategy: str,
    attempt: int,
    non_progress_cycles: int,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Emit STUCK_DETECTED followed by RECOVERY_ATTEMPTED.

    strategy is "rescan_replan" or "perpendicular_move".
    """
    log_event(
        bus=bus,
        module=MODULE_NAME,
        event_type=EventType.STUCK_DETECTED,
        message=f"No progress at {position} for {non_progress_cycles} cycles",
        payload={
            "position": _coord(position),
            "non_progress_cycles": non_progress_cycles,
        },
        correlation_id=correlation_id,
    )
    log_event(
        bus=bus,
        module=MODULE_NAME,
        event_type=EventType.RECOVERY_ATTEMPTED,
        message=f"Recovery attempt {attempt}: {strategy}",
        payload={
            "position": _coord(position),
            "strategy": strategy,
            "attempt": attempt,
        },
        correlation_id=correlation_id,
    )


def emit_navigation_stalled(
    bus: Optional[EventBus],
    *,
    position: Coord,
    goal: Coord,
    recoveries: int,
    recent_strategies: Sequence[str] = (),
    correlation_id: Optional[str] = None,
) -> None:
    """
    Emit a NAVIGATION_STALLED event when recovery itself keeps failing.

    This is the explicit "navigation stalled" signal: the navigator stops
    issuing moves and reports NavStatus.STALLED.
    """
    payload: JsonDict = {
        "position": _coord(position),
        "goal": _coord(goal),
        "recoveries": recoveries,
        "recent_strategies": list(recent_strategies),
    }

    log_event(
        bus=bus,
        module=MODULE_NAME,
        event_type=EventType.NAVIGATION_STALLED,
        message=f"Navigation stalled at {position} after {recoveries} recoveries",
        payload=payload,
        correlation_id=correlation_id,
    )
