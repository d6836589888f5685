# src/blocknav/core.py
"""
Synchronous control loop driving a Navigator against a world collaborator.

This module wires together:
- WorldIO (position, block lookups, motion)
- Navigator (scan, plan, per-cycle movement decisions)
- StepTracer (per-step records and log lines)

Public surface:
    class NavigationAgent:
        navigate_to(x, y, z, max_cycles) -> NavigationOutcome
        run(max_cycles) -> NavigationOutcome

Design constraints:
- One motion command per cycle; the loop waits for step() to return
  before asking for the next movement.
- Motion failures (exceptions from step/jump/look) are logged and count as
  an unconfirmed step; the Navigator's stuck recovery takes it from there.
- Failing to read the agent's position is not recoverable and raises
  NavigationError.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from env.schema import NavigationConfig
from monitoring.bus import EventBus
from spec.types import ActionKind, MovementAction, NavStatus, Position
from spec.world import WorldIO
from .nav.executor import Navigator
from .tracing import StepTracer


log = logging.getLogger(__name__)

DEFAULT_MAX_CYCLES = 10_000


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


@dataclass
class NavigationError(RuntimeError):
    """
    Domain-level error raised by NavigationAgent for non-recoverable failures.

    Examples:
        - the world collaborator cannot report a position
        - the loop was asked to run without a goal

    Navigation trouble (no path, blocked cells, stuck agent) does NOT raise
    this; it shows up as a NavStatus on the outcome.
    """

    code: str
    details: dict[str, Any]

    def __str__(self) -> str:
        return f"NavigationError(code={self.code!r}, details={self.details!r})"


@dataclass
class NavigationOutcome:
    """How a run() ended."""

    status: NavStatus
    cycles: int
    steps: int
    position: Position

    @property
    def reached(self) -> bool:
        return self.status is NavStatus.GOAL_REACHED


# ---------------------------------------------------------------------------
# Implementation
# ---------------------------------------------------------------------------


class NavigationAgent:
    """
    Owns one Navigator and runs it against one WorldIO.

    Consumers see:
        - navigate_to(x, y, z) for "go there and tell me how it went"
        - navigator for goal/status/path inspection
        - tracer for the per-step records
    """

    def __init__(
        self,
        world: WorldIO,
        config: Optional[NavigationConfig] = None,
        *,
        bus: Optional[EventBus] = None,
        tracer: Optional[StepTracer] = None,
        navigator: Optional[Navigator] = None,
    ) -> None:
        self._world = world
        self._navigator = navigator or Navigator(world, config, bus=bus)
        self._tracer: StepTracer = tracer or StepTracer()

    @property
    def navigator(self) -> Navigator:
        return self._navigator

    @property
    def tracer(self) -> StepTracer:
        return self._tracer

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def navigate_to(
        self, x: int, y: int, z: int, *, max_cycles: int = DEFAULT_MAX_CYCLES
    ) -> NavigationOutcome:
        """Set a goal and run until it is reached, fails, stalls or times out."""
        self._read_position()
        self._navigator.set_goal(x, y, z)
        return self.run(max_cycles)

    def run(self, max_cycles: int = DEFAULT_MAX_CYCLES) -> NavigationOutcome:
        """
        Drive the current goal for at most `max_cycles` cycles.

        Raises:
            NavigationError if no goal is set or the position cannot be read.
        """
        nav = self._navigator
        if nav.goal is None:
            raise NavigationError(code="no_goal", details={})

        cycles = 0
        while cycles < max_cycles:
            self._read_position()
            action = nav.get_next_movement()
            cycles += 1

            if action.is_idle:
                if nav.status.is_terminal:
                    break
                # transient idle (rescan / replan this cycle)
                continue

            self._execute(cycles, action)

        position = self._read_position()
        if not nav.status.is_terminal:
            log.warning("Gave up after %d cycles at %s (status %s)", cycles, position, nav.status.value)

        return NavigationOutcome(
            status=nav.status,
            cycles=cycles,
            steps=nav.steps,
            position=position,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _execute(self, cycle: int, action: MovementAction) -> bool:
        direction = action.direction
        assert direction is not None
        start = self._read_position()

        error: Optional[str] = None
        try:
            self._world.look_at(direction)
            if action.kind is ActionKind.JUMP_AND_MOVE:
                self._world.jump()
            moved = self._world.step(direction)
            if not moved:
                log.debug("step(%s) reported no movement at %s", direction.value, start)
        except Exception as exc:
            log.warning("World raised during %s %s: %r", action.kind.value, direction.value, exc)
            error = repr(exc)

        confirmed = self._navigator.complete_step(direction)
        self._tracer.record(
            cycle=cycle,
            action=action,
            start=start,
            end=self._read_position(),
            confirmed=confirmed,
            status=self._navigator.status,
            error=error,
        )
        return confirmed

    def _read_position(self) -> Position:
        try:
            x, y, z = self._world.position()
        except Exception as exc:
            raise NavigationError(
                code="position_failed",
                details={"exception": repr(exc)},
            ) from exc
        return (math.floor(x), math.floor(y), math.floor(z))
