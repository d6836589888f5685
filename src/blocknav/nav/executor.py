# step-by-step path execution with rescan / replan / stuck recovery
# src/blocknav/nav/executor.py
"""
Navigator: owns one goal, one GridCostMap, one path and one StuckTracker.

Responsibilities:
- set_goal: reset all per-goal state, scan, build the grid, plan.
- get_next_movement: turn the path cursor into one MovementAction,
  re-verifying the cell in front before every move.
- complete_step: advance the cursor only on confirmed arrival; otherwise
  feed the stuck tracker.
- Recovery: rescan + replan, then a perpendicular unstuck move, then
  NavStatus.STALLED once recoveries are exhausted.

The navigator never moves the agent itself; the caller executes the
returned action against the world and reports back via complete_step.
"""

from __future__ import annotations

import logging
import math
import numbers
import uuid
from typing import List, Optional

from env.schema import NavigationConfig
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from runtime.failure_mitigation import (
    MODULE_NAME,
    emit_navigation_stalled,
    emit_obstruction_replan,
    emit_search_failure,
    emit_stuck_recovery,
)
from spec.types import (
    Coord,
    Direction,
    MovementAction,
    NavStatus,
    Position,
    to_coord,
    within_tolerance,
)
from spec.world import WorldIO
from ..collision import BlockCostProfile
from .grid import Bounds, GridCostMap
from .pathfinder import PathfindingResult, find_path
from .scanner import EnvironmentScanner
from .stuck import StuckTracker


log = logging.getLogger(__name__)

STRATEGY_RESCAN = "rescan_replan"
STRATEGY_PERPENDICULAR = "perpendicular_move"


def _as_block_coord(value: object, axis: str) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"goal {axis} must be a number, got {value!r}")
    if isinstance(value, numbers.Integral):
        return int(value)
    as_float = float(value)
    if not (math.isfinite(as_float) and as_float.is_integer()):
        raise ValueError(f"goal {axis} must be a whole block coordinate, got {value!r}")
    return int(as_float)


class Navigator:
    """
    Incremental A* navigator for a single agent.

    Every instance owns its grid, path and stuck tracker; nothing here is
    shared between agents.
    """

    def __init__(
        self,
        world: WorldIO,
        config: NavigationConfig | None = None,
        *,
        grid: GridCostMap | None = None,
        scanner: EnvironmentScanner | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._world = world
        self._config = config or NavigationConfig()
        self._bus = bus

        cfg = self._config
        self._grid = grid if grid is not None else GridCostMap(cfg.default_cost)
        self._scanner = scanner or EnvironmentScanner(
            world,
            BlockCostProfile.from_config(cfg),
            radius=cfg.scan_radius,
            height=cfg.scan_height,
        )
        self._stuck = StuckTracker(cfg.stuck_threshold, cfg.stuck_epsilon)

        self._status = NavStatus.IDLE
        self._goal: Optional[Coord] = None
        self._goal_y: Optional[int] = None
        self._path: List[Coord] = []
        self._cursor = 0

        self._steps = 0
        self._steps_since_rescan = 0
        self._recoveries = 0
        self._recovery_log: List[str] = []
        self._replan_pending = False
        self._pending_recovery = False
        self._last_direction: Optional[Direction] = None
        self._correlation_id: Optional[str] = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def status(self) -> NavStatus:
        return self._status

    @property
    def path(self) -> List[Coord]:
        return list(self._path)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def goal(self) -> Optional[Coord]:
        return self._goal

    @property
    def goal_y(self) -> Optional[int]:
        return self._goal_y

    @property
    def grid(self) -> GridCostMap:
        return self._grid

    @property
    def scanner(self) -> EnvironmentScanner:
        return self._scanner

    @property
    def stuck_tracker(self) -> StuckTracker:
        return self._stuck

    @property
    def config(self) -> NavigationConfig:
        return self._config

    @property
    def steps(self) -> int:
        """Confirmed steps since the current goal was set."""
        return self._steps

    @property
    def recoveries(self) -> int:
        """Recovery attempts since the last real progress."""
        return self._recoveries

    @property
    def correlation_id(self) -> Optional[str]:
        return self._correlation_id

    # ------------------------------------------------------------------
    # Outbound operations
    # ------------------------------------------------------------------

    def set_goal(self, x: int, y: int, z: int) -> bool:
        """
        Replace the goal, discarding all per-goal state, and plan to it.

        Returns True if a path was found. Raises ValueError for anything
        that is not a whole block coordinate.
        """
        gx = _as_block_coord(x, "x")
        gy = _as_block_coord(y, "y")
        gz = _as_block_coord(z, "z")

        position = self._position()

        # Old path, cursor and stuck state go before anything else can
        # issue a movement.
        self._goal = (gx, gz)
        self._goal_y = gy
        self._path = []
        self._cursor = 0
        self._steps = 0
        self._steps_since_rescan = 0
        self._recoveries = 0
        self._recovery_log = []
        self._replan_pending = False
        self._pending_recovery = False
        self._last_direction = None
        self._stuck.reset(position)
        self._correlation_id = uuid.uuid4().hex
        self._status = NavStatus.PLANNING

        log.info("Goal set to (%d, %d, %d) from %s", gx, gy, gz, position)
        self._emit(
            EventType.GOAL_SET,
            f"Goal set to ({gx}, {gy}, {gz})",
            {"goal": [gx, gy, gz], "start": list(position)},
        )

        self._full_rescan(position)
        return self._plan(to_coord(position), reason="goal_set")

    def clear_goal(self) -> None:
        """Drop the goal and return to IDLE."""
        self._goal = None
        self._goal_y = None
        self._path = []
        self._cursor = 0
        self._replan_pending = False
        self._pending_recovery = False
        self._status = NavStatus.IDLE

    def is_at_goal(self) -> bool:
        """True when the agent's (x, z) matches the goal within tolerance."""
        if self._goal is None:
            return False
        here = to_coord(self._position())
        return within_tolerance(here, self._goal, self._config.arrival_tolerance)

    def get_next_movement(self) -> MovementAction:
        """Decide this cycle's movement. Never raises for navigation trouble."""
        if self._goal is None or self._status.is_terminal:
            return MovementAction.idle()

        position = self._position()
        here = to_coord(position)

        if within_tolerance(here, self._goal, self._config.arrival_tolerance):
            self._arrive(position)
            return MovementAction.idle()

        if self._steps >= self._config.max_steps:
            self._fail(here, "step_budget_exhausted", 0)
            return MovementAction.idle()

        if self._stuck.is_stuck:
            return self._recover(position)

        if self._replan_pending:
            self._replan_pending = False
            self._scanner.update_grid(self._grid, position)
            if not self._plan(here, reason="post_recovery"):
                return MovementAction.idle()

        interval = self._config.rescan_interval
        if interval > 0 and self._steps_since_rescan >= interval:
            if not self._periodic_rescan(position):
                return MovementAction.idle()

        if not self._skip_reached_waypoints(here):
            return MovementAction.idle()

        if self._cursor >= len(self._path):
            log.info("Path exhausted at %s short of goal %s; replanning", here, self._goal)
            self._scanner.update_grid(self._grid, position)
            if not self._plan(here, reason="path_exhausted"):
                return MovementAction.idle()
            if not self._skip_reached_waypoints(here) or self._cursor >= len(self._path):
                self._fail(here, "no_path_found", 0)
                return MovementAction.idle()

        waypoint = self._path[self._cursor]
        direction = Direction.from_delta(waypoint[0] - here[0], waypoint[1] - here[1])
        # _skip_reached_waypoints guarantees a non-zero delta
        assert direction is not None

        front = self._scanner.check_front(position, direction)
        if front.is_blocked:
            self._handle_blocked(position, front.cell, direction)
            return MovementAction.idle()

        self._last_direction = direction
        self._pending_recovery = False
        if front.can_jump:
            return MovementAction.jump_and_move(direction)
        return MovementAction.move(direction)

    def complete_step(self, direction: Direction | str) -> bool:
        """
        Report that the last returned action was executed.

        Advances the cursor only if the agent now stands on the targeted
        waypoint; otherwise the cycle counts toward stuck detection.
        Returns True on confirmed arrival.
        """
        direction = Direction.parse(direction)
        if self._goal is None:
            return False
        if self._last_direction is not None and direction is not self._last_direction:
            log.debug("complete_step(%s) after issuing %s", direction.value, self._last_direction.value)

        position = self._position()
        here = to_coord(position)

        recovery = self._pending_recovery
        self._pending_recovery = False

        target = self._path[self._cursor] if self._cursor < len(self._path) else None
        if not recovery and target is not None and here == target:
            self._cursor += 1
            self._steps += 1
            self._steps_since_rescan += 1
            self._stuck.reset(position)
            self._recoveries = 0
            self._recovery_log = []
            self._emit(
                EventType.STEP_COMPLETED,
                f"Reached waypoint {target}",
                {"position": list(position), "cursor": self._cursor, "direction": direction.value},
            )
            if within_tolerance(here, self._goal, self._config.arrival_tolerance):
                self._arrive(position)
            return True

        if self._stuck.observe(position):
            # moved, just not onto the waypoint
            self._recoveries = 0
            self._recovery_log = []
        else:
            log.debug(
                "Step %s not confirmed at %s (target %s, stuck counter %d)",
                direction.value, here, target, self._stuck.counter,
            )
        return False

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def _plan(self, start: Coord, *, reason: str) -> bool:
        """Run A* from start to the goal; FAILED on an empty result."""
        goal = self._goal
        assert goal is not None
        cfg = self._config

        bounds = self._grid.bounds
        if bounds is None or not bounds.contains(start):
            self._grid.extend_bounds(Bounds.around(start, goal, cfg.grid_padding))

        result: PathfindingResult = find_path(
            self._grid,
            start,
            goal,
            max_expansions=cfg.max_search_expansions,
            tolerance=cfg.arrival_tolerance,
            bounds=self._grid.bounds,
        )
        self._path = result.path
        self._cursor = 0

        if not result.success:
            self._fail(start, result.reason, result.expansions)
            return False

        self._status = NavStatus.FOLLOWING_PATH
        log.info(
            "Planned %d-cell path %s -> %s (cost %.1f, %d expansions, %s)",
            len(result.path), start, goal, result.cost, result.expansions, reason,
        )
        self._emit(
            EventType.PLAN_CREATED,
            f"Path of {len(result.path)} cells to {goal}",
            {
                "reason": reason,
                "start": list(start),
                "goal": list(goal),
                "length": len(result.path),
                "cost": result.cost,
                "expansions": result.expansions,
            },
        )
        return True

    def _full_rescan(self, position: Position) -> None:
        """Scan around the agent and rebuild the grid over start + goal."""
        assert self._goal is not None
        scan = self._scanner.scan(position)
        self._scanner.build_grid(
            self._grid, to_coord(position), self._goal, self._config.grid_padding, scan=scan,
        )
        self._emit(
            EventType.SCAN_COMPLETED,
            f"Full rescan at {position}",
            {
                "position": list(position),
                "kind": "full",
                "blocks": len(scan.observations),
                "cells": len(self._grid),
            },
        )

    def _periodic_rescan(self, position: Position) -> bool:
        self._status = NavStatus.RESCANNING
        self._steps_since_rescan = 0
        changed = self._scanner.update_grid(self._grid, position)
        self._emit(
            EventType.SCAN_COMPLETED,
            f"Periodic rescan at {position}",
            {"position": list(position), "kind": "periodic", "changed": changed},
        )
        if changed == 0:
            self._status = NavStatus.FOLLOWING_PATH
            return True

        here = to_coord(position)
        if not self._plan(here, reason="periodic_rescan"):
            return False
        self._emit(
            EventType.REPLANNED,
            f"Replanned after {changed} cells changed",
            {"reason": "periodic", "position": list(here), "new_path_length": len(self._path)},
        )
        return True

    def _skip_reached_waypoints(self, here: Coord) -> bool:
        """Advance the cursor past waypoints the agent already stands on."""
        for _ in range(self._config.max_waypoint_skips):
            if self._cursor >= len(self._path) or self._path[self._cursor] != here:
                return True
            self._cursor += 1

        log.warning("Skipped %d waypoints at %s without finding a move", self._config.max_waypoint_skips, here)
        if not self._plan(here, reason="skip_limit"):
            return False
        if self._path and self._path[0] == here:
            self._cursor = 1
        return True

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    def _handle_blocked(self, position: Position, cell: Coord, direction: Direction) -> None:
        """Next cell is blocked in the live world: rescan locally and replan."""
        here = to_coord(position)
        log.info("Next cell %s (%s) blocked at %s; rescanning", cell, direction.value, here)
        self._status = NavStatus.RESCANNING
        self._scanner.update_grid(self._grid, position)
        self._grid.mark_impassable(cell)
        if self._plan(here, reason="blocked"):
            emit_obstruction_replan(
                self._bus,
                position=here,
                blocked_cell=cell,
                direction=direction.value,
                new_path_length=len(self._path),
                correlation_id=self._correlation_id,
            )

    def _recover(self, position: Position) -> MovementAction:
        """Escalating response to the stuck threshold being reached."""
        here = to_coord(position)
        assert self._goal is not None
        non_progress = self._stuck.counter

        if self._recoveries >= self._config.max_recoveries:
            self._status = NavStatus.STALLED
            log.error(
                "Navigation stalled at %s after %d recoveries (goal %s)",
                here, self._recoveries, self._goal,
            )
            emit_navigation_stalled(
                self._bus,
                position=here,
                goal=self._goal,
                recoveries=self._recoveries,
                recent_strategies=self._recovery_log,
                correlation_id=self._correlation_id,
            )
            return MovementAction.idle()

        self._recoveries += 1
        strategy = STRATEGY_RESCAN if self._recoveries % 2 == 1 else STRATEGY_PERPENDICULAR
        self._recovery_log.append(strategy)
        self._stuck.reset(position)

        emit_stuck_recovery(
            self._bus,
            position=here,
            strategy=strategy,
            attempt=self._recoveries,
            non_progress_cycles=non_progress,
            correlation_id=self._correlation_id,
        )

        if strategy == STRATEGY_RESCAN:
            log.warning("Stuck at %s: full rescan and replan (attempt %d)", here, self._recoveries)
            self._status = NavStatus.RESCANNING
            self._scanner.forget()
            self._full_rescan(position)
            self._plan(here, reason="stuck_recovery")
            return MovementAction.idle()

        heading = self._last_direction or Direction.from_delta(
            self._goal[0] - here[0], self._goal[1] - here[1]
        ) or Direction.NORTH
        sidestep = heading.perpendicular()
        log.warning(
            "Stuck at %s: unstuck move %s (attempt %d)", here, sidestep.value, self._recoveries,
        )
        self._last_direction = sidestep
        self._pending_recovery = True
        self._replan_pending = True
        return MovementAction.move(sidestep, recovery=True)

    def _fail(self, start: Coord, reason: Optional[str], expansions: int) -> None:
        assert self._goal is not None
        self._status = NavStatus.FAILED
        self._path = []
        self._cursor = 0
        log.warning("Navigation to %s failed from %s: %s", self._goal, start, reason)
        emit_search_failure(
            self._bus,
            start=start,
            goal=self._goal,
            reason=reason,
            expansions=expansions,
            correlation_id=self._correlation_id,
        )

    def _arrive(self, position: Position) -> None:
        if self._status is NavStatus.GOAL_REACHED:
            return
        self._status = NavStatus.GOAL_REACHED
        log.info("Goal %s reached at %s after %d steps", self._goal, position, self._steps)
        self._emit(
            EventType.GOAL_REACHED,
            f"Goal {self._goal} reached",
            {"position": list(position), "steps": self._steps},
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _position(self) -> Position:
        x, y, z = self._world.position()
        return (math.floor(x), math.floor(y), math.floor(z))

    def _emit(self, event_type: EventType, message: str, payload: dict) -> None:
        log_event(
            self._bus,
            MODULE_NAME,
            event_type,
            message,
            payload,
            correlation_id=self._correlation_id,
        )
