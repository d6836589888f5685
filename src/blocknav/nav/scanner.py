# bounded environment scans -> column classification -> grid costs
# src/blocknav/nav/scanner.py
"""
EnvironmentScanner: turns block lookups around the agent into grid costs.

Responsibilities:
- Query the world for every block in a bounded window (scan).
- Classify each (x, z) column as clear, jumpable or impassable.
- Fill a GridCostMap from the latest scan (build_grid / update_grid).
- Re-check the single cell in front of the agent with fresh lookups
  (check_front), independent of whatever the grid currently says.

Column rule, using the agent's feet level y:

    feet     = (x, y,     z)
    head     = (x, y + 1, z)
    above    = (x, y + 2, z)
    overhead = (agent_x, y + 2, agent_z)   # directly over the agent

    impassable  head, or feet together with above/overhead
    jumpable    feet only
    clear       nothing obstructing; cost of the feet-level block

It does NOT:
- Plan paths.
- Remember blocks outside the latest scan window.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from spec.types import BlockInfo, Coord, Direction, Position, to_coord
from spec.world import WorldIO
from ..collision import BlockCostProfile, default_block_profile
from .grid import IMPASSABLE, Bounds, GridCostMap


log = logging.getLogger(__name__)

DEFAULT_SCAN_RADIUS = 1
DEFAULT_SCAN_HEIGHT = 3
DEFAULT_GRID_PADDING = 5


class ColumnClass(Enum):
    CLEAR = "clear"
    JUMPABLE = "jumpable"
    IMPASSABLE = "impassable"


@dataclass(frozen=True)
class BlockObservation:
    """One looked-up block: where, what, and whether the body fits through it."""

    position: Position
    block: Optional[BlockInfo]
    passable: bool

    @property
    def name(self) -> str:
        return self.block.name if self.block is not None else "air"


@dataclass(frozen=True)
class ColumnReading:
    """Classification of one (x, z) column from a single scan."""

    coord: Coord
    kind: ColumnClass
    cost: float

    @property
    def requires_jump(self) -> bool:
        return self.kind is ColumnClass.JUMPABLE


@dataclass
class ScanResult:
    """Everything one scan() call observed."""

    center: Position
    radius: int
    height: int
    observations: Dict[Position, BlockObservation] = field(default_factory=dict)
    columns: Dict[Coord, ColumnReading] = field(default_factory=dict)

    @property
    def window(self) -> Bounds:
        return Bounds.window(to_coord(self.center), self.radius)

    def count(self, kind: ColumnClass) -> int:
        return sum(1 for c in self.columns.values() if c.kind is kind)


@dataclass(frozen=True)
class FrontCheck:
    """Fresh obstruction flags for the cell in front of the agent."""

    direction: Direction
    cell: Coord
    feet: bool
    head: bool
    above: bool
    overhead: bool

    @property
    def is_blocked(self) -> bool:
        return self.head or (self.feet and (self.above or self.overhead))

    @property
    def can_jump(self) -> bool:
        return self.feet and not (self.head or self.above or self.overhead)


def classify_column(
    feet: Optional[BlockInfo],
    head: Optional[BlockInfo],
    above: Optional[BlockInfo],
    overhead: Optional[BlockInfo],
    profile: BlockCostProfile,
) -> Tuple[ColumnClass, float]:
    """Apply the column rule to four looked-up blocks."""
    feet_blocked = profile.is_obstructing(feet)
    head_blocked = profile.is_obstructing(head)
    above_blocked = profile.is_obstructing(above)
    overhead_blocked = profile.is_obstructing(overhead)

    if head_blocked or (feet_blocked and (above_blocked or overhead_blocked)):
        return ColumnClass.IMPASSABLE, IMPASSABLE
    if feet_blocked:
        return ColumnClass.JUMPABLE, profile.default_cost

    cost = profile.foot_cost(feet)
    if math.isinf(cost):
        # lava at the feet: walkable shape, deadly contents
        return ColumnClass.IMPASSABLE, IMPASSABLE
    return ColumnClass.CLEAR, cost


class EnvironmentScanner:
    """
    Scanner bound to one agent's world collaborator.

    Keeps a rolling cache of the blocks in the latest scan window for
    debugging and views; front checks refresh entries already in it. Grid
    costs are only ever derived from the most recent scan.
    """

    def __init__(
        self,
        world: WorldIO,
        profile: BlockCostProfile | None = None,
        *,
        radius: int = DEFAULT_SCAN_RADIUS,
        height: int = DEFAULT_SCAN_HEIGHT,
    ) -> None:
        if radius < 0:
            raise ValueError(f"scan radius must be >= 0, got {radius}")
        if height < 3:
            raise ValueError(f"scan height must cover feet, head and above-head, got {height}")
        self._world = world
        self._profile = profile or default_block_profile()
        self.radius = radius
        self.height = height

        self._observations: Dict[Position, BlockObservation] = {}
        self._last_scan: Optional[ScanResult] = None
        self.scan_count = 0

    @property
    def profile(self) -> BlockCostProfile:
        return self._profile

    @property
    def last_scan(self) -> Optional[ScanResult]:
        return self._last_scan

    def latest_observation(self, position: Position) -> Optional[BlockObservation]:
        return self._observations.get(position)

    @property
    def cache_size(self) -> int:
        return len(self._observations)

    def forget(self) -> None:
        """Drop cached observations and the last scan."""
        self._observations.clear()
        self._last_scan = None

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def scan(
        self,
        center: Position | None = None,
        radius: int | None = None,
        height: int | None = None,
    ) -> ScanResult:
        """
        Look up every block with |dx|, |dz| <= radius and 0 <= dy < height
        above `center` (default: the agent's current position), then
        classify each column.
        """
        if center is None:
            center = self._world.position()
        cx, cy, cz = (math.floor(v) for v in center)
        radius = self.radius if radius is None else radius
        height = self.height if height is None else height
        if height < 3:
            raise ValueError(f"scan height must be >= 3, got {height}")

        result = ScanResult(center=(cx, cy, cz), radius=radius, height=height)

        for dx in range(-radius, radius + 1):
            for dz in range(-radius, radius + 1):
                for dy in range(height):
                    pos = (cx + dx, cy + dy, cz + dz)
                    obs = self._observe(pos)
                    result.observations[pos] = obs

        overhead = self._block_in(result, (cx, cy + 2, cz))
        for dx in range(-radius, radius + 1):
            for dz in range(-radius, radius + 1):
                x, z = cx + dx, cz + dz
                kind, cost = classify_column(
                    self._block_in(result, (x, cy, z)),
                    self._block_in(result, (x, cy + 1, z)),
                    self._block_in(result, (x, cy + 2, z)),
                    overhead,
                    self._profile,
                )
                result.columns[(x, z)] = ColumnReading((x, z), kind, cost)

        self._observations = dict(result.observations)
        self._last_scan = result
        self.scan_count += 1
        log.debug(
            "Scanned %d blocks around %s: %d impassable, %d jumpable columns",
            len(result.observations),
            result.center,
            result.count(ColumnClass.IMPASSABLE),
            result.count(ColumnClass.JUMPABLE),
        )
        return result

    def check_front(self, position: Position, direction: Direction) -> FrontCheck:
        """
        Fresh, fine-grained check of the cell the agent is about to enter.

        Uses live lookups only; neither the grid nor the observation cache
        is consulted.
        """
        direction = Direction.parse(direction)
        x, y, z = position
        ox, oz = direction.offset
        fx, fz = x + ox, z + oz

        prof = self._profile
        return FrontCheck(
            direction=direction,
            cell=(fx, fz),
            feet=prof.is_obstructing(self._observe((fx, y, fz)).block),
            head=prof.is_obstructing(self._observe((fx, y + 1, fz)).block),
            above=prof.is_obstructing(self._observe((fx, y + 2, fz)).block),
            overhead=prof.is_obstructing(self._observe((x, y + 2, z)).block),
        )

    # ------------------------------------------------------------------
    # Grid population
    # ------------------------------------------------------------------

    def build_grid(
        self,
        grid: GridCostMap,
        start: Coord,
        goal: Coord,
        padding: int = DEFAULT_GRID_PADDING,
        scan: ScanResult | None = None,
    ) -> int:
        """
        Rebuild `grid` over the box spanning start and goal plus padding.

        Cells covered by `scan` (default: the last scan) get their classified
        cost; every other cell gets the grid's default cost. Returns the
        number of cells written.
        """
        scan = scan if scan is not None else self._last_scan
        box = Bounds.around(start, goal, padding)

        grid.clear()
        written = 0
        for coord in box.cells():
            reading = scan.columns.get(coord) if scan is not None else None
            if reading is not None:
                grid.set_cost(coord, reading.cost, requires_jump=reading.requires_jump)
            else:
                grid.set_cost(coord, grid.default_cost)
            written += 1

        # Scanned columns outside the box still count as knowledge.
        if scan is not None:
            for coord, reading in scan.columns.items():
                if not box.contains(coord):
                    grid.set_cost(coord, reading.cost, requires_jump=reading.requires_jump)
                    written += 1
            box = box.union(scan.window)

        grid.extend_bounds(box)
        log.info(
            "Grid built: %dx%d box, %d cells, %d impassable",
            box.width, box.depth, written, len(grid.impassable_cells()),
        )
        return written

    def update_grid(
        self,
        grid: GridCostMap,
        center: Position | None = None,
        radius: int | None = None,
    ) -> int:
        """
        Rescan around `center` and overwrite only the cells in that window.

        Cells outside the window keep whatever cost they had. Returns the
        number of cells whose cost or jump flag changed.
        """
        scan = self.scan(center, radius)
        changed = 0
        for coord, reading in scan.columns.items():
            if grid.set_cost(coord, reading.cost, requires_jump=reading.requires_jump):
                changed += 1
        grid.extend_bounds(scan.window)

        if changed:
            log.info("Updated %d grid cells around %s", changed, scan.center)
        return changed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _observe(self, pos: Position) -> BlockObservation:
        block = self._world.block_at(*pos)
        obs = BlockObservation(
            position=pos,
            block=block,
            passable=not self._profile.is_obstructing(block),
        )
        if pos in self._observations:
            self._observations[pos] = obs
        return obs

    @staticmethod
    def _block_in(scan: ScanResult, pos: Position) -> Optional[BlockInfo]:
        obs = scan.observations.get(pos)
        return obs.block if obs is not None else None
