# src/blocknav/testing/fakes.py
"""
Test helpers for blocknav.

Provides:
- FakeWorld: in-memory WorldIO with simple block physics (walk, jump up
  one block, fall down).
- StuckWorld: FakeWorld whose step() reports success but never moves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Union

from spec.types import BlockInfo, Coord, Direction, Position
from ..collision import BlockCostProfile, default_block_profile


BlockSpec = Union[str, BlockInfo]

# Characters understood by FakeWorld.from_ascii
ASCII_LEGEND: Dict[str, Optional[str]] = {
    ".": None,        # open ground
    "#": "stone",     # two-high wall
    "j": "dirt",      # single block at feet, jumpable
    "w": "water",     # water at feet
    "L": "lava",      # lava at feet
    "S": None,        # start marker
    "G": None,        # goal marker
}


@dataclass
class LookRecord:
    """Record of a look_at()/look() call made through FakeWorld."""

    yaw: float
    pitch: float
    direction: Optional[Direction] = None


class FakeWorld:
    """
    In-memory WorldIO used for unit tests and the demo tool.

    Features:
    - Sparse block table keyed by (x, y, z); everything below `ground_y`
      is solid stone unless overridden.
    - step() walks one cell if the body fits, climbs one block after a
      jump(), and applies gravity after every move.
    - Records every call so tests can assert on what the core asked for.
    """

    def __init__(
        self,
        blocks: Optional[Mapping[Position, BlockSpec]] = None,
        *,
        start: Position = (0, 0, 0),
        ground_y: int = 0,
        profile: Optional[BlockCostProfile] = None,
    ) -> None:
        self._profile = profile or default_block_profile()
        self._blocks: Dict[Position, BlockInfo] = {}
        self.ground_y = ground_y
        self._pos: Position = tuple(start)
        self._jump_armed = False

        self.markers: Dict[str, Coord] = {}
        self.step_calls: List[Direction] = []
        self.jump_calls = 0
        self.block_queries = 0
        self.looks: List[LookRecord] = []

        for pos, block in (blocks or {}).items():
            self.place(pos, block)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_ascii(
        cls,
        rows: Iterable[str],
        *,
        y: int = 0,
        origin: Coord = (0, 0),
        profile: Optional[BlockCostProfile] = None,
    ) -> "FakeWorld":
        """
        Build a flat world from a top-down map: row index is z, column is x.

        The agent starts on 'S' (or at the origin); 'G' is recorded in
        `markers` for the caller to use as a goal.
        """
        world = cls(ground_y=y, profile=profile)
        ox, oz = origin
        for dz, row in enumerate(rows):
            for dx, ch in enumerate(row):
                if ch not in ASCII_LEGEND:
                    raise ValueError(f"Unknown map character {ch!r} at row {dz}, col {dx}")
                x, z = ox + dx, oz + dz
                if ch == "#":
                    world.place((x, y, z), "stone")
                    world.place((x, y + 1, z), "stone")
                elif ch in ("S", "G"):
                    world.markers[ch] = (x, z)
                elif ASCII_LEGEND[ch] is not None:
                    world.place((x, y, z), ASCII_LEGEND[ch])

        sx, sz = world.markers.get("S", origin)
        world.teleport((sx, y, sz))
        return world

    def place(self, pos: Position, block: BlockSpec) -> None:
        if isinstance(block, str):
            block = self._profile.block_info(block)
        self._blocks[tuple(pos)] = block

    def remove(self, pos: Position) -> None:
        self._blocks.pop(tuple(pos), None)

    def teleport(self, pos: Position) -> None:
        self._pos = tuple(pos)

    # ------------------------------------------------------------------
    # WorldIO protocol
    # ------------------------------------------------------------------

    def position(self) -> Position:
        return self._pos

    def block_at(self, x: int, y: int, z: int) -> Optional[BlockInfo]:
        self.block_queries += 1
        block = self._blocks.get((x, y, z))
        if block is None and y < self.ground_y:
            return self._profile.block_info("stone")
        return block

    def step(self, direction: Direction) -> bool:
        direction = Direction.parse(direction)
        self.step_calls.append(direction)
        jumped = self._jump_armed
        self._jump_armed = False

        x, y, z = self._pos
        dx, dz = direction.offset
        tx, tz = x + dx, z + dz

        feet = self._solid((tx, y, tz))
        head = self._solid((tx, y + 1, tz))
        if head:
            return False

        if feet:
            above = self._solid((tx, y + 2, tz))
            overhead = self._solid((x, y + 2, z))
            if not jumped or above or overhead:
                return False
            target = (tx, y + 1, tz)
        else:
            target = (tx, y, tz)

        self._pos = self._settle(target)
        return True

    def jump(self) -> None:
        self.jump_calls += 1
        self._jump_armed = True

    def look_at(self, direction: Direction) -> None:
        direction = Direction.parse(direction)
        self.looks.append(LookRecord(yaw=direction.yaw, pitch=0.0, direction=direction))

    def look(self, yaw: float, pitch: float = 0.0) -> None:
        self.looks.append(LookRecord(yaw=yaw, pitch=pitch))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _solid(self, pos: Position) -> bool:
        block = self._blocks.get(pos)
        if block is None:
            return pos[1] < self.ground_y
        return not block.passable

    def _settle(self, pos: Position) -> Position:
        x, y, z = pos
        while not self._solid((x, y - 1, z)):
            y -= 1
        return (x, y, z)


class StuckWorld(FakeWorld):
    """
    FakeWorld whose step() always reports success without relocating.

    Simulates an agent wedged against geometry the scans cannot see.
    """

    def step(self, direction: Direction) -> bool:
        self.step_calls.append(Direction.parse(direction))
        self._jump_armed = False
        return True
