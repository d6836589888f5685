# sparse traversal-cost map over the (x, z) plane
# src/blocknav/nav/grid.py
"""
GridCostMap: sparse 2D traversal-cost table used by A*.

This module does not query the world. It only:
- Stores per-cell costs and the "requires jump" flag.
- Answers cost lookups, with an explicit unknown -> default branch.
- Tracks the rectangular bounds the planner is allowed to search.

Filling the map from scans is the scanner's job (see scanner.py).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Set, Tuple

from spec.types import Coord

IMPASSABLE = math.inf
DEFAULT_COST = 1.0


@dataclass(frozen=True)
class Bounds:
    """Inclusive rectangle on the (x, z) plane."""

    min_x: int
    min_z: int
    max_x: int
    max_z: int

    @classmethod
    def around(cls, a: Coord, b: Coord, padding: int = 0) -> "Bounds":
        """Bounding box spanning a and b, grown by padding on every side."""
        return cls(
            min_x=min(a[0], b[0]) - padding,
            min_z=min(a[1], b[1]) - padding,
            max_x=max(a[0], b[0]) + padding,
            max_z=max(a[1], b[1]) + padding,
        )

    @classmethod
    def window(cls, center: Coord, radius: int) -> "Bounds":
        return cls.around(center, center, radius)

    def contains(self, coord: Coord) -> bool:
        return self.min_x <= coord[0] <= self.max_x and self.min_z <= coord[1] <= self.max_z

    def union(self, other: "Bounds") -> "Bounds":
        return Bounds(
            min_x=min(self.min_x, other.min_x),
            min_z=min(self.min_z, other.min_z),
            max_x=max(self.max_x, other.max_x),
            max_z=max(self.max_z, other.max_z),
        )

    def cells(self) -> Iterator[Coord]:
        for x in range(self.min_x, self.max_x + 1):
            for z in range(self.min_z, self.max_z + 1):
                yield (x, z)

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def depth(self) -> int:
        return self.max_z - self.min_z + 1


class GridCostMap:
    """
    Sparse mapping Coord -> traversal cost.

    Invariants:
    - A stored cost is either a finite positive number or IMPASSABLE.
    - A cell absent from the map is *unknown*, and unknown cells cost
      `default_cost`. The planner is therefore optimistic about terrain it
      has not scanned yet.
    - A cell is impassable iff the most recent write said so; writing a new
      cost replaces both the cost and the jump flag.

    One instance belongs to one agent; it is never shared.
    """

    def __init__(self, default_cost: float = DEFAULT_COST) -> None:
        if not (default_cost > 0 and math.isfinite(default_cost)):
            raise ValueError(f"default_cost must be finite and positive, got {default_cost}")
        self.default_cost = float(default_cost)
        self._costs: Dict[Coord, float] = {}
        self._jump: Set[Coord] = set()
        self._bounds: Optional[Bounds] = None

    # ------------------------------------------------------------------
    # Core queries
    # ------------------------------------------------------------------

    def cost(self, coord: Coord) -> float:
        """Traversal cost for a cell; unknown cells get the default cost."""
        stored = self._costs.get(coord)
        if stored is None:
            # Unknown terrain: optimistic default, not impassable.
            return self.default_cost
        return stored

    def is_known(self, coord: Coord) -> bool:
        return coord in self._costs

    def is_impassable(self, coord: Coord) -> bool:
        return math.isinf(self.cost(coord))

    def requires_jump(self, coord: Coord) -> bool:
        return coord in self._jump

    @property
    def bounds(self) -> Optional[Bounds]:
        return self._bounds

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_cost(self, coord: Coord, cost: float, *, requires_jump: bool = False) -> bool:
        """
        Record the latest classification for a cell.

        Returns True if the stored cost or jump flag changed.
        """
        cost = float(cost)
        if not cost > 0:
            raise ValueError(f"cost must be positive, got {cost} at {coord}")

        key = (int(coord[0]), int(coord[1]))
        changed = self._costs.get(key) != cost or (key in self._jump) != requires_jump

        self._costs[key] = cost
        if requires_jump and not math.isinf(cost):
            self._jump.add(key)
        else:
            self._jump.discard(key)
        return changed

    def mark_impassable(self, coord: Coord) -> bool:
        return self.set_cost(coord, IMPASSABLE)

    def extend_bounds(self, bounds: Bounds) -> None:
        self._bounds = bounds if self._bounds is None else self._bounds.union(bounds)

    def clear(self) -> None:
        self._costs.clear()
        self._jump.clear()
        self._bounds = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def items(self) -> Iterator[Tuple[Coord, float]]:
        return iter(list(self._costs.items()))

    def impassable_cells(self) -> Set[Coord]:
        return {c for c, cost in self._costs.items() if math.isinf(cost)}

    def jump_cells(self) -> Set[Coord]:
        return set(self._jump)

    def __contains__(self, coord: object) -> bool:
        return coord in self._costs

    def __len__(self) -> int:
        return len(self._costs)

    def __repr__(self) -> str:
        return (
            f"GridCostMap(cells={len(self._costs)}, impassable={len(self.impassable_cells())}, "
            f"jump={len(self._jump)}, bounds={self._bounds})"
        )
