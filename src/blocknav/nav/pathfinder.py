# A* pathfinding over GridCostMap
# src/blocknav/nav/pathfinder.py
"""
A* pathfinding over a GridCostMap.

- Uses Manhattan distance heuristic on the (x, z) plane.
- 4-directional neighbours, weighted by the neighbour's grid cost.
- Impassable (infinite-cost) cells are never expanded.
- max_expansions guard to avoid runaway searches on open or disconnected grids.

Tie-breaking is deterministic: among equal f, the node with the lower h is
popped first, then the one pushed earliest.

The Manhattan heuristic is admissible while no cell costs less than 1.
Configuring cheaper-than-default terrain breaks that, and paths are then
only approximately optimal.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from spec.types import Coord, within_tolerance
from .grid import Bounds, GridCostMap


log = logging.getLogger(__name__)

DEFAULT_MAX_EXPANSIONS = 10_000

# East, west, south, north
NEIGHBOR_OFFSETS: Tuple[Coord, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


@dataclass
class SearchNode:
    """
    One coordinate under evaluation in a single find_path call.

    f is derived from g and h and cannot be assigned on its own.
    """

    coord: Coord
    g: float
    h: float
    parent: Optional[Coord] = None

    @property
    def f(self) -> float:
        return self.g + self.h

    def update(self, g: float, parent: Optional[Coord]) -> None:
        self.g = g
        self.parent = parent


@dataclass
class PathfindingResult:
    """Structured result for a pathfinding attempt."""

    path: List[Coord]
    success: bool
    reason: str | None = None
    expansions: int = 0
    cost: float = 0.0
    visited: Set[Coord] = field(default_factory=set, repr=False)


def manhattan(a: Coord, b: Coord) -> float:
    """Manhattan distance heuristic for A*."""
    return float(abs(a[0] - b[0]) + abs(a[1] - b[1]))


def find_path(
    grid: GridCostMap,
    start: Coord,
    goal: Coord,
    *,
    max_expansions: int = DEFAULT_MAX_EXPANSIONS,
    tolerance: int = 0,
    bounds: Bounds | None = None,
) -> PathfindingResult:
    """
    A* search for a least-cost path from start to goal on a GridCostMap.

    Returns a PathfindingResult with:
      - path: list of coordinates including start and the reached goal cell,
              or [] on failure
      - success: bool
      - reason: on failure, "no_path_found" or "max_expansions_exhausted"
      - expansions: number of nodes finalized
      - cost: total traversal cost of the path (sum of entered cell costs)

    `tolerance` is the shared arrival tolerance; with 0 the search only
    terminates on the goal cell itself. `bounds`, if given, confines the
    search to that rectangle.

    This function does not query or mutate world state.
    """
    start = (int(start[0]), int(start[1]))
    goal = (int(goal[0]), int(goal[1]))

    if within_tolerance(start, goal, tolerance):
        return PathfindingResult(path=[start], success=True, expansions=0, cost=0.0)

    counter = itertools.count()
    nodes: Dict[Coord, SearchNode] = {start: SearchNode(start, 0.0, manhattan(start, goal))}
    open_heap: List[Tuple[float, float, int, Coord]] = []
    heapq.heappush(open_heap, (nodes[start].f, nodes[start].h, next(counter), start))

    closed: Set[Coord] = set()
    expansions = 0

    while open_heap:
        if expansions >= max_expansions:
            log.debug(
                "A* aborted after %d expansions (%s -> %s)", expansions, start, goal
            )
            return PathfindingResult(
                path=[],
                success=False,
                reason="max_expansions_exhausted",
                expansions=expansions,
                visited=closed,
            )

        f, _, _, coord = heapq.heappop(open_heap)
        if coord in closed:
            continue
        current = nodes[coord]
        if f > current.f:
            # superseded by a cheaper push of the same coord
            continue

        closed.add(coord)
        expansions += 1

        if within_tolerance(coord, goal, tolerance):
            path = _reconstruct_path(nodes, coord)
            log.debug(
                "A* found path of %d cells, cost %.1f, after %d expansions",
                len(path), current.g, expansions,
            )
            return PathfindingResult(
                path=path,
                success=True,
                expansions=expansions,
                cost=current.g,
                visited=closed,
            )

        for dx, dz in NEIGHBOR_OFFSETS:
            nxt = (coord[0] + dx, coord[1] + dz)
            if nxt in closed:
                continue
            if bounds is not None and not bounds.contains(nxt):
                continue

            step_cost = grid.cost(nxt)
            if math.isinf(step_cost):
                continue

            tentative_g = current.g + step_cost
            neighbor = nodes.get(nxt)

            if neighbor is None:
                neighbor = SearchNode(nxt, tentative_g, manhattan(nxt, goal), parent=coord)
                nodes[nxt] = neighbor
            elif tentative_g < neighbor.g:
                neighbor.update(tentative_g, coord)
            else:
                continue

            heapq.heappush(open_heap, (neighbor.f, neighbor.h, next(counter), nxt))

    log.debug("A* exhausted open set after %d expansions (%s -> %s)", expansions, start, goal)
    return PathfindingResult(
        path=[],
        success=False,
        reason="no_path_found",
        expansions=expansions,
        visited=closed,
    )


def path_cost(path: Sequence[Coord], grid: GridCostMap) -> float:
    """Sum of traversal costs of every cell entered after the start."""
    return float(sum(grid.cost(c) for c in path[1:]))


def _reconstruct_path(nodes: Dict[Coord, SearchNode], current: Coord) -> List[Coord]:
    """Reconstruct full path by following parent links back to the start."""
    path: List[Coord] = [current]
    parent = nodes[current].parent
    while parent is not None:
        path.append(parent)
        parent = nodes[parent].parent
    path.reverse()
    return path
