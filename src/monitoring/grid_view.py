# rich rendering of the navigation grid
# src/monitoring/grid_view.py
"""
Terminal views for blocknav, built with `rich`.

- render_grid_text / render_grid_panel:
    top-down picture of a GridCostMap with the path, agent and goal.
- NavEventLog:
    subscribes to an EventBus and keeps the last N events for a table view.

Legend (one character per cell, x to the right, z downward):

    @ agent     G goal      * path
    # impassable            ^ requires jump
    ~ elevated cost         . known, default cost
    , unknown (default cost assumed)
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from typing import Deque, Iterable, List, Optional

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .bus import EventBus
from .events import MonitoringEvent

from blocknav.nav.grid import Bounds, GridCostMap
from spec.types import Coord


GLYPH_STYLES = {
    "@": "bold cyan",
    "G": "bold green",
    "*": "yellow",
    "#": "red",
    "^": "magenta",
    "~": "blue",
    ".": "dim",
    ",": "dim",
}


def cell_glyph(
    grid: GridCostMap,
    coord: Coord,
    *,
    path_cells: frozenset = frozenset(),
    agent: Optional[Coord] = None,
    goal: Optional[Coord] = None,
) -> str:
    """Single-character picture of one cell; markers win over terrain."""
    if coord == agent:
        return "@"
    if coord == goal:
        return "G"
    if coord in path_cells:
        return "*"
    if not grid.is_known(coord):
        return ","
    cost = grid.cost(coord)
    if math.isinf(cost):
        return "#"
    if grid.requires_jump(coord):
        return "^"
    if cost > grid.default_cost:
        return "~"
    return "."


def _view_bounds(
    grid: GridCostMap,
    markers: Iterable[Optional[Coord]],
    bounds: Optional[Bounds],
) -> Optional[Bounds]:
    if bounds is not None:
        return bounds
    view = grid.bounds
    for coord in markers:
        if coord is None:
            continue
        box = Bounds.window(coord, 0)
        view = box if view is None else view.union(box)
    return view


def render_grid_text(
    grid: GridCostMap,
    *,
    path: Optional[Iterable[Coord]] = None,
    agent: Optional[Coord] = None,
    goal: Optional[Coord] = None,
    bounds: Optional[Bounds] = None,
) -> Text:
    """
    Render the grid as styled rows of glyphs.

    The view covers `bounds` if given, else the grid's bounds grown to
    include the agent and goal. Use `.plain` for an unstyled string.
    """
    path_list = list(path or [])
    view = _view_bounds(grid, [agent, goal, *path_list], bounds)
    text = Text()
    if view is None:
        text.append("(empty grid)", style="dim")
        return text

    path_cells = frozenset(path_list)
    for z in range(view.min_z, view.max_z + 1):
        for x in range(view.min_x, view.max_x + 1):
            glyph = cell_glyph(grid, (x, z), path_cells=path_cells, agent=agent, goal=goal)
            text.append(glyph, style=GLYPH_STYLES.get(glyph))
        if z != view.max_z:
            text.append("\n")
    return text


def render_grid_panel(
    grid: GridCostMap,
    *,
    path: Optional[Iterable[Coord]] = None,
    agent: Optional[Coord] = None,
    goal: Optional[Coord] = None,
    bounds: Optional[Bounds] = None,
    title: str = "Navigation Grid",
) -> Panel:
    body = render_grid_text(grid, path=path, agent=agent, goal=goal, bounds=bounds)
    view = _view_bounds(grid, [agent, goal], bounds)
    subtitle = None
    if view is not None:
        subtitle = f"x {view.min_x}..{view.max_x}  z {view.min_z}..{view.max_z}"
    return Panel(body, title=title, subtitle=subtitle, border_style="cyan")


class NavEventLog:
    """
    Rolling view of recent monitoring events.

    Subscribes on construction; call close() to detach from the bus.
    """

    def __init__(self, bus: EventBus, *, max_events: int = 20) -> None:
        self._bus = bus
        self._events: Deque[MonitoringEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()
        bus.subscribe(self._on_event)

    def _on_event(self, event: MonitoringEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[MonitoringEvent]:
        with self._lock:
            return list(self._events)

    def close(self) -> None:
        self._bus.unsubscribe(self._on_event)

    def render(self) -> Table:
        table = Table(show_header=True, header_style="bold magenta", title="Recent Events")
        table.add_column("Time", style="dim", no_wrap=True)
        table.add_column("Event", no_wrap=True)
        table.add_column("Message")

        for event in self.events:
            stamp = time.strftime("%H:%M:%S", time.localtime(event.ts))
            table.add_row(stamp, event.event_type.name, event.message)
        return table
