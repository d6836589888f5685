#!/usr/bin/env python3
"""
tools/nav_demo.py

Run the navigator against an in-memory FakeWorld and show the result.

Default mode:
    - Builds a small preset map (walls, a jumpable ledge, water, lava)
    - Runs NavigationAgent from 'S' to 'G'
    - Prints the explored grid, the final path, and recent events

Examples:
    python tools/nav_demo.py
    python tools/nav_demo.py --map maze --profile cautious
    python tools/nav_demo.py --stuck --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List

# ---------------------------------------------------------------------------
# Ensure src/ is on sys.path when running as a script
# ---------------------------------------------------------------------------

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# ---------------------------------------------------------------------------
# Imports from the project
# ---------------------------------------------------------------------------

from rich.console import Console  # noqa: E402

from blocknav import NavigationAgent  # type: ignore[import]  # noqa: E402
from blocknav.testing.fakes import FakeWorld, StuckWorld  # type: ignore[import]  # noqa: E402
from env.loader import load_navigation_config  # type: ignore[import]  # noqa: E402
from monitoring.bus import EventBus  # type: ignore[import]  # noqa: E402
from monitoring.grid_view import NavEventLog, render_grid_panel  # type: ignore[import]  # noqa: E402
from monitoring.logger import JsonFileLogger  # type: ignore[import]  # noqa: E402
from runtime.logging_config import configure_logging  # type: ignore[import]  # noqa: E402
from spec.types import to_coord  # type: ignore[import]  # noqa: E402


log = logging.getLogger("nav_demo")


MAPS: Dict[str, List[str]] = {
    "ledge": [
        "...........",
        ".S...#.....",
        ".....#.....",
        ".....j...G.",
        ".....#.....",
        "...........",
    ],
    "maze": [
        "#############",
        "#S....#.....#",
        "####..#.##..#",
        "#.....#..#..#",
        "#.######.#..#",
        "#........#.G#",
        "#############",
    ],
    "hazards": [
        "..........",
        ".S..www...",
        "....LLL..G",
        "....www...",
        "..........",
    ],
}


def _print_header(console: Console, title: str) -> None:
    console.rule(title)


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="blocknav demo on a fake block world")
    parser.add_argument("--map", choices=sorted(MAPS), default="ledge", help="preset map")
    parser.add_argument("--profile", default=None, help="navigation.yaml profile name")
    parser.add_argument("--config", type=Path, default=None, help="alternate navigation.yaml")
    parser.add_argument("--max-cycles", type=int, default=500)
    parser.add_argument("--stuck", action="store_true", help="use a world that never moves the agent")
    parser.add_argument("--events", type=Path, default=None, help="write monitoring events to this JSONL file")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--quiet-steps", action="store_true", help="hide per-step trace lines")
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, step_trace=not args.quiet_steps)
    console = Console()

    config = load_navigation_config(args.profile, path=args.config)
    log.info("Using navigation profile %r", config.name)

    world_cls = StuckWorld if args.stuck else FakeWorld
    world = world_cls.from_ascii(MAPS[args.map])
    goal = world.markers.get("G")
    if goal is None:
        console.print(f"[red]Map {args.map!r} has no goal marker[/red]")
        return 2

    bus = EventBus()
    events = NavEventLog(bus, max_events=15)
    sink = JsonFileLogger(args.events, bus) if args.events is not None else None

    agent = NavigationAgent(world, config, bus=bus)
    try:
        _print_header(console, f"Navigating {args.map}: {to_coord(world.position())} -> {goal}")
        outcome = agent.navigate_to(goal[0], world.ground_y, goal[1], max_cycles=args.max_cycles)
    finally:
        events.close()
        if sink is not None:
            sink.close()

    nav = agent.navigator
    _print_header(console, "Grid")
    console.print(
        render_grid_panel(
            nav.grid,
            path=nav.path,
            agent=to_coord(outcome.position),
            goal=goal,
        )
    )
    console.print(events.render())

    _print_header(console, "Outcome")
    console.print(
        f"status=[bold]{outcome.status.value}[/bold] cycles={outcome.cycles} "
        f"steps={outcome.steps} position={outcome.position} scans={nav.scanner.scan_count}"
    )
    return 0 if outcome.reached else 1


if __name__ == "__main__":
    raise SystemExit(main())
