# tests/test_nav_scanner.py
"""
Tests for EnvironmentScanner.

Covers:
- column classification (clear / jumpable / impassable, liquids)
- scan window size and the observation cache
- build_grid vs update_grid semantics
- the fresh front check
"""

from __future__ import annotations

import math

import pytest

from blocknav.collision import default_block_profile
from blocknav.nav.grid import Bounds, GridCostMap
from blocknav.nav.scanner import ColumnClass, EnvironmentScanner, classify_column
from blocknav.testing.fakes import FakeWorld
from spec.types import BlockInfo, Direction


PROFILE = default_block_profile()
STONE = PROFILE.block_info("stone")
WATER = PROFILE.block_info("water")
LAVA = PROFILE.block_info("lava")


def _wall(world: FakeWorld, x: int, z: int, y: int = 0) -> None:
    world.place((x, y, z), "stone")
    world.place((x, y + 1, z), "stone")


def test_classify_column_rules():
    assert classify_column(None, None, None, None, PROFILE) == (ColumnClass.CLEAR, 1.0)
    assert classify_column(STONE, None, None, None, PROFILE) == (ColumnClass.JUMPABLE, 1.0)
    assert classify_column(None, STONE, None, None, PROFILE)[0] is ColumnClass.IMPASSABLE
    assert classify_column(STONE, None, STONE, None, PROFILE)[0] is ColumnClass.IMPASSABLE
    assert classify_column(STONE, None, None, STONE, PROFILE)[0] is ColumnClass.IMPASSABLE
    # a low ceiling alone does not block walking
    assert classify_column(None, None, STONE, STONE, PROFILE)[0] is ColumnClass.CLEAR


def test_classify_column_liquid_costs():
    assert classify_column(WATER, None, None, None, PROFILE) == (ColumnClass.CLEAR, 10.0)

    kind, cost = classify_column(LAVA, None, None, None, PROFILE)
    assert kind is ColumnClass.IMPASSABLE
    assert math.isinf(cost)


def test_scan_covers_window_and_classifies_columns():
    world = FakeWorld()
    _wall(world, 1, 0)
    world.place((0, 0, 1), "dirt")
    scanner = EnvironmentScanner(world, radius=1, height=3)

    result = scanner.scan((0, 0, 0))

    assert len(result.observations) == 27
    assert len(result.columns) == 9
    assert result.columns[(1, 0)].kind is ColumnClass.IMPASSABLE
    assert result.columns[(0, 1)].kind is ColumnClass.JUMPABLE
    assert result.columns[(0, 1)].requires_jump
    assert result.columns[(-1, -1)].kind is ColumnClass.CLEAR
    assert result.window == Bounds(-1, -1, 1, 1)
    assert scanner.scan_count == 1
    assert scanner.last_scan is result

    obs = scanner.latest_observation((1, 1, 0))
    assert obs is not None
    assert obs.name == "stone"
    assert not obs.passable


def test_overhead_block_turns_jumpable_columns_impassable():
    world = FakeWorld()
    world.place((0, 0, 1), "dirt")
    world.place((0, 2, 0), "stone")  # right over the agent's head
    scanner = EnvironmentScanner(world)

    result = scanner.scan((0, 0, 0))

    assert result.columns[(0, 1)].kind is ColumnClass.IMPASSABLE
    assert result.columns[(1, 0)].kind is ColumnClass.CLEAR


def test_scan_rejects_short_height():
    world = FakeWorld()
    with pytest.raises(ValueError):
        EnvironmentScanner(world, height=2)
    with pytest.raises(ValueError):
        EnvironmentScanner(world).scan((0, 0, 0), height=2)


def test_build_grid_fills_padded_box_with_scan_and_defaults():
    world = FakeWorld()
    _wall(world, 1, 0)
    world.place((0, 0, 1), "dirt")
    scanner = EnvironmentScanner(world)
    grid = GridCostMap()

    scanner.scan((0, 0, 0))
    written = scanner.build_grid(grid, (0, 0), (6, 0), padding=2)

    assert written == 55
    assert grid.bounds == Bounds(-2, -2, 8, 2)
    assert grid.is_impassable((1, 0))
    assert grid.requires_jump((0, 1))
    # outside the scan window: known, optimistic default
    assert grid.is_known((6, 0))
    assert grid.cost((6, 0)) == 1.0


def test_build_grid_replaces_previous_contents():
    world = FakeWorld()
    scanner = EnvironmentScanner(world)
    grid = GridCostMap()
    grid.mark_impassable((50, 50))

    scanner.scan((0, 0, 0))
    scanner.build_grid(grid, (0, 0), (2, 0), padding=1)

    assert not grid.is_known((50, 50))


def test_update_grid_only_touches_the_scan_window():
    world = FakeWorld()
    _wall(world, 1, 0)
    scanner = EnvironmentScanner(world)
    grid = GridCostMap()
    scanner.scan((0, 0, 0))
    scanner.build_grid(grid, (0, 0), (6, 0), padding=2)

    # The old wall disappears and a new one shows up further east.
    world.remove((1, 0, 0))
    world.remove((1, 1, 0))
    _wall(world, 5, 0)

    changed = scanner.update_grid(grid, (4, 0, 0))

    assert changed == 1
    assert grid.is_impassable((5, 0))
    # (1, 0) lies outside the window around (4, 0), so it keeps its cost
    assert grid.is_impassable((1, 0))


def test_update_grid_extends_bounds_to_the_window():
    world = FakeWorld()
    scanner = EnvironmentScanner(world)
    grid = GridCostMap()
    scanner.scan((0, 0, 0))
    scanner.build_grid(grid, (0, 0), (1, 0), padding=1)

    scanner.update_grid(grid, (20, 0, 0))

    assert grid.bounds is not None
    assert grid.bounds.contains((21, 1))
    assert grid.bounds.contains((-1, -1))


def test_check_front_uses_live_blocks():
    world = FakeWorld()
    _wall(world, 1, 0)
    world.place((0, 0, 1), "dirt")
    scanner = EnvironmentScanner(world)

    east = scanner.check_front((0, 0, 0), Direction.EAST)
    assert east.cell == (1, 0)
    assert east.is_blocked
    assert not east.can_jump

    south = scanner.check_front((0, 0, 0), "south")
    assert south.can_jump
    assert not south.is_blocked

    north = scanner.check_front((0, 0, 0), Direction.NORTH)
    assert not north.is_blocked
    assert not north.can_jump

    world.place((0, 2, 0), "stone")
    assert scanner.check_front((0, 0, 0), Direction.SOUTH).is_blocked


def test_check_front_rejects_unknown_direction():
    scanner = EnvironmentScanner(FakeWorld())
    with pytest.raises(ValueError):
        scanner.check_front((0, 0, 0), "up")


def test_classify_column_uses_profile_table_over_reported_fields():
    reported_lava = BlockInfo("lava", passable=True, cost=1.0)
    reported_water = BlockInfo("minecraft:water", passable=True, cost=2.0)

    assert classify_column(reported_lava, None, None, None, PROFILE)[0] is ColumnClass.IMPASSABLE
    assert classify_column(reported_water, None, None, None, PROFILE) == (ColumnClass.CLEAR, 10.0)
    # a block the world calls solid but the table lists as walkable
    assert classify_column(None, BlockInfo("tall_grass", passable=False), None, None, PROFILE) == (
        ColumnClass.CLEAR,
        1.0,
    )


def test_observation_cache_stays_within_the_latest_window():
    world = FakeWorld()
    scanner = EnvironmentScanner(world, radius=1, height=3)
    grid = GridCostMap()
    scanner.scan((0, 0, 0))
    scanner.build_grid(grid, (0, 0), (40, 0), padding=1)

    for x in range(0, 40, 3):
        scanner.update_grid(grid, (x, 0, 0))
        scanner.check_front((x, 0, 0), Direction.EAST)

    assert scanner.cache_size == 27
    assert scanner.latest_observation((0, 0, 0)) is None
    assert scanner.latest_observation((39, 0, 0)) is not None


def test_check_front_does_not_grow_the_cache():
    world = FakeWorld()
    scanner = EnvironmentScanner(world, radius=0)
    scanner.scan((0, 0, 0))

    scanner.check_front((0, 0, 0), Direction.EAST)

    assert scanner.cache_size == 3
    assert scanner.latest_observation((1, 0, 0)) is None


def test_scan_floors_a_fractional_world_position():
    class DriftingWorld(FakeWorld):
        def position(self):
            return (0.7, 0.2, -0.3)

    scanner = EnvironmentScanner(DriftingWorld())

    result = scanner.scan()

    assert result.center == (0, 0, -1)
    assert (1, -2) in result.columns
    assert all(isinstance(v, int) for pos in result.observations for v in pos)
