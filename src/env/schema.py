# NavigationConfig dataclass
# src/env/schema.py

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping


def _default_block_costs() -> Dict[str, float]:
    return {
        "water": 10.0,
        "flowing_water": 10.0,
        "lava": math.inf,
        "flowing_lava": math.inf,
    }


def _default_passable_blocks() -> List[str]:
    return [
        "air",
        "cave_air",
        "void_air",
        "short_grass",
        "tall_grass",
        "grass",
        "fern",
        "dead_bush",
        "dandelion",
        "poppy",
        "sugar_cane",
        "wheat",
        "carrots",
        "potatoes",
        "seagrass",
        "kelp",
    ]


@dataclass
class NavigationConfig:
    """Tuning knobs for the scanner, planner, executor and stuck recovery."""

    name: str = "default"

    # Scanner window: horizontal radius and vertical height above the feet
    scan_radius: int = 1
    scan_height: int = 3

    # Margin around the start/goal bounding box when building the grid
    grid_padding: int = 5

    # A* expansion cap
    max_search_expansions: int = 10_000

    # Incremental rescan + replan every N confirmed steps (0 disables)
    rescan_interval: int = 3

    # Stuck detection
    stuck_threshold: int = 5
    stuck_epsilon: float = 0.5
    max_recoveries: int = 4

    # Arrival predicate tolerance (Chebyshev cells); 0 = exact
    arrival_tolerance: int = 0

    # Executor guards
    max_steps: int = 2000
    max_waypoint_skips: int = 64

    # Terrain costs
    default_cost: float = 1.0
    block_costs: Dict[str, float] = field(default_factory=_default_block_costs)
    passable_blocks: List[str] = field(default_factory=_default_passable_blocks)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, name: str | None = None) -> "NavigationConfig":
        """Convenience constructor from a plain dict (e.g. YAML)."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown navigation config keys: {sorted(unknown)}")

        kwargs: Dict[str, Any] = dict(data)
        if name is not None:
            kwargs["name"] = name
        if "block_costs" in kwargs:
            merged = _default_block_costs()
            merged.update({str(k): float(v) for k, v in (kwargs["block_costs"] or {}).items()})
            kwargs["block_costs"] = merged
        if "passable_blocks" in kwargs:
            kwargs["passable_blocks"] = [str(b) for b in kwargs["passable_blocks"] or []]

        cfg = cls(**kwargs)
        cfg.validate()
        return cfg

    def validate(self) -> None:
        """Minimal sanity checks; raises ValueError on nonsense values."""
        if self.scan_radius < 0:
            raise ValueError(f"scan_radius must be >= 0, got {self.scan_radius}")
        if self.scan_height < 3:
            # feet, head and above-head are all needed for classification
            raise ValueError(f"scan_height must be >= 3, got {self.scan_height}")
        if self.grid_padding < 0:
            raise ValueError(f"grid_padding must be >= 0, got {self.grid_padding}")
        if self.max_search_expansions <= 0:
            raise ValueError("max_search_expansions must be positive")
        if self.rescan_interval < 0:
            raise ValueError("rescan_interval must be >= 0")
        if self.stuck_threshold <= 0:
            raise ValueError("stuck_threshold must be positive")
        if self.stuck_epsilon < 0:
            raise ValueError("stuck_epsilon must be >= 0")
        if self.max_recoveries <= 0:
            raise ValueError("max_recoveries must be positive")
        if self.arrival_tolerance < 0:
            raise ValueError("arrival_tolerance must be >= 0")
        if self.max_steps <= 0 or self.max_waypoint_skips <= 0:
            raise ValueError("max_steps and max_waypoint_skips must be positive")
        if not (self.default_cost > 0 and math.isfinite(self.default_cost)):
            raise ValueError(f"default_cost must be a finite positive number, got {self.default_cost}")
        for block, cost in self.block_costs.items():
            if not cost > 0:
                raise ValueError(f"block cost for {block!r} must be positive, got {cost}")
