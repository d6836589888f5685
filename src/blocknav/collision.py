# src/blocknav/collision.py
"""
Block classification helpers for blocknav.

This layer decides, per block name:
    - whether the agent's body can occupy the block (passable), and
    - what a column costs when the block sits at the agent's feet.

It is intentionally small:
    - a set of air-like / plant-like names that are passable at cost 1
    - a table of hazardous-but-passable liquids with elevated or
      infinite cost (water 10, lava inf)
    - everything else is solid

It does NOT:
    - decide jump vs. wall (that is the scanner's column classification)
    - look at more than one block at a time
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from spec.types import BlockInfo

IMPASSABLE = math.inf


def normalize_block_name(name: str) -> str:
    """
    Canonical form used for table lookups.

        "minecraft:Short Grass" -> "short_grass"
    """
    value = name.strip().lower()
    if ":" in value:
        value = value.split(":", 1)[1]
    return value.replace(" ", "_")


@dataclass(frozen=True)
class BlockCostProfile:
    """
    Encapsulates the passability and cost policy for navigation.

    Parameters:
        passable_names:
            Normalized names the agent can walk through (air, grass, ...).
        hazard_costs:
            Normalized liquid names that are passable but carry a special
            cost; math.inf marks deadly terrain.
        default_cost:
            Cost of ordinary ground.
    """

    passable_names: FrozenSet[str] = frozenset({"air", "cave_air", "void_air"})
    hazard_costs: Mapping[str, float] = field(default_factory=dict)
    default_cost: float = 1.0

    @classmethod
    def from_config(cls, config: Any) -> "BlockCostProfile":
        """Build a profile from a NavigationConfig (or anything shaped like it)."""
        return cls(
            passable_names=frozenset(normalize_block_name(n) for n in config.passable_blocks),
            hazard_costs={
                normalize_block_name(k): float(v) for k, v in config.block_costs.items()
            },
            default_cost=float(config.default_cost),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def block_info(self, name: str) -> BlockInfo:
        """Describe a block by name."""
        key = normalize_block_name(name)
        if key in self.hazard_costs:
            return BlockInfo(name=name, passable=True, cost=self.hazard_costs[key])
        if key in self.passable_names:
            return BlockInfo(name=name, passable=True, cost=self.default_cost)
        return BlockInfo(name=name, passable=False, cost=self.default_cost)

    def knows(self, name: str) -> bool:
        """True if this profile has its own entry for the block name."""
        key = normalize_block_name(name)
        return key in self.hazard_costs or key in self.passable_names

    def resolve(self, block: Optional[BlockInfo]) -> Optional[BlockInfo]:
        """
        Apply this profile's table to a block reported by the world.

        Names the profile knows get the profile's passability and cost,
        whatever the world said. Unknown names keep the reported fields.
        """
        if block is None or not self.knows(block.name):
            return block
        return self.block_info(block.name)

    def is_obstructing(self, block: Optional[BlockInfo]) -> bool:
        """
        True if the block occupies space the agent's body needs.

        None (air / unloaded) never obstructs.
        """
        block = self.resolve(block)
        if block is None:
            return False
        return not block.passable

    def foot_cost(self, block: Optional[BlockInfo]) -> float:
        """
        Traversal cost of a column whose feet-level block is `block`.

        Only passable blocks carry their own cost; an obstructing block at
        the feet means a jump onto ordinary ground.
        """
        block = self.resolve(block)
        if block is None or not block.passable:
            return self.default_cost
        return block.cost


def _default_hazards() -> Dict[str, float]:
    return {
        "water": 10.0,
        "flowing_water": 10.0,
        "lava": IMPASSABLE,
        "flowing_lava": IMPASSABLE,
    }


_DEFAULT_PROFILE = BlockCostProfile(
    passable_names=frozenset(
        {
            "air", "cave_air", "void_air", "short_grass", "tall_grass",
            "grass", "fern", "dead_bush", "dandelion", "poppy",
        }
    ),
    hazard_costs=_default_hazards(),
    default_cost=1.0,
)


def default_block_profile() -> BlockCostProfile:
    """
    Return the default BlockCostProfile.

    Navigators built from a NavigationConfig use BlockCostProfile.from_config
    instead.
    """
    return _DEFAULT_PROFILE


def block_infos(names: Iterable[str], profile: BlockCostProfile | None = None) -> Dict[str, BlockInfo]:
    """Describe several blocks at once, keyed by the given names."""
    prof = profile or _DEFAULT_PROFILE
    return {name: prof.block_info(name) for name in names}
