# src/spec/__init__.py

from __future__ import annotations

"""
Public spec surface for blocknav types.

This module re-exports *interfaces and data types* used across the codebase:
  - Grid primitives (Coord, Position, Direction)
  - Block and movement records (BlockInfo, MovementAction, ActionKind)
  - Navigation status (NavStatus)
  - The WorldIO collaborator protocol

Deliberately does NOT export the Navigator implementation; runtime wiring
lives in blocknav.
"""

from .types import (
    ActionKind,
    BlockInfo,
    Coord,
    Direction,
    MovementAction,
    NavStatus,
    Position,
    to_coord,
    within_tolerance,
)
from .world import WorldIO

__all__ = [
    # grid primitives
    "Coord",
    "Position",
    "Direction",
    "to_coord",
    "within_tolerance",
    # records
    "BlockInfo",
    "ActionKind",
    "MovementAction",
    "NavStatus",
    # collaborators
    "WorldIO",
]
