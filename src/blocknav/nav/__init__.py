# src/blocknav/nav/__init__.py
"""
Navigation subsystem for blocknav.

Provides:
- GridCostMap / Bounds: sparse traversal costs and search bounds
- EnvironmentScanner: bounded scans, column classification, front checks
- find_path: A* over a GridCostMap
- StuckTracker: non-progress counter
- Navigator: goal -> path -> one MovementAction per cycle
"""

from __future__ import annotations

from .grid import IMPASSABLE, Bounds, GridCostMap
from .pathfinder import PathfindingResult, find_path, manhattan, path_cost
from .scanner import ColumnClass, EnvironmentScanner, FrontCheck, ScanResult
from .stuck import StuckTracker
from .executor import Navigator

__all__ = [
    "IMPASSABLE",
    "Bounds",
    "GridCostMap",
    "PathfindingResult",
    "find_path",
    "manhattan",
    "path_cost",
    "ColumnClass",
    "EnvironmentScanner",
    "FrontCheck",
    "ScanResult",
    "StuckTracker",
    "Navigator",
]
