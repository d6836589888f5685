# blocknav package
# src/blocknav/__init__.py
"""
blocknav package.

Exports:
    - Navigator: incremental A* navigator for one agent
    - NavigationAgent: synchronous control loop around a Navigator
    - NavigationError: domain-level error for collaborator failures
"""

from __future__ import annotations

from .core import NavigationAgent, NavigationError, NavigationOutcome
from .nav import Navigator

__all__ = [
    "Navigator",
    "NavigationAgent",
    "NavigationError",
    "NavigationOutcome",
]
