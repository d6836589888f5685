# src/blocknav/testing/__init__.py
"""In-memory world fakes for tests and demos."""

from __future__ import annotations

from .fakes import FakeWorld, StuckWorld

__all__ = ["FakeWorld", "StuckWorld"]
