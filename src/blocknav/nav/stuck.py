# src/blocknav/nav/stuck.py
"""
Counter-based detection of "the agent is not getting anywhere".

The executor feeds one observation per executed movement. An observation
whose (x, z) position is within `epsilon` of the last recorded position
counts as a non-progress cycle; anything further away resets the counter.
Confirmed steps reset it explicitly.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional

from spec.types import Position


log = logging.getLogger(__name__)

DEFAULT_STUCK_THRESHOLD = 5
DEFAULT_STUCK_EPSILON = 0.5


class StuckTracker:
    def __init__(
        self,
        threshold: int = DEFAULT_STUCK_THRESHOLD,
        epsilon: float = DEFAULT_STUCK_EPSILON,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if threshold < 1:
            raise ValueError(f"stuck threshold must be >= 1, got {threshold}")
        if epsilon < 0:
            raise ValueError(f"stuck epsilon must be >= 0, got {epsilon}")
        self.threshold = threshold
        self.epsilon = epsilon
        self._clock = clock

        self._last_position: Optional[Position] = None
        self._timestamp: float = clock()
        self._counter = 0

    @property
    def counter(self) -> int:
        """Consecutive non-progress cycles since the last reset."""
        return self._counter

    @property
    def is_stuck(self) -> bool:
        return self._counter >= self.threshold

    @property
    def last_position(self) -> Optional[Position]:
        return self._last_position

    @property
    def timestamp(self) -> float:
        """Clock reading of the last recorded progress (or reset)."""
        return self._timestamp

    def reset(self, position: Optional[Position] = None) -> None:
        """Zero the counter and, if given, re-anchor on `position`."""
        if position is not None:
            self._last_position = position
        self._counter = 0
        self._timestamp = self._clock()

    def observe(self, position: Position) -> bool:
        """
        Record one cycle's resulting position.

        Returns True if the agent moved more than epsilon since the last
        recorded position (progress); False if the cycle counted as stuck.
        """
        if self._last_position is None:
            self.reset(position)
            return True

        dx = position[0] - self._last_position[0]
        dz = position[2] - self._last_position[2]
        if math.hypot(dx, dz) > self.epsilon:
            self.reset(position)
            return True

        self._counter += 1
        if self._counter == self.threshold:
            log.warning(
                "No progress at %s for %d cycles (%.1fs)",
                position, self._counter, self._clock() - self._timestamp,
            )
        return False
