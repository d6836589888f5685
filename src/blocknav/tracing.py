# src/blocknav/tracing.py
"""
Per-step tracing for blocknav.

A thin structured-logging layer around each executed movement so that
tests, the demo tool and the monitoring layer see the same records.

It does NOT:
- Make navigation decisions
- Publish monitoring events (the Navigator does that)
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from runtime.logging_config import STEP_LOGGER_NAME
from spec.types import MovementAction, NavStatus, Position


@dataclass
class StepTraceRecord:
    """One executed movement and what came of it."""

    timestamp: float
    cycle: int

    action: str
    direction: Optional[str]
    recovery: bool

    start: Position
    end: Position
    confirmed: bool
    error: Optional[str]

    status: str


class StepTracer:
    """
    Rolling buffer of StepTraceRecords plus one info log line per step.

    Turn the "blocknav.step" logger down to WARNING to silence the lines
    without losing the records.
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        max_records: int = 5_000,
    ) -> None:
        self._logger = logger or logging.getLogger(STEP_LOGGER_NAME)
        self._records: Deque[StepTraceRecord] = deque(maxlen=max_records)

    def record(
        self,
        *,
        cycle: int,
        action: MovementAction,
        start: Position,
        end: Position,
        confirmed: bool,
        status: NavStatus,
        error: Optional[str] = None,
    ) -> StepTraceRecord:
        record = StepTraceRecord(
            timestamp=time.time(),
            cycle=cycle,
            action=action.kind.value,
            direction=action.direction.value if action.direction is not None else None,
            recovery=action.recovery,
            start=tuple(start),
            end=tuple(end),
            confirmed=confirmed,
            error=error,
            status=status.value,
        )
        self._records.append(record)

        self._logger.info(
            "step cycle=%d action=%s dir=%s recovery=%s from=%s to=%s confirmed=%s status=%s error=%s",
            record.cycle,
            record.action,
            record.direction,
            record.recovery,
            record.start,
            record.end,
            record.confirmed,
            record.status,
            record.error,
        )
        return record

    def get_records(self) -> List[StepTraceRecord]:
        return list(self._records)

    def clear(self) -> None:
        self._records.clear()
