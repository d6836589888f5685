# src/runtime/logging_config.py
"""
Central logging configuration for blocknav.

Call configure_logging() from your main entrypoint once, for example:

    from runtime.logging_config import configure_logging
    configure_logging("DEBUG", step_trace=False)

After that, navigator and scanner logs are visible on stdout. The per-step
trace lines from blocknav.tracing go to the "blocknav.step" logger and can be
silenced independently, since a long run emits one line per move.
"""

from __future__ import annotations

import logging
import sys
from typing import Union

STEP_LOGGER_NAME = "blocknav.step"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(level: Union[int, str] = logging.INFO, *, step_trace: bool = True) -> None:
    """
    Configure root logging if no handlers are attached yet.

    Args:
        level: default logging level (logging.INFO, "DEBUG", ...)
        step_trace: when False, per-step trace lines are raised to WARNING
    """
    numeric_level = _resolve_level(level)
    logging.getLogger(STEP_LOGGER_NAME).setLevel(
        logging.NOTSET if step_trace else logging.WARNING
    )

    root = logging.getLogger()

    # Don't duplicate handlers if someone already configured logging.
    if root.handlers:
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric_level)
