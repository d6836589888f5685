# in-process pub/sub for navigation events
"""
Event bus carrying MonitoringEvents from a Navigator to its listeners
(JSONL file sink, NavEventLog view, test captures).

There is no process-wide default instance: every Navigator is handed the
bus it should publish to (or none).
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, List

from .events import MonitoringEvent


log = logging.getLogger(__name__)


SubscriberFn = Callable[[MonitoringEvent], None]


class EventBus:
    """
    Thread-safe subscriber list; publish delivers synchronously, in
    subscription order, on the caller's thread.
    """

    def __init__(self) -> None:
        self._subscribers: List[SubscriberFn] = []
        self._lock = Lock()

    def subscribe(self, fn: SubscriberFn) -> None:
        with self._lock:
            self._subscribers.append(fn)

    def unsubscribe(self, fn: SubscriberFn) -> None:
        """Remove `fn`; unknown subscribers are ignored."""
        with self._lock:
            if fn in self._subscribers:
                self._subscribers.remove(fn)

    def publish(self, event: MonitoringEvent) -> None:
        """
        Deliver `event` to a snapshot of the current subscribers.

        The lock is not held during delivery, so a subscriber may
        (un)subscribe from inside its callback. A subscriber that raises is
        logged and skipped; navigation never sees the error.
        """
        with self._lock:
            subscribers = list(self._subscribers)

        for fn in subscribers:
            try:
                fn(event)
            except Exception:
                log.exception(
                    "Monitoring subscriber %r failed on %s", fn, event.event_type.name
                )
