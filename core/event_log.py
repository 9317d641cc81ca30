"""
Operator event log.

Append-only feed of LogEvent entries shown on the dashboard. Appends and
snapshots are lock-protected so HTTP handlers can read while the worker
writes; every event is mirrored to the Python logger.
"""

import logging
import threading
from typing import Dict, List, Tuple

from .models import LogEvent, LogSeverity

logger = logging.getLogger(__name__)

_LEVELS = {
    LogSeverity.INFO: logging.INFO,
    LogSeverity.SUCCESS: logging.INFO,
    LogSeverity.WARNING: logging.WARNING,
    LogSeverity.ERROR: logging.ERROR,
}


class EventLog:
    """Bounded append-only event feed; ``since`` is an absolute sequence number."""

    def __init__(self, max_events: int = 1000):
        self.max_events = max_events
        self._events: List[LogEvent] = []
        self._dropped = 0
        self._lock = threading.Lock()

    def append(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> LogEvent:
        event = LogEvent(message=message, severity=LogSeverity(severity))
        with self._lock:
            self._events.append(event)
            overflow = len(self._events) - self.max_events
            if overflow > 0:
                del self._events[:overflow]
                self._dropped += overflow

        logger.log(_LEVELS[event.severity], f"[{event.severity.value}] {message}")
        return event

    def info(self, message: str) -> LogEvent:
        return self.append(message, LogSeverity.INFO)

    def success(self, message: str) -> LogEvent:
        return self.append(message, LogSeverity.SUCCESS)

    def warning(self, message: str) -> LogEvent:
        return self.append(message, LogSeverity.WARNING)

    def error(self, message: str) -> LogEvent:
        return self.append(message, LogSeverity.ERROR)

    def snapshot(self, since: int = 0) -> Tuple[List[LogEvent], int]:
        """
        Events with sequence number >= ``since``, in emission order.

        Returns the events and the ``since`` value to pass next time.
        """
        with self._lock:
            start = max(since - self._dropped, 0)
            events = list(self._events[start:])
            next_since = self._dropped + len(self._events)
        return events, next_since

    def to_dict(self, since: int = 0) -> Dict[str, object]:
        events, next_since = self.snapshot(since)
        return {"logs": [event.to_dict() for event in events], "next": next_since}

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

