"""Status listeners that observe the security service."""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..config.defaults import SYSTEM_CONSTANTS
from ..models.security import AlarmStatus
from .interfaces import StatusListenerInterface
from ..logging_config import get_logger

logger = get_logger("status_listeners")


class LoggingStatusListener(StatusListenerInterface):
    """Writes every status event to the log, like the panel's status display."""

    def notify(self, alarm_status: AlarmStatus) -> None:
        logger.info(f"System status: {alarm_status.description}")

    def cat_detected(self, cat_present: bool) -> None:
        if cat_present:
            logger.warning("DANGER - CAT DETECTED")
        else:
            logger.info("Camera shows no cats")

    def sensor_status_changed(self) -> None:
        logger.info("Sensor panel refreshed")


@dataclass
class StatusEvent:
    """A single delivered listener event."""
    event_type: str  # alarm, cat, sensors
    value: Optional[Any] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "value": self.value,
            "timestamp": self.timestamp.isoformat()
        }


class StatusHistoryListener(StatusListenerInterface):
    """Keeps a bounded history of recent events for the control API."""

    def __init__(self, max_events: int = 50):
        max_events = max(1, min(max_events, SYSTEM_CONSTANTS["MAX_EVENT_HISTORY"]))
        self._events: deque = deque(maxlen=max_events)
        self._lock = threading.Lock()
        self.last_alarm_status: Optional[AlarmStatus] = None
        self.last_cat_verdict: Optional[bool] = None

    def notify(self, alarm_status: AlarmStatus) -> None:
        self.last_alarm_status = alarm_status
        self._record(StatusEvent("alarm", alarm_status.name))

    def cat_detected(self, cat_present: bool) -> None:
        self.last_cat_verdict = cat_present
        self._record(StatusEvent("cat", cat_present))

    def sensor_status_changed(self) -> None:
        self._record(StatusEvent("sensors"))

    def _record(self, event: StatusEvent) -> None:
        with self._lock:
            self._events.append(event)

    def get_events(self, limit: Optional[int] = None) -> List[StatusEvent]:
        """Most recent events, oldest first."""
        with self._lock:
            events = list(self._events)
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
