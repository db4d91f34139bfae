"""Domain event constants and publisher.

Defines event type constants and a simple publish() callable used by the
submission, approval and draft flows.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, List
import logging

logger = logging.getLogger(__name__)

APPLICATION_SUBMITTED = "application.submitted"
APPLICATION_STATUS_CHANGED = "application.status_changed"
DRAFT_CLEARED = "draft.cleared"


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    """Publish a domain event.

    Events are logged and buffered in-process; there is no external broker.
    """
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    EVENT_BUFFER.append({"type": event_type, "payload": payload})


# Most recent domain events, oldest dropped first (test visibility)
EVENT_BUFFER_SIZE = 500
EVENT_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=EVENT_BUFFER_SIZE)


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Return buffered domain events; optionally clear the buffer."""
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events


__all__ = [
    "APPLICATION_SUBMITTED",
    "APPLICATION_STATUS_CHANGED",
    "DRAFT_CLEARED",
    "publish",
    "get_buffered_events",
    "EVENT_BUFFER",
    "EVENT_BUFFER_SIZE",
]
