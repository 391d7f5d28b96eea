"""Per-instance publish/subscribe registry for lifecycle events."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Union

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Any]


class Event(str, Enum):
    TENSOR_ADDED = "add-tensor"
    TENSOR_REMOVED = "remove-tensor"
    OPERATION_RUN = "run-operation"
    MESSAGE_SENT = "message-sent"
    MESSAGE_RECEIVED = "message-received"


def _as_event(event: Union[Event, str]) -> Event:
    if isinstance(event, Event):
        return event
    try:
        return Event(event)
    except ValueError:
        raise ValueError(f"Unknown event: {event!r}") from None


class Observer:
    """Map each ``Event`` to an ordered list of handlers."""

    def __init__(self):
        self._handlers: Dict[Event, List[Handler]] = {}

    def subscribe(self, event: Union[Event, str], handler: Handler) -> Handler:
        self._handlers.setdefault(_as_event(event), []).append(handler)
        return handler

    def unsubscribe(self, event: Union[Event, str], handler: Handler) -> None:
        handlers = self._handlers.get(_as_event(event))
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    def broadcast(self, event: Union[Event, str], payload: Dict[str, Any]) -> None:
        event = _as_event(event)
        # Snapshot so handlers may (un)subscribe while being notified.
        handlers = list(self._handlers.get(event, ()))
        logger.debug("Broadcasting %s to %d handler(s)", event.value, len(handlers))
        for handler in handlers:
            handler(payload)

    def handlers(self, event: Union[Event, str]) -> List[Handler]:
        return list(self._handlers.get(_as_event(event), ()))
