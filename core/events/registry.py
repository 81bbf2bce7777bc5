"""
Promotion Registry - Subscribers
==================================
Who hears about accepted registry mutations.

A handler subscribes to one event type, or to every type with
ALL_EVENTS. Handlers are called with the RegistryEvent after the
mutation and its durable event have both been committed.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    InvalidEventTypeFormat,
)

logger = logging.getLogger("promotions.events")

ALL_EVENTS = "*"

Handler = Callable[[object], object]


def handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", type(handler).__name__)


class SubscriberRegistry:
    """
    Usage:
        subscribers = SubscriberRegistry()
        subscribers.subscribe("promotion.customer.applied.v1", send_receipt)
        subscribers.subscribe(ALL_EVENTS, audit_trail.append)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, event_type: str, handler: Handler) -> None:
        _check_event_type(event_type)
        if not callable(handler):
            raise EventBusError(f"Handler must be callable, got {type(handler)}.")

        with self._lock:
            handlers = self._handlers.setdefault(event_type, [])
            if any(h is handler for h in handlers):
                raise DuplicateSubscriberError(event_type, handler_name(handler))
            handlers.append(handler)

        logger.info(f"Subscribed {handler_name(handler)} to {event_type}")

    def unsubscribe(self, event_type: str, handler: Handler) -> bool:
        """False when the handler was not subscribed."""
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            for i, existing in enumerate(handlers):
                if existing is handler:
                    del handlers[i]
                    return True
        return False

    def subscribers_for(self, event_type: str) -> Tuple[Handler, ...]:
        """Handlers of this exact type first, then ALL_EVENTS handlers."""
        with self._lock:
            return tuple(self._handlers.get(event_type, ())) + tuple(
                self._handlers.get(ALL_EVENTS, ())
            )

    def subscriber_count(self, event_type: Optional[str] = None) -> int:
        with self._lock:
            if event_type is None:
                return sum(len(h) for h in self._handlers.values())
            return len(self._handlers.get(event_type, ()))


def _check_event_type(event_type) -> None:
    if event_type == ALL_EVENTS:
        return
    if not isinstance(event_type, str):
        raise InvalidEventTypeFormat(event_type)
    parts = event_type.split(".")
    if len(parts) < 3 or not all(p and p == p.strip() for p in parts):
        raise InvalidEventTypeFormat(event_type)
