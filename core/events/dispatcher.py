"""
Promotion Registry - Event Dispatch
=====================================
Delivers one committed registry event to its subscribers.

Each handler runs in turn. A handler that raises is logged and
recorded in the report; the rest still run and the committed
mutation stands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Tuple

from core.events.registry import SubscriberRegistry, handler_name

logger = logging.getLogger("promotions.events")


@dataclass(frozen=True)
class DeliveryFailure:
    handler: str
    error_type: str
    message: str


@dataclass(frozen=True)
class DispatchReport:
    event_type: str
    delivered: int
    failures: Tuple[DeliveryFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


def dispatch(event: Any, subscribers: SubscriberRegistry) -> DispatchReport:
    """Call every subscriber of event.event_type. Never raises."""
    event_type = event.event_type
    delivered = 0
    failures = []

    for handler in subscribers.subscribers_for(event_type):
        try:
            handler(event)
        except Exception as exc:
            name = handler_name(handler)
            failures.append(DeliveryFailure(name, type(exc).__name__, str(exc)))
            logger.error(f"Subscriber {name} failed on {event_type}: {exc}", exc_info=True)
        else:
            delivered += 1

    if delivered or failures:
        logger.debug(
            f"Dispatched {event_type}: {delivered} delivered, {len(failures)} failed"
        )
    return DispatchReport(event_type, delivered, tuple(failures))
