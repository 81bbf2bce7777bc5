"""
Promotion Registry - Event Bus
================================
In-process notification of committed registry events.
"""

from core.events.dispatcher import DeliveryFailure, DispatchReport, dispatch
from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    InvalidEventTypeFormat,
)
from core.events.registry import ALL_EVENTS, SubscriberRegistry

__all__ = [
    "ALL_EVENTS",
    "DeliveryFailure",
    "DispatchReport",
    "dispatch",
    "SubscriberRegistry",
    "EventBusError",
    "InvalidEventTypeFormat",
    "DuplicateSubscriberError",
]
