"""
Promotion Registry - Time
===========================
Injectable clocks and pure expiry helpers.
"""

from core.time.clock import Clock, FixedClock, SystemClock
from core.time.temporal import is_aware, is_expired, seconds_until_expiry

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "is_aware",
    "is_expired",
    "seconds_until_expiry",
]
