"""
Promotion Registry - Temporal Helpers
=======================================
Pure functions. Every instant is passed in explicitly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional


def is_aware(dt: datetime) -> bool:
    """True when dt carries a usable UTC offset."""
    return dt.tzinfo is not None and dt.tzinfo.utcoffset(dt) is not None


def is_expired(expiry: datetime, now: datetime) -> bool:
    """
    A deadline has passed once `now` is strictly later than it.

    At the exact expiry instant the deadline still holds.
    """
    return now > expiry


def seconds_until_expiry(expiry: datetime, now: datetime) -> Optional[float]:
    """Seconds left before `expiry`, or None if already expired."""
    remaining = (expiry - now).total_seconds()
    return remaining if remaining >= 0 else None
