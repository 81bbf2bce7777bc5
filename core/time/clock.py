"""
Promotion Registry - Clocks
=============================
The registry reads "now" from an injected clock so expiry can be
decided against a pinned instant in tests and during replay.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now_utc(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Stands still until moved.

    Usage:
        clock = FixedClock(datetime(2026, 5, 1, tzinfo=timezone.utc))
        clock.advance(3600)            # one hour later
        clock.set(promotion_expiry)    # exactly at the deadline
    """

    def __init__(self, instant: datetime) -> None:
        self._instant = _require_aware(instant)

    def now_utc(self) -> datetime:
        return self._instant

    def advance(self, seconds: float) -> None:
        self._instant += timedelta(seconds=seconds)

    def set(self, instant: datetime) -> None:
        self._instant = _require_aware(instant)


def _require_aware(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        raise ValueError("FixedClock requires a timezone-aware datetime.")
    return instant
