"""
Promotion Registry - Data Model
=================================
Slot-addressed promotion records and their usage bookkeeping.

Usage counter convention (per promotion, per customer):
    NEVER_JOINED (0)   customer never redeemed this promotion
    N > 0              redeemed N times, currently active
    REMOVED (-1)       was active, then removed by the owner

participants is an append-only ledger of everyone who ever joined.
Who is active *now* is decided by the usage counter alone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Tuple

NEVER_JOINED = 0
REMOVED = -1

# Tombstoned slots carry an empty name.
TOMBSTONE_NAME = ""


@dataclass
class Promotion:
    """Mutable registry record. Only PromotionRegistry writes to it."""

    slot: int
    name: str
    description: str
    expiry: datetime
    max_customers: int
    max_uses_per_customer: int
    created_at: datetime
    current_customer_count: int = 0
    participants: List[str] = field(default_factory=list)
    usage: Dict[str, int] = field(default_factory=dict)

    @property
    def is_tombstoned(self) -> bool:
        return self.name == TOMBSTONE_NAME

    def usage_of(self, customer_id: str) -> int:
        return self.usage.get(customer_id, NEVER_JOINED)

    def active_customers(self) -> Tuple[str, ...]:
        return tuple(c for c in self.participants if self.usage_of(c) > 0)

    def snapshot(self) -> "PromotionSnapshot":
        return PromotionSnapshot(
            slot=self.slot,
            name=self.name,
            description=self.description,
            expiry=self.expiry,
            max_customers=self.max_customers,
            max_uses_per_customer=self.max_uses_per_customer,
            current_customer_count=self.current_customer_count,
            participants=tuple(self.participants),
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class PromotionSnapshot:
    """Read-only copy handed to callers."""

    slot: int
    name: str
    description: str
    expiry: datetime
    max_customers: int
    max_uses_per_customer: int
    current_customer_count: int
    participants: Tuple[str, ...]
    created_at: datetime

    @property
    def is_tombstoned(self) -> bool:
        return self.name == TOMBSTONE_NAME


@dataclass(frozen=True)
class RegistryEvent:
    """
    Record of one accepted mutation.

    payload is JSON-ready: datetimes are ISO-8601 strings.
    """

    event_type: str
    payload: dict
    actor_id: str
    occurred_at: datetime
