"""
Promotion Registry - Event Store Errors & Results
===================================================
Every refused write is reported as a PersistResult with an
explicit Rejection. Exceptions are reserved for corrupted history.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Optional


class RejectionCode:
    """Reasons the store refuses an event."""

    MISSING_FIELD = "MISSING_FIELD"
    EMPTY_ACTOR_ID = "EMPTY_ACTOR_ID"
    EVENT_TYPE_UNKNOWN = "EVENT_TYPE_UNKNOWN"
    DUPLICATE_EVENT = "DUPLICATE_EVENT"
    HASH_CHAIN_BROKEN = "HASH_CHAIN_BROKEN"
    TRANSACTION_ABORTED = "TRANSACTION_ABORTED"


@dataclass(frozen=True)
class Rejection:
    code: str
    message: str


@dataclass(frozen=True)
class PersistResult:
    """
    Outcome of one append.

    accepted=True carries the stored event_id (and the stored row or
    record in `event`); accepted=False carries a Rejection.
    """

    accepted: bool
    event_id: Optional[uuid.UUID] = None
    rejection: Optional[Rejection] = None
    event: Any = None

    def __post_init__(self):
        if self.accepted and self.rejection is not None:
            raise ValueError("Accepted result cannot carry a rejection.")
        if not self.accepted and self.rejection is None:
            raise ValueError("Rejected result must carry a rejection.")

    @classmethod
    def reject(cls, code: str, message: str) -> "PersistResult":
        return cls(accepted=False, rejection=Rejection(code=code, message=message))


class EventStoreError(Exception):
    """Base error for event store integrity problems."""
    pass


class HashChainBrokenError(EventStoreError):
    """Stored history does not form a continuous hash chain."""

    def __init__(self, event_id: Any, position: int, detail: str):
        self.event_id = event_id
        self.position = position
        self.detail = detail
        super().__init__(
            f"Hash chain broken at position {position} "
            f"(event_id: {event_id}): {detail}"
        )
