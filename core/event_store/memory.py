"""
Promotion Registry - In-Memory Event Store
============================================
Process-local twin of the database store. Same validation, same
hash chain, same call signature as persistence.persist_event, so
the promotion service cannot tell them apart.

Used in tests and for embedded registries that do not need
durability across restarts.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Optional

from core.event_store.errors import PersistResult, RejectionCode
from core.event_store.hashing.hasher import GENESIS_HASH, compute_event_hash
from core.event_store.validation import validate_event_data
from core.time.clock import Clock, SystemClock

logger = logging.getLogger("promotions.event_store")


@dataclass(frozen=True)
class StoredEvent:
    event_id: uuid.UUID
    event_type: str
    event_version: int
    registry_id: uuid.UUID
    actor_id: str
    correlation_id: uuid.UUID
    causation_id: Optional[uuid.UUID]
    payload: dict
    sequence: int
    created_at: datetime
    received_at: datetime
    previous_event_hash: str
    event_hash: str


class InMemoryEventStore:
    """
    Thread-safe append-only event list, chained per registry.

    Usage:
        store = InMemoryEventStore()
        result = store(event_data=data, registry=event_type_registry)
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._events: list[StoredEvent] = []
        self._event_ids: set[uuid.UUID] = set()
        self._heads: dict[uuid.UUID, StoredEvent] = {}
        self._clock = clock or SystemClock()

    def __call__(
        self,
        *,
        event_data: dict[str, Any],
        registry: Any = None,
        **kwargs: Any,
    ) -> PersistResult:
        return self.persist(event_data=event_data, registry=registry)

    def persist(
        self,
        *,
        event_data: dict[str, Any],
        registry: Any = None,
    ) -> PersistResult:
        rejection = validate_event_data(event_data, registry)
        if rejection is not None:
            return rejection

        with self._lock:
            if event_data["event_id"] in self._event_ids:
                return PersistResult.reject(
                    RejectionCode.DUPLICATE_EVENT,
                    f"Event {event_data['event_id']} already persisted.",
                )

            registry_id = event_data["registry_id"]
            head = self._heads.get(registry_id)
            previous_hash = head.event_hash if head is not None else GENESIS_HASH
            record = dict(
                event_id=event_data["event_id"],
                event_type=event_data["event_type"],
                event_version=event_data["event_version"],
                registry_id=registry_id,
                actor_id=event_data["actor_id"],
                correlation_id=event_data["correlation_id"],
                causation_id=event_data.get("causation_id"),
                payload=event_data["payload"],
                sequence=head.sequence + 1 if head is not None else 1,
                created_at=event_data["created_at"],
            )
            event = StoredEvent(
                **record,
                received_at=self._now(),
                previous_event_hash=previous_hash,
                event_hash=compute_event_hash(record, previous_hash),
            )
            self._events.append(event)
            self._event_ids.add(event.event_id)
            self._heads[registry_id] = event

        logger.debug(
            f"Stored {event.event_type} ({event.event_id}) "
            f"at position {event.sequence}"
        )

        return PersistResult(accepted=True, event_id=event.event_id, event=event)

    def load_events(self, registry_id: uuid.UUID) -> tuple[dict, ...]:
        """Event envelopes for one registry, in replay order."""
        with self._lock:
            return tuple(
                asdict(e) for e in self._events if e.registry_id == registry_id
            )

    @property
    def event_count(self) -> int:
        with self._lock:
            return len(self._events)

    def _now(self) -> datetime:
        return self._clock.now_utc()
