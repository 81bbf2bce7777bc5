"""
Promotion Registry - Persistence Repository
=============================================
Low-level ORM helpers used by the persistence service.
"""

from __future__ import annotations

import uuid

from core.event_store.models import Event

EVENT_FIELDS = (
    "event_id",
    "event_type",
    "event_version",
    "registry_id",
    "actor_id",
    "correlation_id",
    "causation_id",
    "payload",
    "sequence",
    "created_at",
    "received_at",
    "previous_event_hash",
    "event_hash",
)


def save_event(event_data: dict) -> Event:
    """
    Insert one event row.

    The persistence service owns validation and the transaction.
    """
    fields = {k: v for k, v in event_data.items() if k in EVENT_FIELDS}
    return Event.objects.create(**fields)


def event_exists(event_id: uuid.UUID) -> bool:
    return Event.objects.filter(event_id=event_id).exists()


def get_chain_head(
    registry_id: uuid.UUID,
    *,
    lock: bool = False,
) -> Event | None:
    """
    Latest event of a registry's chain.

    lock=True takes a row lock for the duration of the transaction.
    """
    query = Event.objects.filter(registry_id=registry_id).order_by("-sequence")
    if lock:
        query = query.select_for_update()
    return query.first()


def load_events(registry_id: uuid.UUID) -> tuple[dict, ...]:
    """Event envelopes for one registry, in replay order."""
    rows = (
        Event.objects.filter(registry_id=registry_id)
        .order_by("sequence")
        .values(*EVENT_FIELDS)
    )
    return tuple(dict(row) for row in rows)
