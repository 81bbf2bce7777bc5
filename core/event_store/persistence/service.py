"""
Promotion Registry - Persistence Service
==========================================
The single write path into the database-backed event store.

Write flow:
    1. Validate event structure and type
    2. Refuse a duplicate event_id
    3. Inside transaction.atomic(): lock the chain head,
       assign the next sequence, hash the full record, insert
    4. Return a PersistResult

Any failure produces a rejected PersistResult and no row.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db import DatabaseError, IntegrityError, transaction

from core.event_store.errors import PersistResult, RejectionCode
from core.event_store.hashing.hasher import GENESIS_HASH, compute_event_hash
from core.event_store.persistence.repository import (
    event_exists,
    get_chain_head,
    save_event,
)
from core.event_store.validation import validate_event_data

logger = logging.getLogger("promotions.event_store")


def persist_event(
    *,
    event_data: dict[str, Any],
    registry: Any = None,
    **kwargs: Any,
) -> PersistResult:
    """
    Append one event to its registry's chain.

    Args:
        event_data: Event fields (see validation.REQUIRED_FIELDS).
        registry:   EventTypeRegistry of persistable types.
    """
    rejection = validate_event_data(event_data, registry)
    if rejection is not None:
        return rejection

    if event_exists(event_data["event_id"]):
        return _duplicate(event_data)

    try:
        with transaction.atomic():
            head = get_chain_head(event_data["registry_id"], lock=True)
            previous_hash = head.event_hash if head is not None else GENESIS_HASH
            stored = dict(event_data)
            stored["previous_event_hash"] = previous_hash
            stored["sequence"] = head.sequence + 1 if head is not None else 1
            stored["event_hash"] = compute_event_hash(stored, previous_hash)
            event = save_event(stored)

    except IntegrityError as exc:
        if _is_chain_conflict(exc):
            return PersistResult.reject(
                RejectionCode.HASH_CHAIN_BROKEN,
                "Concurrent append conflict: chain head moved.",
            )
        if event_exists(event_data["event_id"]):
            return _duplicate(event_data)
        return _aborted(exc)

    except DatabaseError as exc:
        return _aborted(exc)

    logger.debug(
        f"Persisted {event.event_type} ({event.event_id}) "
        f"for registry {event.registry_id}"
    )
    return PersistResult(accepted=True, event_id=event.event_id, event=event)


def _is_chain_conflict(exc: IntegrityError) -> bool:
    message = str(exc)
    return (
        "uq_evt_registry_prev_hash" in message
        or "uq_evt_registry_sequence" in message
    )


def _duplicate(event_data: dict) -> PersistResult:
    return PersistResult.reject(
        RejectionCode.DUPLICATE_EVENT,
        f"Event {event_data['event_id']} already persisted.",
    )


def _aborted(exc: Exception) -> PersistResult:
    logger.error(f"Event persistence aborted: {exc}", exc_info=True)
    return PersistResult.reject(
        RejectionCode.TRANSACTION_ABORTED,
        f"Transaction aborted: {exc}",
    )
