"""
Promotion Registry - Hash-Chain Verifier
==========================================
Checks a sequence of stored events, in stored order, for a
continuous chain starting at GENESIS_HASH, with sequence numbers
running 1, 2, 3 and so on.

Works on Event model rows, StoredEvent records or plain dicts.
Never corrects anything: a mismatch raises HashChainBrokenError.
"""

from __future__ import annotations

from typing import Any, Iterable

from core.event_store.errors import HashChainBrokenError
from core.event_store.hashing.hasher import GENESIS_HASH, compute_event_hash


def _field(event: Any, name: str) -> Any:
    if isinstance(event, dict):
        return event[name]
    return getattr(event, name)


def verify_chain(events: Iterable[Any]) -> int:
    """
    Verify every link of the chain.

    Returns the number of events checked.

    Raises:
        HashChainBrokenError: on the first broken link.
    """
    expected_previous = GENESIS_HASH
    checked = 0

    for position, event in enumerate(events):
        event_id = _field(event, "event_id")
        previous = _field(event, "previous_event_hash")
        if previous != expected_previous:
            raise HashChainBrokenError(
                event_id=event_id,
                position=position,
                detail=(
                    f"previous_event_hash '{previous}' does not match "
                    f"expected '{expected_previous}'"
                ),
            )

        sequence = _field(event, "sequence")
        if sequence != position + 1:
            raise HashChainBrokenError(
                event_id=event_id,
                position=position,
                detail=f"sequence {sequence} does not follow {position}",
            )

        computed = compute_event_hash(event, previous)
        if _field(event, "event_hash") != computed:
            raise HashChainBrokenError(
                event_id=event_id,
                position=position,
                detail="event_hash does not match recomputed hash",
            )

        expected_previous = computed
        checked += 1

    return checked
