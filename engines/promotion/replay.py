"""
Promotion Registry - Replay
=============================
Rebuilds a registry from its stored event history.

Replay doctrine:
- Verify the hash chain before touching anything
- Apply events in stored order through the ordinary registry
  operations, with the clock pinned to each event's created_at,
  so every decision is taken exactly as it was the first time
- Event types this engine does not own (e.g. '.rejected' audit
  records) are skipped
- A replayed mutation that is refused, or lands on a different
  result than recorded, stops the replay
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from core.config.registry import RegistryConfig
from core.event_store.errors import HashChainBrokenError
from core.event_store.hashing.verifier import verify_chain
from core.time.clock import Clock, SystemClock
from engines.promotion.errors import PromotionError
from engines.promotion.events import (
    CUSTOMER_REMOVED_V1,
    PROMOTION_APPLIED_V1,
    PROMOTION_CREATED_V1,
    PROMOTION_DELETED_V1,
)
from engines.promotion.registry import PromotionRegistry

logger = logging.getLogger("promotions.replay")


class _ReplayClock:
    """Pinned to each event's time during replay, live afterwards."""

    def __init__(self, live: Optional[Clock]):
        self._live = live or SystemClock()
        self._pinned: Optional[datetime] = None

    def pin(self, dt: datetime) -> None:
        self._pinned = dt

    def release(self) -> None:
        self._pinned = None

    def now_utc(self) -> datetime:
        if self._pinned is not None:
            return self._pinned
        return self._live.now_utc()


class ReplayError(Exception):
    """Base error for replay."""
    pass


class ReplayChainBrokenError(ReplayError):
    """Stored history failed hash-chain verification."""
    pass


class ReplayDivergenceError(ReplayError):
    """A stored event could not be reproduced."""

    def __init__(self, event_id: Any, event_type: str, detail: str):
        self.event_id = event_id
        self.event_type = event_type
        self.detail = detail
        super().__init__(
            f"Replay diverged at {event_type} (event_id: {event_id}): {detail}"
        )


def _field(event: Any, name: str) -> Any:
    if isinstance(event, dict):
        return event[name]
    return getattr(event, name)


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _replay_created(registry: PromotionRegistry, actor_id: str, payload: dict) -> None:
    event = registry.create_promotion(
        actor_id,
        payload["name"],
        payload["description"],
        _as_datetime(payload["expiry"]),
        payload["max_customers"],
        payload["max_uses_per_customer"],
    )
    if event.payload["slot"] != payload["slot"]:
        raise ValueError(
            f"created at slot {event.payload['slot']}, recorded {payload['slot']}"
        )


def _replay_applied(registry: PromotionRegistry, actor_id: str, payload: dict) -> None:
    event = registry.apply_to_customer(actor_id, payload["customer_id"], payload["slot"])
    if event.payload["usage"] != payload["usage"]:
        raise ValueError(
            f"usage {event.payload['usage']}, recorded {payload['usage']}"
        )


def _replay_removed(registry: PromotionRegistry, actor_id: str, payload: dict) -> None:
    registry.remove_customer(actor_id, payload["customer_id"], payload["slot"])


def _replay_deleted(registry: PromotionRegistry, actor_id: str, payload: dict) -> None:
    registry.delete_promotion(actor_id, payload["slot"])


_APPLIERS = {
    PROMOTION_CREATED_V1: _replay_created,
    PROMOTION_APPLIED_V1: _replay_applied,
    CUSTOMER_REMOVED_V1: _replay_removed,
    PROMOTION_DELETED_V1: _replay_deleted,
}


def rebuild_registry(
    events: Iterable[Any],
    *,
    owner_id: str,
    config: Optional[RegistryConfig] = None,
    clock: Optional[Clock] = None,
    verify: bool = True,
) -> PromotionRegistry:
    """
    Build a fresh registry holding the state recorded in `events`.

    Args:
        events:   Stored events of one registry (Event rows,
                  StoredEvent records or load_events() dicts),
                  in stored order.
        owner_id: Owner of the rebuilt registry.
        config:   Registry configuration in force when the events
                  were recorded.
        clock:    Live clock the registry uses once replay is done.
        verify:   Check the hash chain first.

    Raises:
        ReplayChainBrokenError: chain verification failed.
        ReplayDivergenceError:  an event could not be reproduced.
    """
    events = list(events)
    if verify:
        try:
            verify_chain(events)
        except HashChainBrokenError as exc:
            raise ReplayChainBrokenError(str(exc)) from exc

    replay_clock = _ReplayClock(clock)
    registry = PromotionRegistry(owner_id, clock=replay_clock, config=config)
    replayed = 0

    for event in events:
        event_type = _field(event, "event_type")
        applier = _APPLIERS.get(event_type)
        if applier is None:
            logger.debug(f"Replay skipped foreign event type '{event_type}'")
            continue

        replay_clock.pin(_as_datetime(_field(event, "created_at")))
        try:
            applier(registry, _field(event, "actor_id"), _field(event, "payload"))
        except (PromotionError, ValueError) as exc:
            raise ReplayDivergenceError(
                _field(event, "event_id"), event_type, str(exc)
            ) from exc
        replayed += 1

    replay_clock.release()
    logger.info(
        f"Replay complete: {replayed} of {len(events)} events applied, "
        f"{registry.promotion_count} promotion slots"
    )
    return registry
