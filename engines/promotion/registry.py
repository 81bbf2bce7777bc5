"""
Promotion Registry - Registry Core
====================================
Owns every promotion of one shop and enforces its limits.

Concurrency:
- One RLock per registry instance. Every mutation and every read
  runs under it, so readers never see a half-applied change.
- Each mutation runs all of its checks before its first write.
  A failed call leaves no trace.
- atomic() extends the lock over a caller's block (the service uses
  it to bind a mutation to its durable event). Inside the block each
  mutation logs how to undo its own writes; if the block raises,
  the log is replayed backwards. Only the touched slot is restored.

Slots are allocated from 1 and never reused. Deleting a promotion
tombstones its slot; its usage history stays readable by slot.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from core.config.registry import RegistryConfig
from core.time.clock import Clock, SystemClock
from core.time.temporal import is_expired
from engines.promotion.access import OwnerGuard
from engines.promotion.errors import DuplicatePromotion, PromotionNotFound
from engines.promotion.events import (
    CUSTOMER_REMOVED_V1,
    PROMOTION_APPLIED_V1,
    PROMOTION_CREATED_V1,
    PROMOTION_DELETED_V1,
    build_applied_payload,
    build_created_payload,
    build_deleted_payload,
    build_removed_payload,
)
from engines.promotion.models import (
    NEVER_JOINED,
    REMOVED,
    TOMBSTONE_NAME,
    Promotion,
    PromotionSnapshot,
    RegistryEvent,
)
from engines.promotion.policies import (
    capacity_policy,
    customer_id_must_be_valid_policy,
    customer_must_be_active_policy,
    limits_must_be_valid_policy,
    normalize_name,
    promotion_must_exist_policy,
    promotion_must_not_be_expired_policy,
    usage_limit_policy,
)

logger = logging.getLogger("promotions.registry")


class PromotionRegistry:
    """
    Single-owner promotion registry.

    Usage:
        registry = PromotionRegistry("shop-owner")
        registry.create_promotion(
            "shop-owner", "10%OFF", "Ten percent off", expiry, 3, 3,
        )
        slot = registry.slot_of("10%OFF")
        registry.apply_to_customer("shop-owner", "alice", slot)
    """

    def __init__(
        self,
        owner_id: str,
        *,
        clock: Optional[Clock] = None,
        config: Optional[RegistryConfig] = None,
    ):
        if config is not None and config.owner_id not in (None, owner_id):
            raise ValueError(
                f"owner_id '{owner_id}' contradicts "
                f"RegistryConfig.owner_id '{config.owner_id}'."
            )
        self._config = config or RegistryConfig(owner_id=owner_id)
        self._guard = OwnerGuard(owner_id)
        self._clock = clock or SystemClock()
        self._lock = threading.RLock()
        self._promotions: List[Promotion] = []
        self._slots_by_name: Dict[str, int] = {}
        self._atomic_depth = 0
        self._undo_log: List[Callable[[], None]] = []

    @classmethod
    def from_config(
        cls, config: RegistryConfig, *, clock: Optional[Clock] = None,
    ) -> "PromotionRegistry":
        """Registry owned by config.owner_id (PROMOTION_OWNER_ID)."""
        if config.owner_id is None:
            raise ValueError("RegistryConfig.owner_id is not set.")
        return cls(config.owner_id, clock=clock, config=config)

    # ══════════════════════════════════════════════════════════
    # MUTATIONS (owner only)
    # ══════════════════════════════════════════════════════════

    def create_promotion(
        self,
        caller_id: str,
        name: str,
        description: Optional[str],
        expiry: datetime,
        max_customers: int,
        max_uses_per_customer: int,
    ) -> RegistryEvent:
        with self._lock:
            self._guard.require_owner(caller_id)
            normalized = normalize_name(name, self._config.max_name_length)
            existing = self._slots_by_name.get(normalized)
            if existing is not None:
                raise DuplicatePromotion(normalized, existing)
            limits_must_be_valid_policy(expiry, max_customers, max_uses_per_customer)

            now = self._now()
            promotion = Promotion(
                slot=len(self._promotions) + 1,
                name=normalized,
                description=description or "",
                expiry=expiry,
                max_customers=max_customers,
                max_uses_per_customer=max_uses_per_customer,
                created_at=now,
            )
            self._remember(self._undo_create(normalized))
            self._promotions.append(promotion)
            self._slots_by_name[normalized] = promotion.slot

            logger.info(
                f"Promotion created: '{normalized}' at slot {promotion.slot} "
                f"(max_customers={max_customers}, "
                f"max_uses_per_customer={max_uses_per_customer})"
            )
            return self._emit(
                PROMOTION_CREATED_V1,
                build_created_payload(promotion),
                caller_id,
                now,
            )

    def apply_to_customer(
        self, caller_id: str, customer_id: str, slot: int,
    ) -> RegistryEvent:
        """
        Record one redemption.

        Order of checks: owner, customer id, existence, expiry,
        capacity, usage limit. A removed customer coming back rejoins
        with a fresh counter and is not appended to the participant
        ledger a second time.
        """
        with self._lock:
            self._guard.require_owner(caller_id)
            customer_id_must_be_valid_policy(customer_id)
            promotion = promotion_must_exist_policy(self._lookup(slot), slot)
            now = self._now()
            promotion_must_not_be_expired_policy(promotion, now)
            capacity_policy(promotion, customer_id)
            usage_limit_policy(promotion, customer_id)

            self._remember(_undo_customer(promotion, customer_id))
            usage = promotion.usage_of(customer_id)
            if usage <= 0:
                promotion.current_customer_count += 1
                if usage == NEVER_JOINED:
                    promotion.participants.append(customer_id)
                usage = 0
            promotion.usage[customer_id] = usage + 1

            logger.info(
                f"Promotion applied: slot {promotion.slot} → '{customer_id}' "
                f"(usage {usage + 1}/{promotion.max_uses_per_customer}, "
                f"customers {promotion.current_customer_count}/"
                f"{promotion.max_customers})"
            )
            return self._emit(
                PROMOTION_APPLIED_V1,
                build_applied_payload(promotion, customer_id),
                caller_id,
                now,
            )

    def remove_customer(
        self, caller_id: str, customer_id: str, slot: int,
    ) -> RegistryEvent:
        with self._lock:
            self._guard.require_owner(caller_id)
            customer_id_must_be_valid_policy(customer_id)
            promotion = promotion_must_exist_policy(self._lookup(slot), slot)
            now = self._now()
            promotion_must_not_be_expired_policy(promotion, now)
            customer_must_be_active_policy(promotion, customer_id)

            # The participant ledger is left as is.
            self._remember(_undo_customer(promotion, customer_id))
            promotion.usage[customer_id] = REMOVED
            promotion.current_customer_count -= 1

            logger.info(
                f"Customer removed: '{customer_id}' from slot {promotion.slot} "
                f"(customers {promotion.current_customer_count}/"
                f"{promotion.max_customers})"
            )
            return self._emit(
                CUSTOMER_REMOVED_V1,
                build_removed_payload(promotion, customer_id),
                caller_id,
                now,
            )

    def delete_promotion(self, caller_id: str, slot: int) -> RegistryEvent:
        with self._lock:
            self._guard.require_owner(caller_id)
            promotion = promotion_must_exist_policy(self._lookup(slot), slot)
            now = self._now()
            if not self._config.allow_expired_deletion:
                promotion_must_not_be_expired_policy(promotion, now)

            former_name = promotion.name
            self._remember(self._undo_delete(promotion, former_name))
            promotion.name = TOMBSTONE_NAME
            del self._slots_by_name[former_name]

            logger.info(f"Promotion deleted: '{former_name}' at slot {promotion.slot}")
            return self._emit(
                PROMOTION_DELETED_V1,
                build_deleted_payload(promotion, former_name),
                caller_id,
                now,
            )

    # ══════════════════════════════════════════════════════════
    # QUERIES (unrestricted)
    # ══════════════════════════════════════════════════════════

    @property
    def owner_id(self) -> str:
        return self._guard.owner_id

    @property
    def config(self) -> RegistryConfig:
        return self._config

    @property
    def promotion_count(self) -> int:
        """Slots allocated so far, tombstones included."""
        with self._lock:
            return len(self._promotions)

    def promotion_exists(self, name: str) -> bool:
        return self.slot_of(name) is not None

    def slot_of(self, name: str) -> Optional[int]:
        """Slot of the live promotion with this name, None if there is none."""
        if not isinstance(name, str):
            return None
        with self._lock:
            return self._slots_by_name.get(name.strip())

    def get_promotion(self, slot: int) -> PromotionSnapshot:
        with self._lock:
            return self._get(slot).snapshot()

    def get_name(self, slot: int) -> str:
        """Empty string for a tombstoned slot."""
        with self._lock:
            return self._get(slot).name

    def get_description(self, slot: int) -> str:
        with self._lock:
            return self._get(slot).description

    def get_expiry(self, slot: int) -> datetime:
        with self._lock:
            return self._get(slot).expiry

    def get_max_customers(self, slot: int) -> int:
        with self._lock:
            return self._get(slot).max_customers

    def get_current_customer_count(self, slot: int) -> int:
        with self._lock:
            return self._get(slot).current_customer_count

    def get_max_uses_per_customer(self, slot: int) -> int:
        with self._lock:
            return self._get(slot).max_uses_per_customer

    def get_participants(self, slot: int) -> Tuple[str, ...]:
        """
        Everyone who ever joined, in join order.

        Includes removed customers. Cross-check get_usage() or use
        get_active_customers() to know who is active now.
        """
        with self._lock:
            return tuple(self._get(slot).participants)

    def get_active_customers(self, slot: int) -> Tuple[str, ...]:
        with self._lock:
            return self._get(slot).active_customers()

    def get_usage(self, slot: int, customer_id: str) -> int:
        """0 never joined, N > 0 active with N uses, -1 removed."""
        with self._lock:
            return self._get(slot).usage_of(customer_id)

    def is_expired(self, slot: int) -> bool:
        with self._lock:
            return is_expired(self._get(slot).expiry, self._now())

    def list_promotions(self, include_deleted: bool = False) -> List[PromotionSnapshot]:
        with self._lock:
            return [
                p.snapshot() for p in self._promotions
                if include_deleted or not p.is_tombstoned
            ]

    # ══════════════════════════════════════════════════════════
    # ATOMIC BLOCKS
    # ══════════════════════════════════════════════════════════

    @contextmanager
    def atomic(self) -> Iterator["PromotionRegistry"]:
        """
        Run a block as one unit against this registry.

        If the block raises, every mutation made inside it is undone.
        Blocks nest: a failing inner block undoes only its own writes.
        """
        with self._lock:
            mark = len(self._undo_log)
            self._atomic_depth += 1
            try:
                yield self
            except BaseException:
                self._rollback_to(mark)
                raise
            finally:
                self._atomic_depth -= 1
                if self._atomic_depth == 0:
                    self._undo_log.clear()

    # ══════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════

    def _lookup(self, slot: Any) -> Optional[Promotion]:
        if isinstance(slot, bool) or not isinstance(slot, int):
            return None
        if slot < 1 or slot > len(self._promotions):
            return None
        return self._promotions[slot - 1]

    def _get(self, slot: Any) -> Promotion:
        """Allocated slot, tombstoned or not."""
        promotion = self._lookup(slot)
        if promotion is None:
            raise PromotionNotFound(slot)
        return promotion

    def _remember(self, undo: Callable[[], None]) -> None:
        if self._atomic_depth:
            self._undo_log.append(undo)

    def _rollback_to(self, mark: int) -> None:
        undone = len(self._undo_log) - mark
        while len(self._undo_log) > mark:
            self._undo_log.pop()()
        logger.warning(f"Registry block failed; {undone} mutation(s) undone")

    def _undo_create(self, name: str) -> Callable[[], None]:
        def undo() -> None:
            self._promotions.pop()
            del self._slots_by_name[name]
        return undo

    def _undo_delete(self, promotion: Promotion, name: str) -> Callable[[], None]:
        def undo() -> None:
            promotion.name = name
            self._slots_by_name[name] = promotion.slot
        return undo

    def _emit(
        self, event_type: str, payload: dict, actor_id: str, occurred_at: datetime,
    ) -> RegistryEvent:
        return RegistryEvent(
            event_type=event_type,
            payload=payload,
            actor_id=actor_id,
            occurred_at=occurred_at,
        )

    def _now(self) -> datetime:
        return self._clock.now_utc()


def _undo_customer(promotion: Promotion, customer_id: str) -> Callable[[], None]:
    """Restores one customer's counter, the head count and the ledger length."""
    had_entry = customer_id in promotion.usage
    usage = promotion.usage.get(customer_id)
    count = promotion.current_customer_count
    ledger_length = len(promotion.participants)

    def undo() -> None:
        if had_entry:
            promotion.usage[customer_id] = usage
        else:
            promotion.usage.pop(customer_id, None)
        promotion.current_customer_count = count
        del promotion.participants[ledger_length:]

    return undo
