"""
Promotion Registry - Request Commands
=======================================
Structural validation happens here; registry rules (ownership,
uniqueness, limits) are enforced by the registry itself.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from core.commands.base import Command
from core.time.temporal import is_aware

PROMOTION_CREATE_REQUEST = "promotion.campaign.create.request"
PROMOTION_DELETE_REQUEST = "promotion.campaign.delete.request"
CUSTOMER_APPLY_REQUEST = "promotion.customer.apply.request"
CUSTOMER_REMOVE_REQUEST = "promotion.customer.remove.request"

PROMOTION_COMMAND_TYPES = frozenset({
    PROMOTION_CREATE_REQUEST,
    PROMOTION_DELETE_REQUEST,
    CUSTOMER_APPLY_REQUEST,
    CUSTOMER_REMOVE_REQUEST,
})


def _cmd(ct, payload, *, actor_id, command_id, correlation_id, issued_at):
    return Command(
        command_id=command_id, command_type=ct,
        actor_id=actor_id, payload=payload, issued_at=issued_at,
        correlation_id=correlation_id, source_engine="promotion",
    )


def _require_slot(slot) -> None:
    if isinstance(slot, bool) or not isinstance(slot, int) or slot < 1:
        raise ValueError("slot must be a positive integer.")


@dataclass(frozen=True)
class PromotionCreateRequest:
    name: str
    expiry: datetime
    max_customers: int
    max_uses_per_customer: int
    description: str = ""

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("name must be non-empty.")
        if not isinstance(self.description, str):
            raise ValueError("description must be a string.")
        if not isinstance(self.expiry, datetime) or not is_aware(self.expiry):
            raise ValueError("expiry must be a timezone-aware datetime.")
        if not isinstance(self.max_customers, int) or self.max_customers <= 0:
            raise ValueError("max_customers must be positive integer.")
        if (
            not isinstance(self.max_uses_per_customer, int)
            or self.max_uses_per_customer <= 0
        ):
            raise ValueError("max_uses_per_customer must be positive integer.")

    def to_command(self, **kw) -> Command:
        return _cmd(PROMOTION_CREATE_REQUEST, {
            "name": self.name, "description": self.description,
            "expiry": self.expiry.isoformat(),
            "max_customers": self.max_customers,
            "max_uses_per_customer": self.max_uses_per_customer,
        }, **kw)


@dataclass(frozen=True)
class PromotionDeleteRequest:
    slot: int

    def __post_init__(self):
        _require_slot(self.slot)

    def to_command(self, **kw) -> Command:
        return _cmd(PROMOTION_DELETE_REQUEST, {"slot": self.slot}, **kw)


@dataclass(frozen=True)
class CustomerApplyRequest:
    customer_id: str
    slot: int

    def __post_init__(self):
        if not self.customer_id or not isinstance(self.customer_id, str):
            raise ValueError("customer_id must be non-empty.")
        _require_slot(self.slot)

    def to_command(self, **kw) -> Command:
        return _cmd(CUSTOMER_APPLY_REQUEST, {
            "customer_id": self.customer_id, "slot": self.slot,
        }, **kw)


@dataclass(frozen=True)
class CustomerRemoveRequest:
    customer_id: str
    slot: int

    def __post_init__(self):
        if not self.customer_id or not isinstance(self.customer_id, str):
            raise ValueError("customer_id must be non-empty.")
        _require_slot(self.slot)

    def to_command(self, **kw) -> Command:
        return _cmd(CUSTOMER_REMOVE_REQUEST, {
            "customer_id": self.customer_id, "slot": self.slot,
        }, **kw)


def new_command_kw(actor_id: str, issued_at: datetime, correlation_id=None) -> dict:
    """Tracing fields for to_command(**kw)."""
    return dict(
        actor_id=actor_id,
        command_id=uuid.uuid4(),
        correlation_id=correlation_id or uuid.uuid4(),
        issued_at=issued_at,
    )
