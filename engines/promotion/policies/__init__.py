"""
Promotion Registry - Policies
===============================
Pure precondition checks. Each raises the matching PromotionError
or returns None. None of them write to a Promotion, so the
registry can run them all before its first mutation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from core.time.temporal import is_aware, is_expired
from engines.promotion.errors import (
    CapacityExceeded,
    CustomerNotActive,
    InvalidCustomer,
    InvalidName,
    InvalidPromotionLimits,
    PromotionExpired,
    PromotionNotFound,
    UsageLimitExceeded,
)
from engines.promotion.models import Promotion


def normalize_name(name: Any, max_length: int) -> str:
    """Strip surrounding whitespace; InvalidName when nothing usable is left."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidName(name)
    normalized = name.strip()
    if len(normalized) > max_length:
        raise InvalidName(name, f"exceeds {max_length} characters")
    return normalized


def customer_id_must_be_valid_policy(customer_id: Any) -> None:
    if not isinstance(customer_id, str) or not customer_id.strip():
        raise InvalidCustomer(customer_id)


def limits_must_be_valid_policy(
    expiry: Any, max_customers: Any, max_uses_per_customer: Any,
) -> None:
    if not isinstance(expiry, datetime) or not is_aware(expiry):
        raise InvalidPromotionLimits(
            "expiry must be a timezone-aware datetime."
        )
    for label, value in (
        ("max_customers", max_customers),
        ("max_uses_per_customer", max_uses_per_customer),
    ):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InvalidPromotionLimits(
                f"{label} must be a positive integer, got {value!r}."
            )


def promotion_must_exist_policy(
    promotion: Optional[Promotion], slot: Any,
) -> Promotion:
    if promotion is None or promotion.is_tombstoned:
        raise PromotionNotFound(slot)
    return promotion


def promotion_must_not_be_expired_policy(
    promotion: Promotion, now: datetime,
) -> None:
    if is_expired(promotion.expiry, now):
        raise PromotionExpired(promotion.slot, promotion.expiry)


def capacity_policy(promotion: Promotion, customer_id: str) -> None:
    """
    A customer who is not currently active needs a free place.

    Counts current_customer_count, never len(participants): removed
    customers stay in the ledger but free their place.
    """
    if (
        promotion.usage_of(customer_id) <= 0
        and promotion.current_customer_count >= promotion.max_customers
    ):
        raise CapacityExceeded(promotion.slot, promotion.max_customers)


def usage_limit_policy(promotion: Promotion, customer_id: str) -> None:
    if promotion.usage_of(customer_id) >= promotion.max_uses_per_customer:
        raise UsageLimitExceeded(
            promotion.slot, customer_id, promotion.max_uses_per_customer
        )


def customer_must_be_active_policy(promotion: Promotion, customer_id: str) -> None:
    if promotion.usage_of(customer_id) <= 0:
        raise CustomerNotActive(promotion.slot, customer_id)
