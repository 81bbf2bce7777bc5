"""
Promotion Registry - Domain Errors
====================================
Every error here is a caller/input error. It fails the whole
operation, leaves the registry untouched and is never retried.
The command bus reports them as REJECTED outcomes using `code`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core.commands.rejection import CommandRejectedError


class PromotionError(CommandRejectedError):
    """Base error for promotion registry operations."""

    code = "PROMOTION_ERROR"


class NotOwner(PromotionError):
    """Caller is not the registry owner."""

    code = "NOT_OWNER"

    def __init__(self, caller_id: Any):
        self.caller_id = caller_id
        super().__init__(f"Caller '{caller_id}' is not the registry owner.")


class InvalidName(PromotionError):
    code = "INVALID_NAME"

    def __init__(self, name: Any, detail: str = "must be a non-empty string"):
        self.name = name
        super().__init__(f"Promotion name {name!r} {detail}.")


class DuplicatePromotion(PromotionError):
    code = "DUPLICATE_PROMOTION"

    def __init__(self, name: str, slot: int):
        self.name = name
        self.slot = slot
        super().__init__(
            f"Promotion '{name}' already exists at slot {slot}."
        )


class InvalidPromotionLimits(PromotionError):
    """Limits or expiry rejected at creation."""

    code = "INVALID_PROMOTION_LIMITS"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class PromotionNotFound(PromotionError):
    """Slot is tombstoned or was never allocated."""

    code = "PROMOTION_NOT_FOUND"

    def __init__(self, slot: Any):
        self.slot = slot
        super().__init__(f"No active promotion at slot {slot!r}.")


class PromotionExpired(PromotionError):
    code = "PROMOTION_EXPIRED"

    def __init__(self, slot: int, expiry: datetime):
        self.slot = slot
        self.expiry = expiry
        super().__init__(
            f"Promotion at slot {slot} expired at {expiry.isoformat()}."
        )


class CapacityExceeded(PromotionError):
    code = "CAPACITY_EXCEEDED"

    def __init__(self, slot: int, max_customers: int):
        self.slot = slot
        self.max_customers = max_customers
        super().__init__(
            f"Promotion at slot {slot} already has "
            f"{max_customers} active customers."
        )


class UsageLimitExceeded(PromotionError):
    code = "USAGE_LIMIT_EXCEEDED"

    def __init__(self, slot: int, customer_id: str, max_uses: int):
        self.slot = slot
        self.customer_id = customer_id
        self.max_uses = max_uses
        super().__init__(
            f"Customer '{customer_id}' reached {max_uses} uses "
            f"of promotion at slot {slot}."
        )


class CustomerNotActive(PromotionError):
    code = "CUSTOMER_NOT_ACTIVE"

    def __init__(self, slot: int, customer_id: str):
        self.slot = slot
        self.customer_id = customer_id
        super().__init__(
            f"Customer '{customer_id}' is not active "
            f"in promotion at slot {slot}."
        )


class InvalidCustomer(PromotionError):
    code = "INVALID_CUSTOMER"

    def __init__(self, customer_id: Any):
        self.customer_id = customer_id
        super().__init__(
            f"Customer id {customer_id!r} must be a non-empty string."
        )
