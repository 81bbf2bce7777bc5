"""
Promotion Registry - Promotion Engine
=======================================
Single-owner registry of time-bounded, capacity-limited promotions.
"""

from engines.promotion.errors import (
    CapacityExceeded,
    CustomerNotActive,
    DuplicatePromotion,
    InvalidCustomer,
    InvalidName,
    InvalidPromotionLimits,
    NotOwner,
    PromotionError,
    PromotionExpired,
    PromotionNotFound,
    UsageLimitExceeded,
)
from engines.promotion.models import (
    NEVER_JOINED,
    REMOVED,
    PromotionSnapshot,
    RegistryEvent,
)
from engines.promotion.registry import PromotionRegistry

__all__ = [
    "PromotionRegistry",
    "PromotionSnapshot",
    "RegistryEvent",
    "NEVER_JOINED",
    "REMOVED",
    "PromotionError",
    "NotOwner",
    "InvalidName",
    "DuplicatePromotion",
    "InvalidCustomer",
    "InvalidPromotionLimits",
    "PromotionNotFound",
    "PromotionExpired",
    "CapacityExceeded",
    "UsageLimitExceeded",
    "CustomerNotActive",
]
