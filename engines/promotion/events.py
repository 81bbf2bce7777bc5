"""
Promotion Registry - Event Types and Payload Builders
=======================================================
Four events leave the registry, one per accepted mutation.
Payloads are JSON-ready and carry everything replay needs to
repeat the mutation.
"""

from __future__ import annotations

from datetime import datetime

from engines.promotion.models import Promotion

PROMOTION_CREATED_V1 = "promotion.campaign.created.v1"
PROMOTION_DELETED_V1 = "promotion.campaign.deleted.v1"
PROMOTION_APPLIED_V1 = "promotion.customer.applied.v1"
CUSTOMER_REMOVED_V1 = "promotion.customer.removed.v1"

PROMOTION_EVENT_TYPES = (
    PROMOTION_CREATED_V1,
    PROMOTION_DELETED_V1,
    PROMOTION_APPLIED_V1,
    CUSTOMER_REMOVED_V1,
)

COMMAND_TO_EVENT_TYPE = {
    "promotion.campaign.create.request": PROMOTION_CREATED_V1,
    "promotion.campaign.delete.request": PROMOTION_DELETED_V1,
    "promotion.customer.apply.request": PROMOTION_APPLIED_V1,
    "promotion.customer.remove.request": CUSTOMER_REMOVED_V1,
}


def resolve_promotion_event_type(command_type: str) -> str | None:
    return COMMAND_TO_EVENT_TYPE.get(command_type)


def register_promotion_event_types(event_type_registry) -> None:
    for et in sorted(PROMOTION_EVENT_TYPES):
        event_type_registry.register(et)


def event_version(event_type: str) -> int:
    """promotion.customer.applied.v1 → 1"""
    suffix = event_type.rsplit(".", 1)[-1]
    if suffix.startswith("v") and suffix[1:].isdigit():
        return int(suffix[1:])
    return 1


def _iso(dt: datetime) -> str:
    return dt.isoformat()


def build_created_payload(promotion: Promotion) -> dict:
    return {
        "slot": promotion.slot,
        "name": promotion.name,
        "description": promotion.description,
        "expiry": _iso(promotion.expiry),
        "max_customers": promotion.max_customers,
        "max_uses_per_customer": promotion.max_uses_per_customer,
        "created_at": _iso(promotion.created_at),
    }


def build_deleted_payload(promotion: Promotion, former_name: str) -> dict:
    return {"slot": promotion.slot, "name": former_name}


def build_applied_payload(promotion: Promotion, customer_id: str) -> dict:
    return {
        "slot": promotion.slot,
        "customer_id": customer_id,
        "usage": promotion.usage_of(customer_id),
        "current_customer_count": promotion.current_customer_count,
    }


def build_removed_payload(promotion: Promotion, customer_id: str) -> dict:
    return {
        "slot": promotion.slot,
        "customer_id": customer_id,
        "current_customer_count": promotion.current_customer_count,
    }
