"""
Promotion Registry - Event Structure Validation
=================================================
Shared by the database and in-memory stores so both refuse
exactly the same inputs.
"""

from __future__ import annotations

from typing import Any, Optional

from core.event_store.errors import PersistResult, RejectionCode

REQUIRED_FIELDS = (
    "event_id",
    "event_type",
    "event_version",
    "registry_id",
    "actor_id",
    "correlation_id",
    "payload",
    "created_at",
)


def validate_event_data(
    event_data: dict[str, Any],
    registry: Any,
) -> Optional[PersistResult]:
    """
    Return a rejected PersistResult, or None when the event may be stored.

    `registry` is an EventTypeRegistry; None skips the type check.
    """
    for field_name in REQUIRED_FIELDS:
        if event_data.get(field_name) is None:
            return PersistResult.reject(
                RejectionCode.MISSING_FIELD,
                f"Required field '{field_name}' is missing.",
            )

    actor_id = event_data["actor_id"]
    if not isinstance(actor_id, str) or not actor_id.strip():
        return PersistResult.reject(
            RejectionCode.EMPTY_ACTOR_ID,
            "actor_id must be a non-empty string.",
        )

    if registry is not None and not registry.is_registered(event_data["event_type"]):
        return PersistResult.reject(
            RejectionCode.EVENT_TYPE_UNKNOWN,
            f"Event type '{event_data['event_type']}' is not registered.",
        )

    return None
