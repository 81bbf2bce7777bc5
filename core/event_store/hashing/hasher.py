"""
Promotion Registry - Event Hash Computation
=============================================
Formula:
    event_hash = SHA256(canonical_json(record) + previous_event_hash)

The record covers every field replay depends on, not only the
payload: editing the type, actor, timestamp or position of a stored
event breaks the chain just like editing its payload.

Rules:
- Canonical JSON: sorted keys, fixed separators
- UUIDs as their string form, datetimes as UTC ISO-8601
- No salt, no randomness
- The first event of a registry chains from GENESIS_HASH
"""

import hashlib
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping

GENESIS_HASH = "GENESIS"

HASHED_FIELDS = (
    "event_id",
    "event_type",
    "event_version",
    "registry_id",
    "actor_id",
    "correlation_id",
    "causation_id",
    "sequence",
    "created_at",
    "payload",
)


def _encode(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).isoformat()
    return str(value)


def canonical_serialize(value: Any) -> str:
    """Deterministic JSON string for value."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
        default=_encode,
    )


def hashed_record(event: Any) -> dict:
    """
    The hashed view of an event.

    Accepts a dict or any object exposing the fields as attributes
    (Event rows, StoredEvent records).
    """
    if isinstance(event, Mapping):
        return {name: event.get(name) for name in HASHED_FIELDS}
    return {name: getattr(event, name, None) for name in HASHED_FIELDS}


def compute_event_hash(event: Any, previous_event_hash: str) -> str:
    """64-character lowercase hex SHA-256 digest."""
    hash_input = canonical_serialize(hashed_record(event)) + previous_event_hash
    return hashlib.sha256(hash_input.encode("utf-8")).hexdigest()
