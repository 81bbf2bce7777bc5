"""
Promotion Registry - Hash-Chain Public API
"""

from core.event_store.hashing.hasher import (
    GENESIS_HASH,
    HASHED_FIELDS,
    canonical_serialize,
    compute_event_hash,
)
from core.event_store.hashing.verifier import verify_chain

__all__ = [
    "GENESIS_HASH",
    "HASHED_FIELDS",
    "canonical_serialize",
    "compute_event_hash",
    "verify_chain",
]
