"""
Promotion Registry - Owner Guard
==================================
The only write capability check. Reads never pass through here.
"""

from __future__ import annotations

from engines.promotion.errors import NotOwner


class OwnerGuard:
    """Holds the owner identity fixed at registry construction."""

    __slots__ = ("_owner_id",)

    def __init__(self, owner_id: str):
        if not owner_id or not isinstance(owner_id, str):
            raise ValueError("owner_id must be a non-empty string.")
        self._owner_id = owner_id

    @property
    def owner_id(self) -> str:
        return self._owner_id

    def is_owner(self, caller_id: str) -> bool:
        return caller_id == self._owner_id

    def require_owner(self, caller_id: str) -> None:
        if not self.is_owner(caller_id):
            raise NotOwner(caller_id)
