"""
Promotion Registry - Configuration
====================================
Operator-tunable registry settings.

Values come from the PROMOTION_REGISTRY dict in the Django settings
module (see config/settings.py), which in turn reads environment
variables. Engines receive a RegistryConfig instance and never
read settings themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

DEFAULT_MAX_NAME_LENGTH = 64


@dataclass(frozen=True)
class RegistryConfig:
    """
    Registry behaviour switches.

    Fields:
        owner_id:               Principal allowed to mutate the registry.
                                Optional here; the registry constructor
                                may receive it directly.
        max_name_length:        Upper bound on promotion name length.
        allow_expired_deletion: Permit deleting promotions whose expiry
                                has passed. Off by default.
    """

    owner_id: Optional[str] = None
    max_name_length: int = DEFAULT_MAX_NAME_LENGTH
    allow_expired_deletion: bool = False

    def __post_init__(self) -> None:
        if self.owner_id is not None and (
            not isinstance(self.owner_id, str) or not self.owner_id
        ):
            raise ValueError("owner_id must be a non-empty string when set.")
        if not isinstance(self.max_name_length, int) or self.max_name_length < 1:
            raise ValueError(
                f"max_name_length must be a positive integer, "
                f"got {self.max_name_length!r}."
            )

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "RegistryConfig":
        """Build from a settings-style dict with upper-case keys."""
        return cls(
            owner_id=values.get("OWNER_ID") or None,
            max_name_length=int(
                values.get("MAX_NAME_LENGTH", DEFAULT_MAX_NAME_LENGTH)
            ),
            allow_expired_deletion=_as_bool(
                values.get("ALLOW_EXPIRED_DELETION", False)
            ),
        )

    @classmethod
    def from_settings(cls, settings: Any = None) -> "RegistryConfig":
        """
        Load from Django settings.

        Falls back to defaults when PROMOTION_REGISTRY is not defined.
        """
        if settings is None:
            from django.conf import settings
        return cls.from_mapping(getattr(settings, "PROMOTION_REGISTRY", {}))


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
