"""
Promotion Registry - Configuration Public API
"""

from core.config.registry import (
    DEFAULT_MAX_NAME_LENGTH,
    RegistryConfig,
)

__all__ = [
    "DEFAULT_MAX_NAME_LENGTH",
    "RegistryConfig",
]
