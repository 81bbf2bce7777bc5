"""
Promotion Registry - Command Layer
====================================
Every mutation begins as a Command.
Every handled Command produces exactly one CommandResult.
"""

from core.commands.base import (
    Command,
    derive_source_engine,
)
from core.commands.rejection import (
    CommandRejectedError,
    RejectionReason,
)
from core.commands.bus import (
    CommandBus,
    CommandBusError,
    CommandResult,
    CommandStatus,
    NoHandlerRegistered,
    derive_rejection_event_type,
)

__all__ = [
    "Command",
    "derive_source_engine",
    "CommandRejectedError",
    "RejectionReason",
    "CommandBus",
    "CommandBusError",
    "CommandResult",
    "CommandStatus",
    "NoHandlerRegistered",
    "derive_rejection_event_type",
]
