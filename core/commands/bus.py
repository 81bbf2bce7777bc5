"""
Promotion Registry - Command Bus
==================================
Routes commands to engine handlers and records their result.

Flow:
    1. Look up the handler registered for command.command_type
    2. handler.execute(command)
    3. Success → ACCEPTED result carrying the execution result
    4. CommandRejectedError → REJECTED result with RejectionReason,
       plus a '.rejected' audit event when a persist function is wired

Infrastructure failures (missing handler, store rejecting an
accepted event) are not rejections. They propagate to the caller.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Protocol

from core.commands.base import Command
from core.commands.rejection import CommandRejectedError, RejectionReason
from core.time.clock import Clock, SystemClock

logger = logging.getLogger("promotions.commands")


class EngineServiceProtocol(Protocol):
    def execute(self, command: Command) -> Any:
        """Execute the command. Raise CommandRejectedError to refuse it."""
        ...


class PersistEventProtocol(Protocol):
    def __call__(self, *, event_data: dict, registry: Any, **kwargs: Any) -> Any:
        ...


# ══════════════════════════════════════════════════════════════
# COMMAND BUS ERRORS
# ══════════════════════════════════════════════════════════════

class CommandBusError(Exception):
    """Base error for command bus operations."""
    pass


class NoHandlerRegistered(CommandBusError):
    """No engine service handler registered for command type."""

    def __init__(self, command_type: str):
        self.command_type = command_type
        super().__init__(
            f"No engine service handler registered for "
            f"command type '{command_type}'."
        )


def derive_rejection_event_type(command_type: str) -> str:
    """
    promotion.customer.apply.request → promotion.customer.apply.rejected
    """
    if not command_type.endswith(".request"):
        raise ValueError(
            f"Cannot derive rejection event type from "
            f"'{command_type}': must end with '.request'."
        )
    return f"{command_type[: -len('.request')]}.rejected"


class CommandStatus(Enum):
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class CommandResult:
    """
    What CommandBus.handle() returns for one command.

    A REJECTED result always carries a reason, an ACCEPTED one never does.
    """

    command_id: uuid.UUID
    status: CommandStatus
    occurred_at: datetime
    reason: Optional[RejectionReason] = None
    execution_result: Any = None
    rejection_event_persisted: bool = False

    def __post_init__(self):
        if not isinstance(self.status, CommandStatus):
            raise ValueError(
                f"status must be CommandStatus, got {type(self.status).__name__}."
            )
        if self.status == CommandStatus.REJECTED and self.reason is None:
            raise ValueError("REJECTED result must include a RejectionReason.")
        if self.status == CommandStatus.ACCEPTED and self.reason is not None:
            raise ValueError("ACCEPTED result must NOT include a RejectionReason.")

    @property
    def is_accepted(self) -> bool:
        return self.status == CommandStatus.ACCEPTED

    @property
    def is_rejected(self) -> bool:
        return self.status == CommandStatus.REJECTED


# ══════════════════════════════════════════════════════════════
# COMMAND BUS
# ══════════════════════════════════════════════════════════════

class CommandBus:
    """
    Usage:
        bus = CommandBus()
        bus.register_handler("promotion.customer.apply.request", service)
        result = bus.handle(command)
    """

    def __init__(
        self,
        persist_event: Optional[PersistEventProtocol] = None,
        event_type_registry: Any = None,
        registry_id: Optional[uuid.UUID] = None,
        clock: Optional[Clock] = None,
    ):
        self._persist_event = persist_event
        self._event_type_registry = event_type_registry
        self._registry_id = registry_id
        self._clock = clock or SystemClock()
        self._handlers: Dict[str, Any] = {}

    def register_handler(self, command_type: str, handler: Any) -> None:
        if not command_type.endswith(".request"):
            raise ValueError(
                f"command_type '{command_type}' must end with '.request'."
            )

        if not hasattr(handler, "execute") or not callable(handler.execute):
            raise TypeError("Handler must have callable .execute() method.")

        self._handlers[command_type] = handler
        logger.info(f"Handler registered: {command_type}")

    def has_handler(self, command_type: str) -> bool:
        return command_type in self._handlers

    def handle(self, command: Command) -> CommandResult:
        handler = self._handlers.get(command.command_type)
        if handler is None:
            raise NoHandlerRegistered(command.command_type)

        try:
            execution_result = handler.execute(command)
        except CommandRejectedError as exc:
            return self._handle_rejected(command, exc)

        logger.info(
            f"Command accepted: {command.command_type} "
            f"({command.command_id}) by {command.actor_id}"
        )
        return CommandResult(
            command_id=command.command_id,
            status=CommandStatus.ACCEPTED,
            occurred_at=self._clock.now_utc(),
            execution_result=execution_result,
        )

    # ══════════════════════════════════════════════════════════
    # REJECTED PATH
    # ══════════════════════════════════════════════════════════

    def _handle_rejected(
        self, command: Command, exc: CommandRejectedError
    ) -> CommandResult:
        reason = exc.to_reason()
        result = CommandResult(
            command_id=command.command_id,
            status=CommandStatus.REJECTED,
            occurred_at=self._clock.now_utc(),
            reason=reason,
        )
        logger.warning(
            f"Command rejected: {command.command_type} "
            f"({command.command_id}) by {command.actor_id}: "
            f"{reason.code} {reason.message}"
        )

        if self._persist_event is None or self._registry_id is None:
            return result

        event_type = derive_rejection_event_type(command.command_type)
        self._ensure_registered(event_type)
        persist_result = self._persist_event(
            event_data={
                "event_id": uuid.uuid4(),
                "event_type": event_type,
                "event_version": 1,
                "registry_id": self._registry_id,
                "actor_id": command.actor_id,
                "correlation_id": command.correlation_id,
                "causation_id": None,
                "payload": {
                    "command_id": str(command.command_id),
                    "command_type": command.command_type,
                    "rejection": reason.to_dict(),
                    "original_payload": command.payload,
                },
                "created_at": result.occurred_at,
            },
            registry=self._event_type_registry,
        )
        return replace(
            result,
            rejection_event_persisted=_is_persist_accepted(persist_result),
        )

    def _ensure_registered(self, event_type: str) -> None:
        registry = self._event_type_registry
        if registry is None:
            return
        if not registry.is_registered(event_type):
            registry.register(event_type)


def _is_persist_accepted(persist_result: Any) -> bool:
    if hasattr(persist_result, "accepted"):
        return bool(getattr(persist_result, "accepted"))
    if isinstance(persist_result, dict):
        return bool(persist_result.get("accepted"))
    return bool(persist_result)
