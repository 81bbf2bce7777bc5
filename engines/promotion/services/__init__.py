"""
Promotion Registry - Application Service
==========================================
Binds the registry to the command bus and the event store.

For each accepted command the registry mutation and the durable
event append happen inside one registry.atomic() block: if the
store refuses the event, the mutation is rolled back. Subscribers
are notified only after both have committed.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

from core.commands.base import Command
from core.events import DispatchReport, SubscriberRegistry, dispatch
from engines.promotion.commands import (
    CUSTOMER_APPLY_REQUEST,
    CUSTOMER_REMOVE_REQUEST,
    PROMOTION_COMMAND_TYPES,
    PROMOTION_CREATE_REQUEST,
    PROMOTION_DELETE_REQUEST,
)
from engines.promotion.events import (
    event_version,
    register_promotion_event_types,
    resolve_promotion_event_type,
)
from engines.promotion.models import RegistryEvent
from engines.promotion.registry import PromotionRegistry

logger = logging.getLogger("promotions.service")


class EventFactoryProtocol(Protocol):
    def __call__(
        self, *, command: Command, event: RegistryEvent, registry_id: uuid.UUID,
    ) -> dict: ...


class PersistEventProtocol(Protocol):
    def __call__(self, *, event_data: dict, registry: Any, **kw) -> Any: ...


class EventPersistenceRejected(Exception):
    """The event store refused an accepted registry event."""

    def __init__(self, event_type: str, persist_result: Any):
        self.event_type = event_type
        self.persist_result = persist_result
        rejection = getattr(persist_result, "rejection", None)
        detail = f": {rejection.code} {rejection.message}" if rejection else ""
        super().__init__(f"Event store rejected {event_type}{detail}")


def default_event_factory(
    *, command: Command, event: RegistryEvent, registry_id: uuid.UUID,
) -> dict:
    return {
        "event_id": uuid.uuid4(),
        "event_type": event.event_type,
        "event_version": event_version(event.event_type),
        "registry_id": registry_id,
        "actor_id": command.actor_id,
        "correlation_id": command.correlation_id,
        "causation_id": None,
        "payload": dict(event.payload, command_id=str(command.command_id)),
        "created_at": event.occurred_at,
    }


@dataclass(frozen=True)
class PromotionExecutionResult:
    event_type: str
    event_data: dict
    persist_result: Any
    registry_event: RegistryEvent
    dispatch_report: Optional[DispatchReport] = None


class _PromotionCommandHandler:
    def __init__(self, service: "PromotionService"):
        self._service = service

    def execute(self, command: Command) -> PromotionExecutionResult:
        return self._service._execute_command(command)


class PromotionService:
    def __init__(self, *, registry: PromotionRegistry, command_bus,
                 persist_event: PersistEventProtocol,
                 event_type_registry,
                 registry_id: Optional[uuid.UUID] = None,
                 event_factory: Optional[EventFactoryProtocol] = None,
                 subscribers: Optional[SubscriberRegistry] = None):
        self._registry = registry
        self._command_bus = command_bus
        self._persist_event = persist_event
        self._event_type_registry = event_type_registry
        self._registry_id = registry_id or uuid.uuid4()
        self._event_factory = event_factory or default_event_factory
        self._subscribers = subscribers
        register_promotion_event_types(self._event_type_registry)
        handler = _PromotionCommandHandler(self)
        for ct in sorted(PROMOTION_COMMAND_TYPES):
            self._command_bus.register_handler(ct, handler)

    @property
    def registry(self) -> PromotionRegistry:
        return self._registry

    @property
    def registry_id(self) -> uuid.UUID:
        return self._registry_id

    def _is_persist_accepted(self, r: Any) -> bool:
        if hasattr(r, "accepted"):
            return bool(r.accepted)
        if isinstance(r, dict):
            return bool(r.get("accepted"))
        return bool(r)

    def _execute_command(self, command: Command) -> PromotionExecutionResult:
        event_type = resolve_promotion_event_type(command.command_type)
        if event_type is None:
            raise ValueError(f"Unsupported: {command.command_type}")

        with self._registry.atomic():
            registry_event = self._apply(command)
            event_data = self._event_factory(
                command=command, event=registry_event, registry_id=self._registry_id,
            )
            persist_result = self._persist_event(
                event_data=event_data, registry=self._event_type_registry,
            )
            if not self._is_persist_accepted(persist_result):
                raise EventPersistenceRejected(event_type, persist_result)

        logger.debug(f"Executed {command.command_type} ({command.command_id})")
        report = None
        if self._subscribers is not None:
            report = dispatch(registry_event, self._subscribers)
        return PromotionExecutionResult(
            event_type=event_type, event_data=event_data,
            persist_result=persist_result, registry_event=registry_event,
            dispatch_report=report)

    def _apply(self, command: Command) -> RegistryEvent:
        p = command.payload
        caller = command.actor_id
        ct = command.command_type
        if ct == PROMOTION_CREATE_REQUEST:
            return self._registry.create_promotion(
                caller, p["name"], p.get("description", ""),
                _parse_datetime(p["expiry"]),
                p["max_customers"], p["max_uses_per_customer"])
        if ct == CUSTOMER_APPLY_REQUEST:
            return self._registry.apply_to_customer(caller, p["customer_id"], p["slot"])
        if ct == CUSTOMER_REMOVE_REQUEST:
            return self._registry.remove_customer(caller, p["customer_id"], p["slot"])
        if ct == PROMOTION_DELETE_REQUEST:
            return self._registry.delete_promotion(caller, p["slot"])
        raise ValueError(f"Unsupported: {ct}")


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)
