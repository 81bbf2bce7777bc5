"""
Command Layer - Tests
=======================
Command → CommandResult chain through the CommandBus.

Scenarios:
1. Malformed command → ValueError at construction
2. Handler success → ACCEPTED with execution result
3. CommandRejectedError → REJECTED with reason
4. REJECTED produces a '.rejected' audit event when wired
5. Missing handler is an infrastructure error, not a rejection
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import pytest

from core.commands.base import Command, derive_source_engine
from core.commands.bus import (
    CommandBus,
    CommandResult,
    CommandStatus,
    NoHandlerRegistered,
    derive_rejection_event_type,
)
from core.commands.rejection import CommandRejectedError, RejectionReason
from core.time.clock import FixedClock


# ══════════════════════════════════════════════════════════════
# TEST INFRASTRUCTURE (no Django)
# ══════════════════════════════════════════════════════════════

NOW = datetime(2026, 5, 1, 9, 0, 0, tzinfo=timezone.utc)


class StubEngineService:
    """Records execute calls."""

    def __init__(self, return_value: Any = "executed"):
        self.executed_commands = []
        self.return_value = return_value

    def execute(self, command: Command) -> Any:
        self.executed_commands.append(command)
        return self.return_value


class OutOfStock(CommandRejectedError):
    code = "OUT_OF_STOCK"


class RejectingService:
    def execute(self, command: Command) -> Any:
        raise OutOfStock("Nothing left to give away.")


class StubPersistEvent:
    def __init__(self, accepted: bool = True):
        self.persisted_events = []
        self.accepted = accepted

    def __call__(self, *, event_data: dict, registry: Any, **kwargs) -> Any:
        self.persisted_events.append(event_data)
        return {"accepted": self.accepted}


class StubEventTypeRegistry:
    def __init__(self):
        self._registered = set()

    def register(self, event_type: str) -> None:
        self._registered.add(event_type)

    def is_registered(self, event_type: str) -> bool:
        return event_type in self._registered


def make_command(**overrides) -> Command:
    fields = dict(
        command_id=uuid.uuid4(),
        command_type="promotion.customer.apply.request",
        actor_id="shop-owner",
        payload={"customer_id": "alice", "slot": 1},
        issued_at=NOW,
        correlation_id=uuid.uuid4(),
        source_engine="promotion",
    )
    fields.update(overrides)
    return Command(**fields)


# ══════════════════════════════════════════════════════════════
# 1. COMMAND STRUCTURE
# ══════════════════════════════════════════════════════════════

class TestCommandStructure:
    def test_valid_command(self):
        command = make_command()
        assert command.source_engine == "promotion"

    def test_frozen(self):
        command = make_command()
        with pytest.raises(AttributeError):
            command.actor_id = "someone-else"

    def test_command_id_must_be_uuid(self):
        with pytest.raises(ValueError, match="command_id"):
            make_command(command_id="not-a-uuid")

    def test_type_must_end_with_request(self):
        with pytest.raises(ValueError, match=".request"):
            make_command(command_type="promotion.customer.apply")

    def test_type_needs_four_segments(self):
        with pytest.raises(ValueError, match="4 segments"):
            make_command(command_type="promotion.apply.request")

    def test_namespace_must_match_source_engine(self):
        with pytest.raises(ValueError, match="does not match"):
            make_command(source_engine="inventory")

    def test_empty_actor_rejected(self):
        with pytest.raises(ValueError, match="actor_id"):
            make_command(actor_id="")

    def test_payload_must_be_dict(self):
        with pytest.raises(TypeError):
            make_command(payload=["alice"])

    def test_correlation_id_must_be_uuid(self):
        with pytest.raises(ValueError, match="correlation_id"):
            make_command(correlation_id="corr")

    def test_derive_source_engine(self):
        assert derive_source_engine("promotion.customer.apply.request") == "promotion"


# ══════════════════════════════════════════════════════════════
# 2. RESULTS & REASONS
# ══════════════════════════════════════════════════════════════

class TestResults:
    def test_rejected_requires_reason(self):
        with pytest.raises(ValueError, match="RejectionReason"):
            CommandResult(
                command_id=uuid.uuid4(), status=CommandStatus.REJECTED,
                occurred_at=NOW,
            )

    def test_accepted_forbids_reason(self):
        reason = RejectionReason(code="X", message="x", policy_name="p")
        with pytest.raises(ValueError, match="must NOT"):
            CommandResult(
                command_id=uuid.uuid4(), status=CommandStatus.ACCEPTED,
                occurred_at=NOW, reason=reason,
            )

    def test_reason_fields_required(self):
        with pytest.raises(ValueError):
            RejectionReason(code="", message="m", policy_name="p")

    def test_error_to_reason(self):
        reason = OutOfStock("Nothing left.").to_reason()
        assert reason.code == "OUT_OF_STOCK"
        assert reason.message == "Nothing left."
        assert reason.policy_name == "OutOfStock"
        assert reason.to_dict() == {
            "code": "OUT_OF_STOCK",
            "message": "Nothing left.",
            "policy_name": "OutOfStock",
        }

    def test_error_without_message_uses_code(self):
        assert OutOfStock().to_reason().message == "OUT_OF_STOCK"


# ══════════════════════════════════════════════════════════════
# 3. COMMAND BUS
# ══════════════════════════════════════════════════════════════

class TestCommandBus:
    def test_accepted_returns_execution_result(self):
        service = StubEngineService(return_value={"slot": 1})
        bus = CommandBus(clock=FixedClock(NOW))
        bus.register_handler("promotion.customer.apply.request", service)

        command = make_command()
        result = bus.handle(command)

        assert result.is_accepted
        assert result.execution_result == {"slot": 1}
        assert result.occurred_at == NOW
        assert result.command_id == command.command_id
        assert service.executed_commands == [command]

    def test_rejected_carries_reason(self):
        bus = CommandBus(clock=FixedClock(NOW))
        bus.register_handler("promotion.customer.apply.request", RejectingService())

        result = bus.handle(make_command())

        assert result.is_rejected
        assert result.reason.code == "OUT_OF_STOCK"
        assert result.execution_result is None
        assert result.rejection_event_persisted is False

    def test_missing_handler_raises(self):
        bus = CommandBus()
        with pytest.raises(NoHandlerRegistered):
            bus.handle(make_command())

    def test_non_request_type_refused(self):
        bus = CommandBus()
        with pytest.raises(ValueError):
            bus.register_handler("promotion.customer.apply", StubEngineService())

    def test_handler_needs_execute(self):
        bus = CommandBus()
        with pytest.raises(TypeError):
            bus.register_handler("promotion.customer.apply.request", object())

    def test_has_handler(self):
        bus = CommandBus()
        bus.register_handler("promotion.customer.apply.request", StubEngineService())
        assert bus.has_handler("promotion.customer.apply.request")
        assert not bus.has_handler("promotion.customer.remove.request")

    def test_other_exceptions_propagate(self):
        class Broken:
            def execute(self, command):
                raise RuntimeError("disk on fire")

        bus = CommandBus()
        bus.register_handler("promotion.customer.apply.request", Broken())
        with pytest.raises(RuntimeError):
            bus.handle(make_command())


# ══════════════════════════════════════════════════════════════
# 4. REJECTION AUDIT EVENTS
# ══════════════════════════════════════════════════════════════

class TestRejectionEvents:
    def test_derive_rejection_event_type(self):
        assert (
            derive_rejection_event_type("promotion.customer.apply.request")
            == "promotion.customer.apply.rejected"
        )

    def test_derive_rejects_non_request(self):
        with pytest.raises(ValueError):
            derive_rejection_event_type("promotion.customer.applied.v1")

    def test_rejection_persisted_when_wired(self):
        persist = StubPersistEvent()
        types = StubEventTypeRegistry()
        registry_id = uuid.uuid4()
        bus = CommandBus(
            persist_event=persist, event_type_registry=types,
            registry_id=registry_id, clock=FixedClock(NOW),
        )
        bus.register_handler("promotion.customer.apply.request", RejectingService())

        command = make_command()
        result = bus.handle(command)

        assert result.is_rejected
        assert result.rejection_event_persisted is True
        assert types.is_registered("promotion.customer.apply.rejected")

        (event,) = persist.persisted_events
        assert event["event_type"] == "promotion.customer.apply.rejected"
        assert event["registry_id"] == registry_id
        assert event["actor_id"] == "shop-owner"
        assert event["correlation_id"] == command.correlation_id
        assert event["created_at"] == NOW
        assert event["payload"]["rejection"]["code"] == "OUT_OF_STOCK"
        assert event["payload"]["original_payload"] == command.payload

    def test_nothing_persisted_without_registry_id(self):
        persist = StubPersistEvent()
        bus = CommandBus(persist_event=persist)
        bus.register_handler("promotion.customer.apply.request", RejectingService())

        result = bus.handle(make_command())

        assert result.is_rejected
        assert persist.persisted_events == []

    def test_store_refusal_reported(self):
        bus = CommandBus(
            persist_event=StubPersistEvent(accepted=False),
            event_type_registry=StubEventTypeRegistry(),
            registry_id=uuid.uuid4(),
        )
        bus.register_handler("promotion.customer.apply.request", RejectingService())

        result = bus.handle(make_command())

        assert result.is_rejected
        assert result.rejection_event_persisted is False

    def test_accepted_persists_nothing_itself(self):
        persist = StubPersistEvent()
        bus = CommandBus(
            persist_event=persist, event_type_registry=StubEventTypeRegistry(),
            registry_id=uuid.uuid4(),
        )
        bus.register_handler("promotion.customer.apply.request", StubEngineService())

        assert bus.handle(make_command()).is_accepted
        assert persist.persisted_events == []
