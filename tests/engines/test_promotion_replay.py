"""
Promotion Replay - Tests
==========================
Rebuilding a registry from its stored event history.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from core.commands.bus import CommandBus
from core.config.registry import RegistryConfig
from core.event_store.memory import InMemoryEventStore
from core.event_store.persistence import load_events, persist_event
from core.event_store.registry import EventTypeRegistry
from core.time.clock import FixedClock
from engines.promotion.commands import (
    CustomerApplyRequest,
    CustomerRemoveRequest,
    PromotionCreateRequest,
    PromotionDeleteRequest,
    new_command_kw,
)
from engines.promotion.registry import PromotionRegistry
from engines.promotion.replay import (
    ReplayChainBrokenError,
    ReplayDivergenceError,
    rebuild_registry,
)
from engines.promotion.services import PromotionService

OWNER = "shop-owner"
NOW = datetime(2026, 5, 1, 9, 0, 0, tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════
# TEST HELPERS
# ══════════════════════════════════════════════════════════════

def build_service(persist, clock, registry_id):
    types = EventTypeRegistry()
    bus = CommandBus(
        persist_event=persist, event_type_registry=types,
        registry_id=registry_id, clock=clock,
    )
    registry = PromotionRegistry(OWNER, clock=clock)
    PromotionService(
        registry=registry, command_bus=bus, persist_event=persist,
        event_type_registry=types, registry_id=registry_id,
    )
    return registry, bus


def run_history(bus, clock):
    """Walkthrough plus a short-lived promotion and a deletion."""
    def send(request):
        return bus.handle(request.to_command(**new_command_kw(OWNER, clock.now_utc())))

    send(PromotionCreateRequest(
        name="10%OFF", expiry=NOW + timedelta(days=30),
        max_customers=3, max_uses_per_customer=3,
    ))
    send(PromotionCreateRequest(
        name="FLASH", expiry=NOW + timedelta(hours=1),
        max_customers=5, max_uses_per_customer=1,
    ))
    for customer in ("A", "B", "C"):
        send(CustomerApplyRequest(customer_id=customer, slot=1))
    send(CustomerApplyRequest(customer_id="D", slot=1))
    send(CustomerRemoveRequest(customer_id="A", slot=1))
    send(CustomerApplyRequest(customer_id="D", slot=1))
    send(CustomerApplyRequest(customer_id="F", slot=2))
    clock.advance(600)
    send(CustomerRemoveRequest(customer_id="C", slot=1))
    send(CustomerApplyRequest(customer_id="A", slot=1))
    send(CustomerApplyRequest(customer_id="B", slot=1))
    send(CustomerApplyRequest(customer_id="B", slot=1))
    send(CustomerApplyRequest(customer_id="B", slot=1))
    clock.advance(2 * 3600)
    # FLASH has expired by now.
    send(CustomerApplyRequest(customer_id="G", slot=2))
    send(PromotionDeleteRequest(slot=1))
    send(PromotionCreateRequest(
        name="10%OFF", expiry=NOW + timedelta(days=60),
        max_customers=1, max_uses_per_customer=1,
    ))


def state_of(registry):
    return [
        (p, {c: registry.get_usage(p.slot, c) for c in p.participants})
        for p in registry.list_promotions(include_deleted=True)
    ]


# ══════════════════════════════════════════════════════════════
# IN-MEMORY REPLAY
# ══════════════════════════════════════════════════════════════

class TestReplayInMemory:
    @pytest.fixture
    def recorded(self):
        clock = FixedClock(NOW)
        registry_id = uuid.uuid4()
        store = InMemoryEventStore(clock=clock)
        registry, bus = build_service(store, clock, registry_id)
        run_history(bus, clock)
        return registry, store.load_events(registry_id), clock

    def test_state_reproduced(self, recorded):
        original, events, _ = recorded
        rebuilt = rebuild_registry(events, owner_id=OWNER)

        assert state_of(rebuilt) == state_of(original)
        assert rebuilt.slot_of("10%OFF") == 3
        assert rebuilt.get_participants(1) == ("A", "B", "C", "D")

    def test_rejection_events_skipped(self, recorded):
        _, events, _ = recorded
        assert any(e["event_type"].endswith(".rejected") for e in events)
        rebuild_registry(events, owner_id=OWNER)

    def test_live_clock_after_replay(self, recorded):
        _, events, clock = recorded
        later = FixedClock(clock.now_utc() + timedelta(minutes=5))
        rebuilt = rebuild_registry(events, owner_id=OWNER, clock=later)

        event = rebuilt.apply_to_customer(OWNER, "Z", 3)
        assert event.occurred_at == later.now_utc()

    def test_tampered_history(self, recorded):
        _, events, _ = recorded
        tampered = [dict(e) for e in events]
        tampered[2] = dict(tampered[2], payload=dict(tampered[2]["payload"], usage=3))
        with pytest.raises(ReplayChainBrokenError):
            rebuild_registry(tampered, owner_id=OWNER)

    @pytest.mark.parametrize("field, forged", [
        ("event_type", "promotion.customer.remove.rejected"),
        ("event_version", 2),
        ("registry_id", uuid.UUID("00000000-0000-0000-0000-0000000000ff")),
        ("actor_id", "mallory"),
        ("created_at", NOW + timedelta(seconds=1)),
        ("sequence", 99),
        ("payload", {"slot": 1, "customer_id": "A", "usage": 5}),
    ])
    def test_any_tampered_field_breaks_chain(self, field, forged):
        clock = FixedClock(NOW)
        registry_id = uuid.uuid4()
        store = InMemoryEventStore(clock=clock)
        live, bus = build_service(store, clock, registry_id)
        for request in (
            PromotionCreateRequest(
                name="X", expiry=NOW + timedelta(days=1),
                max_customers=1, max_uses_per_customer=5,
            ),
            CustomerApplyRequest(customer_id="A", slot=1),
            CustomerRemoveRequest(customer_id="A", slot=1),
        ):
            bus.handle(request.to_command(**new_command_kw(OWNER, NOW)))
        assert live.get_usage(1, "A") == -1

        events = [dict(e) for e in store.load_events(registry_id)]
        events[2][field] = forged

        with pytest.raises(ReplayChainBrokenError):
            rebuild_registry(events, owner_id=OWNER)

    def test_missing_event_diverges(self, recorded):
        _, events, _ = recorded
        with pytest.raises(ReplayDivergenceError) as info:
            rebuild_registry(events[1:], owner_id=OWNER, verify=False)
        assert info.value.event_id == events[1]["event_id"]

    def test_wrong_owner_diverges(self, recorded):
        _, events, _ = recorded
        with pytest.raises(ReplayDivergenceError):
            rebuild_registry(events, owner_id="someone-else")

    def test_config_carried(self, recorded):
        _, events, _ = recorded
        rebuilt = rebuild_registry(
            events, owner_id=OWNER,
            config=RegistryConfig(owner_id=OWNER, allow_expired_deletion=True),
        )
        assert rebuilt.config.allow_expired_deletion

    def test_empty_history(self):
        rebuilt = rebuild_registry([], owner_id=OWNER)
        assert rebuilt.promotion_count == 0


# ══════════════════════════════════════════════════════════════
# DATABASE REPLAY
# ══════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestReplayFromDatabase:
    def test_state_reproduced(self):
        clock = FixedClock(NOW)
        registry_id = uuid.uuid4()
        registry, bus = build_service(persist_event, clock, registry_id)
        run_history(bus, clock)

        rebuilt = rebuild_registry(load_events(registry_id), owner_id=OWNER)

        assert state_of(rebuilt) == state_of(registry)
