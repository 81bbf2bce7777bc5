"""
Promotion Registry - Concurrency Tests
========================================
Many threads against one registry never break its limits.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from core.time.clock import FixedClock
from engines.promotion import (
    CapacityExceeded,
    DuplicatePromotion,
    PromotionRegistry,
    UsageLimitExceeded,
)

OWNER = "shop-owner"
NOW = datetime(2026, 5, 1, 9, 0, 0, tzinfo=timezone.utc)
EXPIRY = NOW + timedelta(days=1)


def new_registry():
    return PromotionRegistry(OWNER, clock=FixedClock(NOW))


class TestConcurrentApplies:
    def test_capacity_never_exceeded(self):
        registry = new_registry()
        registry.create_promotion(OWNER, "RUSH", "", EXPIRY, 10, 1)
        start = threading.Barrier(50)

        def attempt(i):
            start.wait()
            try:
                registry.apply_to_customer(OWNER, f"customer-{i}", 1)
                return True
            except CapacityExceeded:
                return False

        with ThreadPoolExecutor(max_workers=50) as pool:
            results = list(pool.map(attempt, range(50)))

        assert results.count(True) == 10
        assert registry.get_current_customer_count(1) == 10
        assert len(registry.get_participants(1)) == 10

    def test_usage_never_exceeded(self):
        registry = new_registry()
        registry.create_promotion(OWNER, "ONE", "", EXPIRY, 1, 5)
        start = threading.Barrier(20)

        def attempt(_):
            start.wait()
            try:
                registry.apply_to_customer(OWNER, "alice", 1)
                return True
            except UsageLimitExceeded:
                return False

        with ThreadPoolExecutor(max_workers=20) as pool:
            results = list(pool.map(attempt, range(20)))

        assert results.count(True) == 5
        assert registry.get_usage(1, "alice") == 5
        assert registry.get_participants(1) == ("alice",)

    def test_apply_and_remove_interleaved(self):
        registry = new_registry()
        registry.create_promotion(OWNER, "MIX", "", EXPIRY, 3, 100)

        def churn(customer):
            for _ in range(30):
                try:
                    registry.apply_to_customer(OWNER, customer, 1)
                except CapacityExceeded:
                    continue
                registry.remove_customer(OWNER, customer, 1)

        threads = [
            threading.Thread(target=churn, args=(f"c{i}",)) for i in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert registry.get_current_customer_count(1) == 0
        assert registry.get_active_customers(1) == ()
        assert len(set(registry.get_participants(1))) == len(
            registry.get_participants(1)
        )


class TestConcurrentCreates:
    def test_one_winner_per_name(self):
        registry = new_registry()
        start = threading.Barrier(16)

        def attempt(_):
            start.wait()
            try:
                registry.create_promotion(OWNER, "SAME", "", EXPIRY, 1, 1)
                return True
            except DuplicatePromotion:
                return False

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(attempt, range(16)))

        assert results.count(True) == 1
        assert registry.promotion_count == 1
