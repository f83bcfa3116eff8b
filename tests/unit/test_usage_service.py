"""Tests for the usage accounter: quota checks, increments and cache bumps."""

import asyncio
import logging
from datetime import UTC, datetime

import pytest

from promptly_edge.application.services.usage_service import UsageAccounter
from promptly_edge.domain.exceptions import DatastoreError
from promptly_edge.infrastructure.persistence.datastore import SubscriptionRecord

LIMITS = {"free": 5000, "pro": 50000, "enterprise": None}


@pytest.fixture
def accounter(tiered_cache, datastore, utc_clock) -> UsageAccounter:
    return UsageAccounter(tiered_cache, datastore, plan_limits=LIMITS, usage_ttl=60, plan_ttl=300, clock=utc_clock)


class TestCheckLimit:
    async def test_boundary_below_limit(self, accounter, datastore) -> None:
        datastore.usage[("t1", "2026-02")] = 4999
        status = await accounter.check_limit("t1")
        assert status.allowed is True
        assert status.remaining == 1
        assert status.limit == 5000
        assert status.used == 4999
        assert status.plan == "free"

    async def test_boundary_at_limit(self, accounter, datastore) -> None:
        datastore.usage[("t1", "2026-02")] = 5000
        status = await accounter.check_limit("t1")
        assert status.allowed is False
        assert status.remaining == 0

    async def test_over_limit_remaining_is_zero(self, accounter, datastore) -> None:
        datastore.usage[("t1", "2026-02")] = 6000
        assert (await accounter.check_limit("t1")).remaining == 0

    async def test_unlimited_plan(self, accounter, datastore) -> None:
        datastore.subscriptions["t1"] = SubscriptionRecord(plan="enterprise", status="active")
        datastore.usage[("t1", "2026-02")] = 10_000_000
        status = await accounter.check_limit("t1")
        assert status.allowed is True
        assert status.limit is None
        assert status.remaining is None

    async def test_pro_plan_when_trialing(self, accounter, datastore) -> None:
        datastore.subscriptions["t1"] = SubscriptionRecord(plan="pro", status="trialing")
        assert (await accounter.check_limit("t1")).limit == 50000

    async def test_inactive_subscription_falls_back_to_free(self, accounter, datastore) -> None:
        datastore.subscriptions["t1"] = SubscriptionRecord(plan="pro", status="canceled")
        status = await accounter.check_limit("t1")
        assert status.plan == "free"
        assert status.limit == 5000

    async def test_unknown_plan_falls_back_to_free(self, accounter, datastore) -> None:
        datastore.subscriptions["t1"] = SubscriptionRecord(plan="legacy", status="active")
        assert (await accounter.check_limit("t1")).plan == "free"

    async def test_reset_is_next_month_utc(self, accounter, utc_clock) -> None:
        status = await accounter.check_limit("t1")
        assert status.reset_at == datetime(2026, 3, 1, tzinfo=UTC)
        assert status.reset_epoch == int(datetime(2026, 3, 1, tzinfo=UTC).timestamp())

    async def test_december_rolls_into_next_year(self, accounter, utc_clock) -> None:
        utc_clock.now = datetime(2026, 12, 31, 23, 59, tzinfo=UTC)
        status = await accounter.check_limit("t1")
        assert status.reset_at == datetime(2027, 1, 1, tzinfo=UTC)

    async def test_cached_and_local_only(self, accounter, datastore, shared_cache) -> None:
        await accounter.check_limit("t1")
        await accounter.check_limit("t1")
        assert datastore.count("get_usage_count") == 1
        assert datastore.count("get_subscription") == 1
        assert shared_cache.writes == []
        assert shared_cache.reads == []

    async def test_usage_ttl_shorter_than_plan_ttl(self, accounter, datastore, clock) -> None:
        await accounter.check_limit("t1")
        clock.advance(61)
        await accounter.check_limit("t1")
        assert datastore.count("get_usage_count") == 2
        assert datastore.count("get_subscription") == 1

    async def test_check_is_read_only(self, accounter, datastore) -> None:
        await accounter.check_limit("t1")
        assert datastore.count("upsert_increment") == 0

    async def test_datastore_error_propagates(self, accounter, datastore) -> None:
        datastore.error = DatastoreError("get_usage_count", "down")
        with pytest.raises(DatastoreError):
            await accounter.check_limit("t1")


class TestRecordUsage:
    async def test_scenario_last_call_of_quota(self, accounter, datastore, tiered_cache) -> None:
        datastore.usage[("t1", "2026-02")] = 4999
        status = await accounter.check_limit("t1")
        assert (status.allowed, status.remaining) == (True, 1)

        await accounter.record_usage("t1")
        tiered_cache.local.clear()

        fresh = await accounter.check_limit("t1")
        assert (fresh.allowed, fresh.remaining) == (False, 0)

    async def test_bumps_cached_snapshot(self, accounter, datastore) -> None:
        datastore.usage[("t1", "2026-02")] = 10
        await accounter.check_limit("t1")
        await accounter.record_usage("t1")
        status = await accounter.check_limit("t1")
        assert status.used == 11
        assert datastore.count("get_usage_count") == 1

    async def test_no_snapshot_no_cache_write(self, accounter, tiered_cache) -> None:
        await accounter.record_usage("t1")
        assert tiered_cache.local.get("usage:t1:2026-02") is None

    async def test_first_increment_creates_counter(self, accounter, datastore) -> None:
        await accounter.record_usage("t1")
        assert datastore.usage[("t1", "2026-02")] == 1

    async def test_failure_is_swallowed_and_logged(self, accounter, datastore, caplog) -> None:
        await accounter.check_limit("t1")
        datastore.error = DatastoreError("upsert_increment", "down")
        with caplog.at_level(logging.ERROR):
            await accounter.record_usage("t1")
        assert "Usage increment failed" in caplog.text
        datastore.error = None
        assert (await accounter.check_limit("t1")).used == 0

    async def test_concurrent_increments_are_not_lost(self, accounter, datastore) -> None:
        datastore.usage[("t1", "2026-02")] = 7
        await asyncio.gather(*(accounter.record_usage("t1") for _ in range(25)))
        assert datastore.usage[("t1", "2026-02")] == 32


    async def test_bump_keeps_snapshot_expiry(self, accounter, datastore, clock) -> None:
        await accounter.check_limit("t1")
        datastore.usage[("t1", "2026-02")] = 1000
        for _ in range(10):
            clock.advance(50)
            await accounter.record_usage("t1")
        status = await accounter.check_limit("t1")
        assert status.used == datastore.usage[("t1", "2026-02")] == 1010

    async def test_snapshot_reread_within_one_ttl_of_first_read(self, accounter, datastore, clock) -> None:
        await accounter.check_limit("t1")
        clock.advance(30)
        await accounter.record_usage("t1")
        assert (await accounter.check_limit("t1")).used == 1
        datastore.usage[("t1", "2026-02")] = 40
        clock.advance(31)
        assert (await accounter.check_limit("t1")).used == 40
        assert datastore.count("get_usage_count") == 2


class TestMalformedSnapshots:
    async def test_malformed_usage_snapshot_is_reread(self, accounter, datastore, tiered_cache) -> None:
        datastore.usage[("t1", "2026-02")] = 12
        tiered_cache.local.set("usage:t1:2026-02", {"unexpected": True}, 60)
        assert (await accounter.check_limit("t1")).used == 12

    async def test_malformed_plan_snapshot_is_reread(self, accounter, datastore, tiered_cache) -> None:
        tiered_cache.local.set("plan:t1", ["free"], 300)
        assert (await accounter.check_limit("t1")).limit == 5000
        assert datastore.count("get_subscription") == 1

    async def test_malformed_snapshot_not_bumped(self, accounter, datastore, tiered_cache) -> None:
        tiered_cache.local.set("usage:t1:2026-02", "garbage", 60)
        await accounter.record_usage("t1")
        assert tiered_cache.local.get("usage:t1:2026-02") is None
        assert datastore.usage[("t1", "2026-02")] == 1
