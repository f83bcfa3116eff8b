"""Monthly usage accounting per organization.

Quota checks read the plan limit and the current count through the local
cache tier only (short TTLs, no shared-tier writes: the shared tier's write
budget is far smaller than the database's, and the database already has an
atomic increment). Increments run after the response as a background
effect: one INSERT ... ON CONFLICT DO UPDATE, then an optimistic bump of
the local snapshot. Increment failures are logged and swallowed.

The bump keeps the snapshot's original expiry, so a snapshot is re-read
from the datastore at least once per usage TTL and never lags increments
made by other processes for longer than that.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from opentelemetry import trace

from promptly_edge.core.constants import ACTIVE_SUBSCRIPTION_STATUSES, DEFAULT_PLAN
from promptly_edge.domain.entities import PlanLimit, UsageCounter, UsageStatus
from promptly_edge.domain.enums import Plan
from promptly_edge.infrastructure.cache.keys import plan_key, usage_key
from promptly_edge.infrastructure.cache.tiered_cache import NO_SHARED_WRITE, TieredCache
from promptly_edge.infrastructure.persistence.datastore import Datastore
from promptly_edge.shared.utils.datetime import next_month_start, usage_period, utc_now

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_PLAN_LIMITS: dict[str, int | None] = {
    Plan.FREE.value: 5000,
    Plan.PRO.value: 50000,
    Plan.ENTERPRISE.value: None,
}


def _bump_snapshot(cached: Any) -> dict[str, Any]:
    return UsageCounter.from_cache(cached).incremented().to_cache()


class UsageAccounter:
    """Quota checks and best-effort usage increments for organizations."""

    def __init__(
        self,
        cache: TieredCache,
        datastore: Datastore,
        *,
        plan_limits: dict[str, int | None] | None = None,
        usage_ttl: int = 60,
        plan_ttl: int = 300,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.cache = cache
        self.datastore = datastore
        self.plan_limits = dict(plan_limits if plan_limits is not None else DEFAULT_PLAN_LIMITS)
        self.usage_ttl = usage_ttl
        self.plan_ttl = plan_ttl
        self.clock = clock

    def _resolve_plan(self, plan: str | None, status: str | None) -> str:
        if plan is None or status not in ACTIVE_SUBSCRIPTION_STATUSES:
            return DEFAULT_PLAN
        if plan not in self.plan_limits:
            logger.warning("Unknown plan %r; falling back to %s", plan, DEFAULT_PLAN)
            return DEFAULT_PLAN
        return plan

    async def get_plan_limit(self, tenant_id: str) -> PlanLimit:
        """Return the tenant's plan and monthly limit (local cache, long TTL)."""
        key = plan_key(tenant_id)
        cached = await self.cache.read_entity(key, PlanLimit.from_cache, local_only=True)
        if cached is not None:
            return cached
        subscription = await self.datastore.get_subscription(tenant_id)
        plan = self._resolve_plan(
            subscription.plan if subscription else None,
            subscription.status if subscription else None,
        )
        plan_limit = PlanLimit(tenant_id=tenant_id, plan=plan, limit=self.plan_limits.get(plan))
        await self.cache.write(key, plan_limit.to_cache(), NO_SHARED_WRITE, local_ttl=self.plan_ttl)
        return plan_limit

    async def get_usage(self, tenant_id: str, period: str) -> UsageCounter:
        """Return the usage snapshot for (tenant, period) (local cache, short TTL)."""
        key = usage_key(tenant_id, period)
        cached = await self.cache.read_entity(key, UsageCounter.from_cache, local_only=True)
        if cached is not None:
            return cached
        count = await self.datastore.get_usage_count(tenant_id, period)
        counter = UsageCounter(tenant_id=tenant_id, period=period, count=count)
        await self.cache.write(key, counter.to_cache(), NO_SHARED_WRITE, local_ttl=self.usage_ttl)
        return counter

    async def check_limit(self, tenant_id: str) -> UsageStatus:
        """Read-only quota check for the current period.

        Raises DatastoreError when the store is unreachable.
        """
        now = self.clock()
        plan_limit, usage = await asyncio.gather(
            self.get_plan_limit(tenant_id),
            self.get_usage(tenant_id, usage_period(now)),
        )
        limit = plan_limit.limit
        if limit is None:
            allowed, remaining = True, None
        else:
            allowed, remaining = usage.count < limit, max(0, limit - usage.count)
        return UsageStatus(
            allowed=allowed,
            plan=plan_limit.plan,
            limit=limit,
            used=usage.count,
            remaining=remaining,
            reset_at=next_month_start(now),
        )

    async def record_usage(self, tenant_id: str) -> None:
        """Persist one call for the current period. Never raises.

        Call only after a successful response, outside the response path
        (the endpoint hands it to FastAPI BackgroundTasks).
        """
        period = usage_period(self.clock())
        with tracer.start_as_current_span("usage.record") as span:
            span.set_attribute("usage.tenant_id", tenant_id)
            span.set_attribute("usage.period", period)
            try:
                await self.datastore.upsert_increment(tenant_id, period)
            except Exception:
                logger.exception(
                    "Usage increment failed for %s (%s)",
                    tenant_id,
                    period,
                    extra={"event": "usage_increment_error", "tenant_id": tenant_id, "period": period},
                )
                return
            self.cache.replace_local(usage_key(tenant_id, period), _bump_snapshot)
        logger.info(
            "Usage incremented for %s (%s)",
            tenant_id,
            period,
            extra={"event": "usage_increment", "tenant_id": tenant_id, "period": period},
        )
