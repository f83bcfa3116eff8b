"""Pytest configuration and fixtures for promptly_edge.

Unit tests run against in-memory fakes of the shared cache tier and the
datastore, plus controllable clocks. Integration and API tests use a
SQLite database file under tmp_path (aiosqlite).
"""

import os
from datetime import UTC, datetime
from typing import Any

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("TELEMETRY_ENABLED", "false")

from promptly_edge.infrastructure.cache import LocalCache, TieredCache  # noqa: E402
from promptly_edge.infrastructure.persistence.datastore import (  # noqa: E402
    ApiKeyRecord,
    PromptRecord,
    PromptVersionRecord,
    SubscriptionRecord,
)


class FakeClock:
    """Monotonic clock for LocalCache that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSharedCache:
    """In-memory shared tier that records every get/put."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.store: dict[str, tuple[Any, float | None]] = {}
        self.reads: list[str] = []
        self.writes: list[tuple[str, int | None]] = []
        self.available = True
        self.fail = False

    def is_available(self) -> bool:
        return self.available

    async def get(self, key: str) -> Any:
        self.reads.append(key)
        if self.fail:
            raise ConnectionError("shared tier down")
        item = self.store.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and expires_at <= self.clock():
            del self.store[key]
            return None
        return value

    async def put(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if self.fail:
            raise ConnectionError("shared tier down")
        self.writes.append((key, ttl))
        expires_at = self.clock() + ttl if ttl is not None else None
        self.store[key] = (value, expires_at)
        return True


class FakeDatastore:
    """Datastore double: dict-backed rows and a per-method call log."""

    def __init__(self) -> None:
        self.api_keys: dict[str, ApiKeyRecord] = {}
        self.prompts: dict[str, PromptRecord] = {}
        self.versions: dict[str, list[PromptVersionRecord]] = {}
        self.subscriptions: dict[str, SubscriptionRecord] = {}
        self.usage: dict[tuple[str, str], int] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.error: Exception | None = None

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if self.error is not None:
            raise self.error

    async def get_api_key(self, hashed_key: str) -> ApiKeyRecord | None:
        self._record("get_api_key", hashed_key)
        return self.api_keys.get(hashed_key)

    async def get_prompt(self, prompt_id: str) -> PromptRecord | None:
        self._record("get_prompt", prompt_id)
        return self.prompts.get(prompt_id)

    async def get_prompt_version(self, prompt_id: str, version: str | None) -> PromptVersionRecord | None:
        self._record("get_prompt_version", prompt_id, version)
        versions = self.versions.get(prompt_id, [])
        if version is None:
            return max(
                versions,
                key=lambda v: tuple(int(p) for p in v.version.split(".")),
                default=None,
            )
        return next((v for v in versions if v.version == version), None)

    async def get_usage_count(self, organization_id: str, period: str) -> int:
        self._record("get_usage_count", organization_id, period)
        return self.usage.get((organization_id, period), 0)

    async def get_subscription(self, organization_id: str) -> SubscriptionRecord | None:
        self._record("get_subscription", organization_id)
        return self.subscriptions.get(organization_id)

    async def upsert_increment(self, organization_id: str, period: str) -> None:
        self._record("upsert_increment", organization_id, period)
        key = (organization_id, period)
        self.usage[key] = self.usage.get(key, 0) + 1


class FixedUtcClock:
    """Wall clock for services (returns a settable UTC datetime)."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def local_cache(clock: FakeClock) -> LocalCache:
    return LocalCache(clock=clock)


@pytest.fixture
def shared_cache(clock: FakeClock) -> FakeSharedCache:
    return FakeSharedCache(clock)


@pytest.fixture
def tiered_cache(local_cache: LocalCache, shared_cache: FakeSharedCache) -> TieredCache:
    return TieredCache(local_cache, shared_cache, promotion_ttl=300)


@pytest.fixture
def datastore() -> FakeDatastore:
    return FakeDatastore()


@pytest.fixture
def utc_clock() -> FixedUtcClock:
    return FixedUtcClock(datetime(2026, 2, 14, 12, 0, tzinfo=UTC))
