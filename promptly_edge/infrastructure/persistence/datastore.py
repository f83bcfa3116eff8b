"""Relational datastore: point lookups and the atomic usage upsert.

Every method opens its own session so independent lookups can run
concurrently. SQLAlchemy errors are wrapped in DatastoreError so callers
can tell an outage apart from a missing row (None).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from promptly_edge.domain.exceptions import DatastoreError
from promptly_edge.infrastructure.persistence.models import (
    ApiKey,
    ApiUsage,
    Member,
    Prompt,
    PromptVersion,
    Subscription,
)
from promptly_edge.shared.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiKeyRecord:
    organization_id: str
    permissions: dict[str, list[str]]
    enabled: bool
    expires_at: datetime | None


@dataclass(frozen=True)
class PromptRecord:
    id: str
    organization_id: str
    name: str
    description: str | None


@dataclass(frozen=True)
class PromptVersionRecord:
    prompt_id: str
    version: str
    system_message: str | None
    user_message: str | None
    config: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SubscriptionRecord:
    plan: str
    status: str


def _parse_semver(version: str) -> tuple[int, int, int]:
    major, minor, patch = (int(part) for part in version.split("."))
    return major, minor, patch


class Datastore:
    """Read queries and the usage upsert over an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_api_key(self, hashed_key: str) -> ApiKeyRecord | None:
        """Return the key joined with its owner's organization, or None.

        A user with several memberships resolves to the earliest one
        (created_at, then member id), so the tenant a key bills to is stable.
        """
        stmt = (
            select(ApiKey, Member.organization_id)
            .join(Member, Member.user_id == ApiKey.user_id)
            .where(ApiKey.key == hashed_key)
            .order_by(Member.created_at.asc(), Member.id.asc())
            .limit(1)
        )
        try:
            async with self.session_factory() as session:
                row = (await session.execute(stmt)).first()
        except SQLAlchemyError as e:
            raise DatastoreError("get_api_key", str(e)) from e
        if row is None:
            return None
        api_key, organization_id = row
        return ApiKeyRecord(
            organization_id=organization_id,
            permissions=dict(api_key.permissions or {}),
            enabled=bool(api_key.enabled),
            expires_at=ensure_utc(api_key.expires_at),
        )

    async def get_prompt(self, prompt_id: str) -> PromptRecord | None:
        """Return prompt metadata, or None if missing or soft-deleted."""
        stmt = select(Prompt).where(Prompt.id == prompt_id, Prompt.deleted_at.is_(None))
        try:
            async with self.session_factory() as session:
                prompt = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatastoreError("get_prompt", str(e)) from e
        if prompt is None:
            return None
        return PromptRecord(
            id=prompt.id,
            organization_id=prompt.organization_id,
            name=prompt.name,
            description=prompt.description,
        )

    async def get_prompt_version(
        self, prompt_id: str, version: str | None
    ) -> PromptVersionRecord | None:
        """Return a published version; version None selects the highest semver.

        version must already be validated as MAJOR.MINOR.PATCH.
        """
        stmt = select(PromptVersion).where(
            PromptVersion.prompt_id == prompt_id,
            PromptVersion.published_at.is_not(None),
        )
        if version is not None:
            major, minor, patch = _parse_semver(version)
            stmt = stmt.where(
                PromptVersion.major == major,
                PromptVersion.minor == minor,
                PromptVersion.patch == patch,
            )
        else:
            stmt = stmt.order_by(
                PromptVersion.major.desc(),
                PromptVersion.minor.desc(),
                PromptVersion.patch.desc(),
            )
        try:
            async with self.session_factory() as session:
                row = (await session.execute(stmt.limit(1))).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatastoreError("get_prompt_version", str(e)) from e
        if row is None:
            return None
        return PromptVersionRecord(
            prompt_id=row.prompt_id,
            version=row.semver,
            system_message=row.system_message,
            user_message=row.user_message,
            config=dict(row.config or {}),
        )

    async def get_usage_count(self, organization_id: str, period: str) -> int:
        """Return the stored count for (organization, period); 0 when no row exists yet."""
        stmt = select(ApiUsage.count).where(
            ApiUsage.organization_id == organization_id, ApiUsage.period == period
        )
        try:
            async with self.session_factory() as session:
                count = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatastoreError("get_usage_count", str(e)) from e
        return int(count or 0)

    async def get_subscription(self, organization_id: str) -> SubscriptionRecord | None:
        stmt = select(Subscription).where(Subscription.organization_id == organization_id)
        try:
            async with self.session_factory() as session:
                sub = (await session.execute(stmt.limit(1))).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatastoreError("get_subscription", str(e)) from e
        if sub is None:
            return None
        return SubscriptionRecord(plan=sub.plan, status=sub.status)

    async def upsert_increment(self, organization_id: str, period: str) -> None:
        """Insert (organization, period, count=1) or atomically add one to count.

        Single INSERT ... ON CONFLICT DO UPDATE statement, so concurrent
        callers never lose an increment.
        """
        try:
            async with self.session_factory.begin() as session:
                insert = _dialect_insert(session)
                now = utc_now()
                stmt = insert(ApiUsage).values(
                    organization_id=organization_id,
                    period=period,
                    count=1,
                    created_at=now,
                    updated_at=now,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[ApiUsage.organization_id, ApiUsage.period],
                    set_={"count": ApiUsage.count + 1, "updated_at": now},
                )
                await session.execute(stmt)
        except SQLAlchemyError as e:
            raise DatastoreError("upsert_increment", str(e)) from e


def _dialect_insert(session: AsyncSession) -> Any:
    """Return the dialect-specific insert() that supports on_conflict_do_update."""
    dialect = session.bind.dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise DatastoreError("upsert_increment", f"unsupported dialect {dialect!r}")
    return insert
