"""Datastore queries and the atomic usage upsert against SQLite."""

import asyncio
from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import OperationalError

from promptly_edge.domain.exceptions import DatastoreError
from promptly_edge.infrastructure.persistence.database import create_session_factory
from promptly_edge.infrastructure.persistence.datastore import Datastore
from promptly_edge.infrastructure.persistence.models import Member, Organization


class TestLookups:
    async def test_api_key_joined_with_membership(self, sql_datastore: Datastore) -> None:
        record = await sql_datastore.get_api_key("hash-1")
        assert record is not None
        assert record.organization_id == "org1"
        assert record.permissions == {"prompts": ["read"]}
        assert record.enabled is True
        assert record.expires_at is None

    async def test_api_key_resolves_to_earliest_membership(self, sql_datastore: Datastore) -> None:
        async with sql_datastore.session_factory.begin() as session:
            session.add_all(
                [
                    Organization(id="org2", name="Early"),
                    Organization(id="org3", name="Late"),
                ]
            )
            await session.flush()
            session.add_all(
                [
                    Member(organization_id="org3", user_id="u1", created_at=datetime(2099, 1, 1, tzinfo=UTC)),
                    Member(organization_id="org2", user_id="u1", created_at=datetime(2000, 1, 1, tzinfo=UTC)),
                ]
            )
        for _ in range(3):
            record = await sql_datastore.get_api_key("hash-1")
            assert record is not None
            assert record.organization_id == "org2"

    async def test_unknown_api_key(self, sql_datastore: Datastore) -> None:
        assert await sql_datastore.get_api_key("nope") is None

    async def test_prompt(self, sql_datastore: Datastore) -> None:
        record = await sql_datastore.get_prompt("p1")
        assert record is not None
        assert (record.organization_id, record.name) == ("org1", "Greeter")

    async def test_soft_deleted_prompt_is_hidden(self, sql_datastore: Datastore) -> None:
        assert await sql_datastore.get_prompt("gone") is None

    async def test_latest_orders_numerically_and_skips_drafts(self, sql_datastore: Datastore) -> None:
        record = await sql_datastore.get_prompt_version("p1", None)
        assert record is not None
        assert record.version == "1.2.0"

    async def test_specific_version(self, sql_datastore: Datastore) -> None:
        record = await sql_datastore.get_prompt_version("p1", "1.1.0")
        assert record is not None
        assert record.user_message == "v1.1.0"
        assert record.config == {"t": 1}

    async def test_unpublished_version_is_hidden(self, sql_datastore: Datastore) -> None:
        assert await sql_datastore.get_prompt_version("p1", "1.10.0") is None

    async def test_subscription(self, sql_datastore: Datastore) -> None:
        record = await sql_datastore.get_subscription("org1")
        assert record is not None
        assert (record.plan, record.status) == ("pro", "active")
        assert await sql_datastore.get_subscription("org2") is None


class TestUpsertIncrement:
    async def test_missing_row_counts_as_zero(self, sql_datastore: Datastore) -> None:
        assert await sql_datastore.get_usage_count("org1", "2026-02") == 0

    async def test_first_increment_creates_row(self, sql_datastore: Datastore) -> None:
        await sql_datastore.upsert_increment("org1", "2026-02")
        assert await sql_datastore.get_usage_count("org1", "2026-02") == 1

    async def test_periods_are_independent(self, sql_datastore: Datastore) -> None:
        await sql_datastore.upsert_increment("org1", "2026-02")
        await sql_datastore.upsert_increment("org1", "2026-03")
        await sql_datastore.upsert_increment("org1", "2026-03")
        assert await sql_datastore.get_usage_count("org1", "2026-02") == 1
        assert await sql_datastore.get_usage_count("org1", "2026-03") == 2

    async def test_concurrent_increments_are_not_lost(self, sql_datastore: Datastore) -> None:
        await sql_datastore.upsert_increment("org1", "2026-02")
        await asyncio.gather(*(sql_datastore.upsert_increment("org1", "2026-02") for _ in range(12)))
        assert await sql_datastore.get_usage_count("org1", "2026-02") == 13


async def test_sqlalchemy_errors_become_datastore_errors(engine) -> None:
    async with engine.begin() as conn:
        await conn.exec_driver_sql("DROP TABLE prompt_version")
    datastore = Datastore(create_session_factory(engine))
    with pytest.raises(DatastoreError) as exc_info:
        await datastore.get_prompt_version("p1", None)
    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert exc_info.value.error_code == "DATASTORE_ERROR"
