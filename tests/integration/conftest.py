"""Fixtures for datastore tests against a SQLite file database (aiosqlite)."""

import pytest

from promptly_edge.core.config import Settings
from promptly_edge.infrastructure.persistence.database import (
    create_all,
    create_engine,
    create_session_factory,
)
from promptly_edge.infrastructure.persistence.datastore import Datastore
from tests.seed_data import seed


@pytest.fixture
async def engine(tmp_path):
    settings = Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'edge.db'}", redis_enabled=False)
    engine = create_engine(settings)
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def sql_datastore(engine) -> Datastore:
    factory = create_session_factory(engine)
    await seed(factory, "hash-1")
    return Datastore(factory)
