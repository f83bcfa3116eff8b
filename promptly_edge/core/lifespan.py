"""Application lifespan: startup and shutdown.

Builds the process-scoped components (local cache tier, Redis shared tier,
database engine, services) and stores them on app.state. No business
logic here, only wiring.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from promptly_edge.application.services import ApiKeyService, PromptService, UsageAccounter
from promptly_edge.core.config import get_settings
from promptly_edge.infrastructure.cache import LocalCache, SharedCache, TieredCache
from promptly_edge.infrastructure.persistence.database import (
    create_engine,
    create_session_factory,
)
from promptly_edge.infrastructure.persistence.datastore import Datastore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit close Redis, flush telemetry, dispose the engine."""
    settings = get_settings()

    # ---- Startup ----
    shared_cache = None
    if settings.redis_enabled:
        shared_cache = SharedCache(settings=settings)
        await shared_cache.connect()

    cache = TieredCache(
        LocalCache(),
        shared_cache,
        promotion_ttl=settings.cache_ttl_local_promotion,
    )
    engine = create_engine(settings)
    telemetry = getattr(app.state, "telemetry", None)
    if telemetry is not None:
        telemetry.instrument_sqlalchemy(engine)
        if shared_cache is not None:
            telemetry.instrument_redis()
    datastore = Datastore(create_session_factory(engine))

    app.state.shared_cache = shared_cache
    app.state.cache = cache
    app.state.engine = engine
    app.state.api_keys = ApiKeyService(cache, datastore, ttl=settings.cache_ttl_api_key)
    app.state.prompts = PromptService(cache, datastore, ttl=settings.cache_ttl_prompt)
    app.state.usage = UsageAccounter(
        cache,
        datastore,
        plan_limits=settings.plan_limits,
        usage_ttl=settings.cache_ttl_usage,
        plan_ttl=settings.cache_ttl_plan,
    )
    logger.info("Startup complete (shared cache: %s)", "on" if shared_cache else "off")

    yield

    # ---- Shutdown ----
    if shared_cache is not None:
        await shared_cache.disconnect()
    if telemetry is not None:
        telemetry.shutdown()
    await engine.dispose()
    logger.info("Shutdown complete")
