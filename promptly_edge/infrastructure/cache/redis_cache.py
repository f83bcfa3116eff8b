"""Redis-backed shared cache tier.

Holds JSON values visible to every process. Writes are budgeted, so the
tiered facade only writes here when a caller asks for it. Every Redis or
decoding fault is logged and reported as a miss (get) or a skipped write
(put); nothing here raises to callers.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as redis

from promptly_edge.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class SharedCache:
    """Async Redis shared cache with optional per-key TTL.

    Call connect() at startup and disconnect() at shutdown. When the
    connection cannot be established the cache stays unavailable and every
    get is a miss.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize shared cache.

        Args:
            redis_client: Optional Redis client for testing or DI.
            settings: Optional settings; defaults to get_settings().
        """
        self.redis = redis_client
        self.settings = settings or get_settings()
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self.redis is not None:
            return
        client = redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=(
                self.settings.redis_password.get_secret_value()
                if self.settings.redis_password
                else None
            ),
            decode_responses=True,
            socket_connect_timeout=self.settings.redis_socket_timeout,
            socket_timeout=self.settings.redis_socket_timeout,
            socket_keepalive=True,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError, OSError) as e:
            logger.warning("Redis connection failed: %s. Shared cache disabled.", e)
            await client.aclose()
            return
        self.redis = client
        self._connected = True
        logger.info(
            "Redis shared cache connected: %s:%s",
            self.settings.redis_host,
            self.settings.redis_port,
        )

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis shared cache disconnected")

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def get(self, key: str) -> Any | None:
        """Return cached value (JSON-deserialized) or None if missing/unavailable."""
        if not self.is_available() or self.redis is None:
            return None
        try:
            raw = await self.redis.get(key)
        except (redis.RedisError, OSError):
            logger.warning("Shared cache get failed for key %s", key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Shared cache value for key %s is not valid JSON", key)
            return None

    async def put(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store value; ttl None stores without expiry. Returns True on success."""
        if not self.is_available() or self.redis is None:
            return False
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError):
            logger.warning("Shared cache value for key %s is not JSON-serializable", key)
            return False
        try:
            if ttl is None:
                await self.redis.set(key, serialized)
            else:
                await self.redis.setex(key, ttl, serialized)
            return True
        except (redis.RedisError, OSError):
            logger.warning("Shared cache put failed for key %s", key, exc_info=True)
            return False
