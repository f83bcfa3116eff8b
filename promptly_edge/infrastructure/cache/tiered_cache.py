"""Two-level cache facade: process-local tier in front of the shared tier.

Reads check the local tier, then the shared tier (promoting hits into the
local tier). Writes always go to the local tier and reach the shared tier
only when the caller passes a SharedTtl other than NO_SHARED_WRITE, since
shared-tier writes are budgeted. Cache faults surface as misses, never as
exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar, Union

from promptly_edge.infrastructure.cache.cache_protocol import SharedCacheProtocol
from promptly_edge.infrastructure.cache.local_cache import LocalCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class NoSharedWrite:
    """Cache in the local tier only."""


@dataclass(frozen=True)
class Indefinite:
    """Write to the shared tier with no expiry."""


@dataclass(frozen=True)
class ExpireAfter:
    """Write to the shared tier with a TTL in seconds."""

    seconds: int

    def __post_init__(self) -> None:
        if self.seconds <= 0:
            raise ValueError("ExpireAfter.seconds must be positive; use INDEFINITE for no expiry")


SharedTtl = Union[NoSharedWrite, Indefinite, ExpireAfter]

NO_SHARED_WRITE = NoSharedWrite()
INDEFINITE = Indefinite()


class TieredCache:
    """Local + shared cache behind one read/write contract."""

    def __init__(
        self,
        local: LocalCache,
        shared: SharedCacheProtocol | None = None,
        *,
        promotion_ttl: int = 300,
    ) -> None:
        self.local = local
        self.shared = shared
        self.promotion_ttl = promotion_ttl

    def _available_shared(self) -> SharedCacheProtocol | None:
        shared = self.shared
        if shared is None or not shared.is_available():
            return None
        return shared

    async def read(self, key: str, *, local_only: bool = False) -> Any | None:
        """Return the cached value for key or None.

        Args:
            key: Cache key (see promptly_edge.infrastructure.cache.keys).
            local_only: Skip the shared tier for entities never written there.
        """
        value = self.local.get(key)
        if value is not None:
            logger.debug("Cache HIT: %s (local)", key, extra={"event": "cache_hit", "key": key, "tier": "local"})
            return value
        shared = None if local_only else self._available_shared()
        if shared is None:
            logger.debug("Cache MISS: %s", key, extra={"event": "cache_miss", "key": key})
            return None
        try:
            value = await shared.get(key)
        except Exception:
            logger.warning("Shared cache read failed for %s; treating as miss", key, exc_info=True)
            value = None
        if value is None:
            logger.debug("Cache MISS: %s", key, extra={"event": "cache_miss", "key": key})
            return None
        logger.debug("Cache HIT: %s (shared)", key, extra={"event": "cache_hit", "key": key, "tier": "shared"})
        self.local.set(key, value, self.promotion_ttl)
        return value

    async def read_entity(
        self,
        key: str,
        decode: Callable[[Any], T],
        *,
        local_only: bool = False,
    ) -> T | None:
        """Read key and decode it; a value of the wrong shape counts as a miss.

        The undecodable entry is dropped from the local tier so the caller's
        re-population replaces it in both tiers.
        """
        value = await self.read(key, local_only=local_only)
        if value is None:
            return None
        try:
            return decode(value)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.warning(
                "Cache value for %s has an unexpected shape; treating as miss",
                key,
                extra={"event": "cache_decode_error", "key": key},
            )
            self.local.delete(key)
            return None

    def replace_local(self, key: str, transform: Callable[[Any], Any]) -> bool:
        """Transform a live local entry in place of the old one, keeping its expiry.

        Returns False when there is no live entry or transform fails (the
        entry is then dropped).
        """
        try:
            return self.local.replace(key, transform)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.warning("Cache value for %s has an unexpected shape; dropping it", key)
            self.local.delete(key)
            return False

    async def write(
        self,
        key: str,
        value: Any,
        shared_ttl: SharedTtl = NO_SHARED_WRITE,
        *,
        local_ttl: int | None = None,
    ) -> None:
        """Store value in the local tier and, when requested, in the shared tier.

        Args:
            key: Cache key.
            value: JSON-compatible value; stored as-is and never mutated afterwards.
            shared_ttl: NO_SHARED_WRITE, INDEFINITE or ExpireAfter(seconds).
            local_ttl: Local-tier TTL; defaults to the promotion TTL.
        """
        self.local.set(key, value, local_ttl or self.promotion_ttl)
        if isinstance(shared_ttl, NoSharedWrite):
            logger.debug("Cache SET: %s (local)", key, extra={"event": "cache_set", "key": key, "tier": "local"})
            return
        ttl = shared_ttl.seconds if isinstance(shared_ttl, ExpireAfter) else None
        stored = False
        shared = self._available_shared()
        if shared is not None:
            try:
                stored = await shared.put(key, value, ttl)
            except Exception:
                logger.warning("Shared cache write failed for %s", key, exc_info=True)
        tier = "local+shared" if stored else "local"
        logger.debug(
            "Cache SET: %s (%s, shared_ttl=%s)",
            key,
            tier,
            ttl if ttl is not None else "infinite",
            extra={"event": "cache_set", "key": key, "tier": tier, "shared_ttl": ttl},
        )
