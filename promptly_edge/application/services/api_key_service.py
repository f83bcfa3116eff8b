"""API key resolution with cache-aside lookup.

Validity (enabled, expiry, permission) is evaluated on every call against
whichever snapshot was found, cached or fresh. A disabled key may stay
valid for up to one cache TTL; there is no active invalidation.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from datetime import datetime

from promptly_edge.domain.entities import CachedApiKey
from promptly_edge.domain.enums import ApiKeyRejection
from promptly_edge.domain.outcomes import ApiKeyInvalid, ApiKeyResult, ApiKeyValid
from promptly_edge.infrastructure.cache.keys import api_key_key
from promptly_edge.infrastructure.cache.tiered_cache import ExpireAfter, TieredCache
from promptly_edge.infrastructure.persistence.datastore import Datastore
from promptly_edge.shared.utils.datetime import utc_now


def hash_api_key(raw_key: str) -> str:
    """Return the hex SHA-256 digest used to store and look up keys."""
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


class ApiKeyService:
    """Resolves raw API keys to an organization and permission set."""

    def __init__(
        self,
        cache: TieredCache,
        datastore: Datastore,
        *,
        ttl: int = 300,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.cache = cache
        self.datastore = datastore
        self.ttl = ttl
        self.clock = clock

    async def get_api_key(self, hashed_key: str) -> CachedApiKey | None:
        """Return the key snapshot from cache, else from the datastore (then cached).

        Unknown keys are not cached so a newly created key works immediately.
        Raises DatastoreError when the store is unreachable.
        """
        key = api_key_key(hashed_key)
        cached = await self.cache.read_entity(key, CachedApiKey.from_cache)
        if cached is not None:
            return cached
        record = await self.datastore.get_api_key(hashed_key)
        if record is None:
            return None
        api_key = CachedApiKey(
            organization_id=record.organization_id,
            permissions={r: frozenset(a) for r, a in record.permissions.items()},
            enabled=record.enabled,
            expires_at=record.expires_at,
        )
        await self.cache.write(key, api_key.to_cache(), ExpireAfter(self.ttl))
        return api_key

    async def resolve(self, raw_key: str, resource: str, action: str) -> ApiKeyResult:
        """Validate raw_key and check it grants action on resource."""
        api_key = await self.get_api_key(hash_api_key(raw_key))
        if api_key is None:
            return ApiKeyInvalid(ApiKeyRejection.INVALID_KEY)
        if not api_key.enabled:
            return ApiKeyInvalid(ApiKeyRejection.DISABLED)
        if api_key.is_expired(self.clock()):
            return ApiKeyInvalid(ApiKeyRejection.EXPIRED)
        if not api_key.allows(resource, action):
            return ApiKeyInvalid(ApiKeyRejection.FORBIDDEN)
        return ApiKeyValid(
            organization_id=api_key.organization_id,
            permissions=api_key.permissions,
        )
