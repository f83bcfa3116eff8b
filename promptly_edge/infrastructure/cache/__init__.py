"""Cache: local tier, Redis shared tier, tiered facade and key builders."""

from promptly_edge.infrastructure.cache.cache_protocol import SharedCacheProtocol
from promptly_edge.infrastructure.cache.keys import (
    api_key_key,
    plan_key,
    prompt_key,
    usage_key,
    version_key,
)
from promptly_edge.infrastructure.cache.local_cache import LocalCache
from promptly_edge.infrastructure.cache.redis_cache import SharedCache
from promptly_edge.infrastructure.cache.tiered_cache import (
    INDEFINITE,
    NO_SHARED_WRITE,
    ExpireAfter,
    Indefinite,
    NoSharedWrite,
    SharedTtl,
    TieredCache,
)

__all__ = [
    "INDEFINITE",
    "NO_SHARED_WRITE",
    "ExpireAfter",
    "Indefinite",
    "LocalCache",
    "NoSharedWrite",
    "SharedCache",
    "SharedCacheProtocol",
    "SharedTtl",
    "TieredCache",
    "api_key_key",
    "plan_key",
    "prompt_key",
    "usage_key",
    "version_key",
]
