"""Cache key builders. Single place for key format.

Keys are deterministic from their inputs so repeated lookups of the same
entity always land on the same key. Components must not contain
CACHE_KEY_SEP to avoid ambiguous or colliding keys.
"""

from promptly_edge.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PREFIX_API_KEY,
    CACHE_PREFIX_PLAN,
    CACHE_PREFIX_PROMPT,
    CACHE_PREFIX_USAGE,
    CACHE_PREFIX_VERSION,
    LATEST_VERSION,
)


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains the cache key separator."""
    if not value:
        raise ValueError(f"Cache key component {name!r} must not be empty")
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def api_key_key(hashed_key: str) -> str:
    """Cache key for an API key by its SHA-256 hash."""
    _validate_key_component(hashed_key, "hashed_key")
    return f"{CACHE_PREFIX_API_KEY}{CACHE_KEY_SEP}{hashed_key}"


def prompt_key(prompt_id: str) -> str:
    """Cache key for prompt metadata."""
    _validate_key_component(prompt_id, "prompt_id")
    return f"{CACHE_PREFIX_PROMPT}{CACHE_KEY_SEP}{prompt_id}"


def version_key(prompt_id: str, version: str | None) -> str:
    """Cache key for a prompt version; None selects the "latest" pointer."""
    _validate_key_component(prompt_id, "prompt_id")
    segment = version if version is not None else LATEST_VERSION
    _validate_key_component(segment, "version")
    return f"{CACHE_PREFIX_VERSION}{CACHE_KEY_SEP}{prompt_id}{CACHE_KEY_SEP}{segment}"


def usage_key(tenant_id: str, period: str) -> str:
    """Cache key for a tenant's usage counter in one period (YYYY-MM)."""
    _validate_key_component(tenant_id, "tenant_id")
    _validate_key_component(period, "period")
    return f"{CACHE_PREFIX_USAGE}{CACHE_KEY_SEP}{tenant_id}{CACHE_KEY_SEP}{period}"


def plan_key(tenant_id: str) -> str:
    """Cache key for a tenant's plan limit."""
    _validate_key_component(tenant_id, "tenant_id")
    return f"{CACHE_PREFIX_PLAN}{CACHE_KEY_SEP}{tenant_id}"
