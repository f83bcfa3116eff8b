"""Core constants: cache key prefixes and shared literal values.

Single source of truth for cache key structure. Used by
promptly_edge.infrastructure.cache.keys.
"""

# Cache key prefixes
CACHE_PREFIX_API_KEY = "apikey"
CACHE_PREFIX_PROMPT = "prompt"
CACHE_PREFIX_VERSION = "version"
CACHE_PREFIX_USAGE = "usage"
CACHE_PREFIX_PLAN = "plan"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Pointer segment for the newest published version
LATEST_VERSION = "latest"

# Subscription statuses that grant the subscribed plan
ACTIVE_SUBSCRIPTION_STATUSES = frozenset({"active", "trialing"})
DEFAULT_PLAN = "free"
