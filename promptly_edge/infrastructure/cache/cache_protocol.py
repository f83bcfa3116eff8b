"""Protocol for the shared cache tier. Real implementation is Redis (redis_cache)."""

from typing import Any, Protocol


class SharedCacheProtocol(Protocol):
    """Network key/value store visible to every process.

    Implementations must not raise on I/O faults: get returns None and
    put returns False so callers can treat failures as misses.
    """

    def is_available(self) -> bool:
        """Return True if the backend is connected and usable."""
        ...

    async def get(self, key: str) -> Any:
        """Return the JSON-decoded value or None."""
        ...

    async def put(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store value; ttl None means no expiry. Returns True on success."""
        ...
