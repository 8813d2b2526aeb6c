"""Key/value cache interface used by the identity verifiers."""

from typing import Protocol


class Cache(Protocol):
    """String key to string value store with per-entry TTL."""

    async def get(self, key: str) -> str | None:
        """Return the value for ``key``, or None on a miss or expired entry."""

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store/replace ``value`` under ``key`` for ``ttl_seconds``."""

    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
