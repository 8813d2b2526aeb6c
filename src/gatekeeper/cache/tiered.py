"""Identity cache keyed both by token hash and by provider user id."""

import hashlib
import logging

from pydantic import ValidationError

from src.gatekeeper.auth.models import CachedIdentityRecord, Identity
from src.gatekeeper.cache.base import Cache

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "token:"
USER_PREFIX = "user:"


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a bearer token; the raw token is never used as a key."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TieredCache:
    """
    Two independent namespaces over one backing cache.

    - ``token:<sha256>``: identity last resolved for a given token
    - ``user:<provider_user_id>``: identity last resolved for a user, whatever the token

    Both share one TTL. Reads and writes never raise: a backend failure is
    logged and treated as a miss, since every entry is expendable.

    Example:
        >>> tiered = TieredCache(InMemoryCache(), ttl_seconds=2592000)
        >>> await tiered.store(hash_token(token), identity)
        >>> record = await tiered.get_by_user(identity.user_id)
    """

    def __init__(self, cache: Cache, ttl_seconds: int = 2592000):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def token_key(token_hash: str) -> str:
        return TOKEN_PREFIX + token_hash

    @staticmethod
    def user_key(user_id: str) -> str:
        return USER_PREFIX + user_id

    async def get_by_token(self, token_hash: str) -> CachedIdentityRecord | None:
        return await self._read(self.token_key(token_hash))

    async def get_by_user(self, user_id: str) -> CachedIdentityRecord | None:
        return await self._read(self.user_key(user_id))

    async def store(self, token_hash: str, identity: Identity) -> CachedIdentityRecord:
        """Write a fresh record under both the token key and the user key."""
        record = CachedIdentityRecord(identity=identity)
        await self.store_record(token_hash, record)
        return record

    async def store_record(self, token_hash: str, record: CachedIdentityRecord) -> None:
        payload = record.model_dump_json()
        await self._write(self.token_key(token_hash), payload)
        await self._write(self.user_key(record.identity.user_id), payload)

    async def link_token(self, token_hash: str, record: CachedIdentityRecord) -> None:
        """Point a token key at an existing user record (token rotation)."""
        await self._write(self.token_key(token_hash), record.model_dump_json())

    async def invalidate_token(self, token_hash: str) -> None:
        key = self.token_key(token_hash)
        try:
            await self.cache.delete(key)
        except Exception as e:
            logger.warning(f"Cache delete failed: {e}", extra={"key_prefix": TOKEN_PREFIX})

    async def _read(self, key: str) -> CachedIdentityRecord | None:
        try:
            raw = await self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed: {e}", extra={"key_prefix": key.split(":", 1)[0]})
            return None

        if raw is None:
            return None

        try:
            return CachedIdentityRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry: {e}")
            return None

    async def _write(self, key: str, payload: str) -> None:
        try:
            await self.cache.put(key, payload, self.ttl_seconds)
        except Exception as e:
            logger.warning(f"Cache write failed: {e}", extra={"key_prefix": key.split(":", 1)[0]})
