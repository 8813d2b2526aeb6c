"""Identity caching."""

from src.gatekeeper.cache.memory import InMemoryCache
from src.gatekeeper.cache.redis_cache import RedisCache
from src.gatekeeper.cache.tiered import TieredCache, hash_token

__all__ = ["InMemoryCache", "RedisCache", "TieredCache", "hash_token"]
