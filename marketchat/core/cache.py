"""
Redis cache management.
Provides connection pooling and helper functions for caching operations.

The cache is optional: with no ``redis_url`` configured every lookup misses
and every write is a no-op, so callers always fall back to the database.
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from marketchat.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis cache manager with connection pooling."""

    def __init__(self):
        """Initialize Redis connection pool."""
        self.redis: Optional[aioredis.Redis] = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if not settings.redis_url:
            logger.info("No Redis URL provided - running without Redis cache")
            self.redis = None
            return

        try:
            self.redis = aioredis.from_url(
                settings.redis_url,
                password=settings.redis_password or None,
                encoding="utf-8",
                decode_responses=True,
                max_connections=50,
            )
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except (RedisError, OSError) as e:
            logger.warning("Could not connect to Redis, running without cache: %s", e)
            self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def get_many(self, keys: List[str]) -> Dict[str, Any]:
        """
        Get several keys in one round trip.

        Args:
            keys: Cache keys

        Returns:
            Mapping of the keys that were present to their decoded values
        """
        if not self.redis or not keys:
            return {}

        values = await self.redis.mget(keys)
        found = {}
        for key, value in zip(keys, values):
            if value is None:
                continue
            try:
                found[key] = json.loads(value)
            except json.JSONDecodeError:
                found[key] = value
        return found

    async def set_many(self, items: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        """
        Set several keys in one pipelined round trip.

        Args:
            items: Mapping of key to value
            ttl: Time to live in seconds

        Returns:
            True if anything was written
        """
        if not self.redis or not items:
            return False

        async with self.redis.pipeline(transaction=False) as pipe:
            for key, value in items.items():
                if isinstance(value, (dict, list)):
                    value = json.dumps(value)
                if ttl:
                    pipe.setex(key, ttl, value)
                else:
                    pipe.set(key, value)
            await pipe.execute()
        return True

    async def exists(self, key: str) -> bool:
        """Check if key exists in cache."""
        if not self.redis:
            return False

        return bool(await self.redis.exists(key))


# Global cache instance
cache = RedisCache()


def _display_name_key(user_id: str) -> str:
    return f"user:display_name:{user_id}"


async def get_cached_display_names(user_ids: Iterable[str]) -> Dict[str, dict]:
    """
    Look up cached directory entries for several users.

    Cache failures are treated as misses; the directory is the source of truth.

    Returns:
        Mapping of user id to ``{"display_name": ..., "avatar_url": ...}``
    """
    ids = list(user_ids)
    try:
        found = await cache.get_many([_display_name_key(uid) for uid in ids])
    except RedisError as e:
        logger.warning("Display name cache read failed: %s", e)
        return {}
    return {
        uid: found[_display_name_key(uid)]
        for uid in ids
        if isinstance(found.get(_display_name_key(uid)), dict)
    }


async def cache_display_names(entries: Dict[str, dict]) -> bool:
    """Cache directory entries keyed by user id."""
    try:
        return await cache.set_many(
            {_display_name_key(uid): entry for uid, entry in entries.items()},
            ttl=settings.cache_display_name_ttl,
        )
    except RedisError as e:
        logger.warning("Display name cache write failed: %s", e)
        return False

