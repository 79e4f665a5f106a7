import redis.asyncio as redis
from redis.exceptions import RedisError
from typing import Any, Optional
from datetime import datetime
import json
import logging
import uuid

from frequency.core.config import settings

logger = logging.getLogger(__name__)


class CatalogEncoder(json.JSONEncoder):
    """JSON encoder for UUID and datetime values in cached catalog rows"""
    def default(self, obj):
        if isinstance(obj, uuid.UUID):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


class RedisClient:
    """Read-through cache for catalog queries.

    Every call degrades to a miss when Redis is not connected or fails, the
    catalog is then read straight from the database.
    """

    def __init__(self):
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        """Connect to Redis"""
        try:
            self.redis = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True
            )
            await self.redis.ping()
        except (RedisError, OSError) as e:
            logger.warning(f"Redis unavailable, catalog cache disabled: {e}")
            self.redis = None

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def get(self, key: str) -> Optional[str]:
        if not self.redis:
            return None
        try:
            return await self.redis.get(key)
        except RedisError as e:
            logger.warning(f"Redis get failed for {key}: {e}")
            return None

    async def set(self, key: str, value: str, expire: int = 3600) -> bool:
        """Set value in Redis with expiration"""
        if not self.redis:
            return False
        try:
            return bool(await self.redis.set(key, value, ex=expire))
        except RedisError as e:
            logger.warning(f"Redis set failed for {key}: {e}")
            return False
        try:
            return await self.redis.delete(key) > 0
        except RedisError as e:
            logger.warning(f"Redis delete failed for {key}: {e}")
            return False

    async def get_json(self, key: str) -> Optional[Any]:
        """Get JSON value from Redis"""
        value = await self.get(key)
        if value:
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return None
        return None

    async def set_json(self, key: str, value: Any, expire: int = 3600) -> bool:
        """Set JSON value in Redis"""
        try:
            json_str = json.dumps(value, cls=CatalogEncoder)
        except TypeError:
            return False
        return await self.set(key, json_str, expire)


# Global Redis client instance
redis_client = RedisClient()
