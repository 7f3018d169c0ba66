"""Redis client configuration and utilities."""

import json
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any

import redis

from workforce_portal.config import settings

# Global Redis client instance
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client instance.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """
    Check if Redis connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        client = get_redis_client()
        client.ping()
        return True
    except Exception:
        return False


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheNamespace(Enum):
    """Known cache namespaces and the TTL of entries stored under each."""

    NOTIFICATION_INTERACTION = ("notification_interaction", timedelta(days=60))

    def __init__(self, prefix: str, ttl: timedelta):
        self.prefix = prefix
        self.ttl = ttl


@dataclass(frozen=True)
class CacheKey:
    """Typed cache address: a namespace plus an identifier inside it."""

    namespace: CacheNamespace
    identifier: str

    def __post_init__(self) -> None:
        if not self.identifier:
            raise ValueError("Cache identifier must not be empty")

    def __str__(self) -> str:
        return f"{self.namespace.prefix}:{self.identifier}"

    @property
    def ttl_seconds(self) -> int:
        return int(self.namespace.ttl.total_seconds())

    @classmethod
    def notification_interaction(cls, user_ps_id: str, notification_id: str) -> "CacheKey":
        return cls(CacheNamespace.NOTIFICATION_INTERACTION, f"{user_ps_id}_{notification_id}")


# Cache helpers
class CacheManager:
    """Redis-based cache manager."""

    def __init__(self, redis_client: redis.Redis):
        """Initialize cache manager with Redis client."""
        self.redis = redis_client

    def persist(self, key: CacheKey, value: Any) -> bool:
        """
        Serialize and store a JSON value with the TTL of its namespace.

        Args:
            key: Cache key
            value: Value to serialize and cache

        Returns:
            True if successful, False otherwise
        """
        try:
            json_value = json.dumps(value, default=str)
            self.redis.setex(str(key), key.ttl_seconds, json_value)
            return True
        except Exception:
            return False

