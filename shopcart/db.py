"""
Redis Module - Upstash Redis client for cart sessions and event streams

Provides a singleton sync Upstash Redis client plus the key layout and TTLs
used by the Redis-backed session store and event sink.
"""

import os
from typing import Optional

from upstash_redis import Redis

from shopcart.config import get_settings

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")


_sync_redis_client: Optional[Redis] = None


def get_redis_sync() -> Redis:
    """
    Get sync Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN

    Raises:
        ValueError: If either variable is missing
    """
    global _sync_redis_client

    if _sync_redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _sync_redis_client = Redis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _sync_redis_client


class RedisKeys:
    """Redis key layout for cart data."""

    @staticmethod
    def session_key(instance: str, namespace: Optional[str] = None) -> str:
        """Session key for a cart instance: "<namespace>.<instance>"."""
        namespace = namespace or get_settings().session_namespace
        return f"{namespace}.{instance}"

    @staticmethod
    def event_stream() -> str:
        return get_settings().event_stream


class TTL:
    """Time-to-live constants for Redis keys."""

    CART = 86400  # 24 hours

    @staticmethod
    def cart() -> int:
        return get_settings().ttl_seconds or TTL.CART
