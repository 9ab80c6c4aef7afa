"""Session stores for carts."""
import json
from typing import Any, Optional, Protocol, runtime_checkable

from shopcart.db import TTL, get_redis_sync
from shopcart.logging import get_logger, sanitize_string_for_logging

from .collection import Cart

logger = get_logger(__name__)


@runtime_checkable
class SessionStore(Protocol):
    """Key-value contract the cart manager persists through."""

    def has(self, key: str) -> bool: ...

    def get(self, key: str) -> Cart: ...

    def put(self, key: str, cart: Cart) -> None: ...


class InMemorySessionStore:
    """
    Process-local store.

    Keeps serialized snapshots, so a cart read back is never the object that
    was put and later in-memory edits do not leak into the store.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict] = {}

    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str) -> Cart:
        return Cart.from_dict(self._data[key])

    def put(self, key: str, cart: Cart) -> None:
        self._data[key] = cart.to_dict()

    def keys(self) -> list[str]:
        return list(self._data)


class RedisSessionStore:
    """
    Carts in Upstash Redis as JSON with a TTL.

    Features:
    - Lazy client initialization
    - 24-hour TTL for abandoned carts (CART_TTL_SECONDS)
    - Corrupted payloads are dropped and read back as an empty cart
    """

    def __init__(self, redis: Any = None, ttl: Optional[int] = None):
        self._redis = redis
        self._ttl = ttl

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            try:
                self._redis = get_redis_sync()
            except ValueError as e:
                raise ValueError(
                    f"Redis not available: {e}. Check UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN environment variables."
                ) from e
        return self._redis

    @property
    def ttl(self) -> int:
        return self._ttl if self._ttl is not None else TTL.cart()

    def has(self, key: str) -> bool:
        return bool(self.redis.exists(key))

    def get(self, key: str) -> Cart:
        data = self.redis.get(key)
        if not data:
            return Cart()

        try:
            return Cart.from_dict(json.loads(data))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            # Corrupted data - clear it and start over
            logger.warning(
                "Corrupted cart data under %s: %s",
                sanitize_string_for_logging(key),
                type(e).__name__,
            )
            self.redis.delete(key)
            return Cart()

    def put(self, key: str, cart: Cart) -> None:
        self.redis.set(key, json.dumps(cart.to_dict()), ex=self.ttl)
