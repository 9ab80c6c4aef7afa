"""Cart lifecycle events.

Every mutating cart operation fires a present-tense event before the change
and a past-tense one after it (``cart.add`` / ``cart.added``, ...).
"""

import json
from collections import defaultdict
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from shopcart.db import RedisKeys, get_redis_sync
from shopcart.logging import get_logger

logger = get_logger(__name__)

WILDCARD = "*"

Listener = Callable[[str, Any], None]


@runtime_checkable
class EventSink(Protocol):
    """Anything the cart manager can fire events into."""

    def fire(self, event_name: str, payload: Any = None) -> None: ...


class CartEvents:
    """Event verbs fired by the cart manager."""

    ADD = "add"
    ADDED = "added"
    BATCH = "batch"
    BATCHED = "batched"
    UPDATE = "update"
    UPDATED = "updated"
    DELETE = "delete"
    DELETED = "deleted"
    DESTROY = "destroy"
    DESTROYED = "destroyed"


class EventDispatcher:
    """
    In-process event sink.

    Listeners are called in registration order with (event_name, payload).
    Exceptions raised by a listener propagate to the caller.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def listen(self, event_name: str, listener: Listener) -> Listener:
        """Register a listener for one event name, or "*" for all."""
        self._listeners[event_name].append(listener)
        return listener

    def forget(self, event_name: str, listener: Optional[Listener] = None) -> None:
        """Drop one listener, or all listeners of the event."""
        if listener is None:
            self._listeners.pop(event_name, None)
            return
        if listener in self._listeners.get(event_name, []):
            self._listeners[event_name].remove(listener)

    def has_listeners(self, event_name: str) -> bool:
        return bool(self._listeners.get(event_name) or self._listeners.get(WILDCARD))

    def fire(self, event_name: str, payload: Any = None) -> None:
        for listener in list(self._listeners.get(event_name, [])):
            listener(event_name, payload)
        for listener in list(self._listeners.get(WILDCARD, [])):
            listener(event_name, payload)


class RedisStreamEventSink:
    """Emits cart events to a Redis Stream (XADD) for out-of-process consumers.

    Emission is best effort: failures are logged and never interrupt the cart
    operation.
    """

    def __init__(self, redis: Any = None, stream_key: Optional[str] = None):
        self._redis = redis
        self.stream_key = stream_key or RedisKeys.event_stream()

    @property
    def redis(self):
        if self._redis is None:
            self._redis = get_redis_sync()
        return self._redis

    def fire(self, event_name: str, payload: Any = None) -> None:
        try:
            data = json.dumps({"event": event_name, "payload": payload}, default=str)
            self.redis.xadd(self.stream_key, "*", {"data": data})
            logger.debug(f"Emitted {event_name} to {self.stream_key}")
        except Exception as e:
            logger.warning(f"Failed to emit {event_name}: {e}", exc_info=True)
