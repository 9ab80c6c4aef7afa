"""Pytest configuration and fixtures"""
import os
import pytest
from unittest.mock import Mock

# Set test environment variables
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")

from shopcart.cart import CartManager, EventDispatcher, InMemorySessionStore  # noqa: E402
from shopcart.config import CartSettings  # noqa: E402


@pytest.fixture
def sample_product():
    """Sample product attributes"""
    return {
        "id": "prod-123",
        "name": "Cotton T-shirt",
        "qty": 2,
        "price": 19.99,
        "vat": 20.0,
        "options": {
            "brand": "Acme",
            "color": "blue",
            "size": "medium",
        },
    }


@pytest.fixture
def another_product():
    """Second product attributes, no options"""
    return {
        "id": 4021,
        "name": "Coffee mug",
        "qty": 1,
        "price": 9.5,
    }


@pytest.fixture
def session():
    """In-memory session store"""
    return InMemorySessionStore()


@pytest.fixture
def events():
    """Event dispatcher recording every fired event in `events.fired`"""
    dispatcher = EventDispatcher()
    dispatcher.fired = []
    dispatcher.listen("*", lambda name, payload: dispatcher.fired.append((name, payload)))
    return dispatcher


@pytest.fixture
def settings():
    """Default cart settings, independent of the environment"""
    return CartSettings()


@pytest.fixture
def manager(session, events, settings):
    """Cart manager on the "main" instance"""
    return CartManager(session, events, settings=settings)


@pytest.fixture
def mock_redis():
    """Mock Upstash Redis client backed by a dict"""
    store = {}
    client = Mock()

    def _set(key, value, ex=None):
        store[key] = value
        return True

    def _delete(*keys):
        return sum(1 for key in keys if store.pop(key, None) is not None)

    client.get.side_effect = lambda key: store.get(key)
    client.set.side_effect = _set
    client.exists.side_effect = lambda *keys: sum(1 for key in keys if key in store)
    client.delete.side_effect = _delete
    client.xadd.return_value = "1-0"
    client.store = store
    return client
