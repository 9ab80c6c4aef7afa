"""Cart package: options, products, collection, storage, events and manager facade."""
from .collection import Cart
from .events import CartEvents, EventDispatcher, EventSink, RedisStreamEventSink
from .options import ProductOptions
from .product import Product, make_identity
from .service import CartManager, create_cart_manager
from .storage import InMemorySessionStore, RedisSessionStore, SessionStore

__all__ = [
    "Cart",
    "CartEvents",
    "CartManager",
    "EventDispatcher",
    "EventSink",
    "InMemorySessionStore",
    "Product",
    "ProductOptions",
    "RedisSessionStore",
    "RedisStreamEventSink",
    "SessionStore",
    "create_cart_manager",
    "make_identity",
]
