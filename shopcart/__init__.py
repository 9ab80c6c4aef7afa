"""
shopcart

Session-backed shopping cart:
- cart: products, options, collection and the CartManager facade
- errors: exception hierarchy and messages
- models: Pydantic summary schemas
- db: Upstash Redis client and key layout

Note: Imports are lazy so that importing a submodule does not pull the
whole package.
"""

__all__ = [
    "Cart",
    "CartManager",
    "Product",
    "ProductOptions",
    "create_cart_manager",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name in __all__:
        from shopcart import cart
        return getattr(cart, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
