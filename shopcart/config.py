"""Cart settings read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import cache


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.environ.get(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return int(v)


@dataclass(frozen=True)
class CartSettings:
    session_namespace: str = "cart"
    event_namespace: str = "cart"
    default_instance: str = "main"
    ttl_seconds: int = 86400  # 24 hours
    event_stream: str = "stream:cart:events"


@cache
def get_settings() -> CartSettings:
    """Get cart settings (cached; call get_settings.cache_clear() after changing env)."""
    return CartSettings(
        session_namespace=_get_env("CART_SESSION_NAMESPACE", default="cart"),
        event_namespace=_get_env("CART_EVENT_NAMESPACE", default="cart"),
        default_instance=_get_env("CART_DEFAULT_INSTANCE", default="main"),
        ttl_seconds=_get_int("CART_TTL_SECONDS", default=86400),
        event_stream=_get_env("CART_EVENT_STREAM", default="stream:cart:events"),
    )
