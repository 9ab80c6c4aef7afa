"""Cart manager: front controller over the session-backed cart."""
from collections.abc import Mapping
from typing import Any, Literal, Optional, Sequence, Union

from shopcart.config import CartSettings, get_settings
from shopcart.db import RedisKeys
from shopcart.errors import (
    ERROR_BATCH_ITEM_INVALID,
    ERROR_CART_INSTANCE_EMPTY,
    InvalidCartInstanceError,
    InvalidProductError,
    ProductNotFoundError,
)
from shopcart.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from shopcart.models import CartSummary
from shopcart.utils.validators import is_numeric, to_float

from .collection import Cart
from .events import CartEvents, EventDispatcher, EventSink
from .product import Product
from .storage import RedisSessionStore, SessionStore

logger = get_logger(__name__)


class CartManager:
    """
    Manages the cart of one named instance ("main", "wishlist", ...) in a session store.

    Features:
    - Merge-on-add: the same product id + options accumulates quantity
    - Pre/post lifecycle events around every mutation
    - Whole-cart read/write per call (one get, one put)

    Usage:
        manager = CartManager(session, events)
        manager.add("sku-1", "T-shirt", 2, 19.99, {"size": "M"})
        manager.set_instance("wishlist").add({"id": "sku-2", "name": "Mug", "qty": 1, "price": 9.5})
        manager.update(identity, 0)  # removes the row

    Not safe for concurrent writers on the same instance: the last put wins.
    """

    def __init__(
        self,
        session: SessionStore,
        events: Optional[EventSink] = None,
        instance: Optional[str] = None,
        settings: Optional[CartSettings] = None,
    ):
        self.settings = settings or get_settings()
        self.session = session
        self.events = events if events is not None else EventDispatcher()
        self._instance = self.settings.default_instance
        if instance is not None:
            self.set_instance(instance)

    # ------------------------------------------------------------------
    # Instance
    # ------------------------------------------------------------------

    @property
    def instance(self) -> str:
        return self._instance

    @property
    def session_key(self) -> str:
        return RedisKeys.session_key(self._instance, self.settings.session_namespace)

    def set_instance(self, name: str) -> "CartManager":
        """
        Switch to another named cart. Does not touch the session.

        Raises:
            InvalidCartInstanceError: If the name is empty
        """
        if not name or not str(name).strip():
            raise InvalidCartInstanceError(ERROR_CART_INSTANCE_EMPTY)
        self._instance = str(name)
        return self

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(
        self,
        id_or_attributes: Any,
        name: Optional[str] = None,
        qty: Any = None,
        price: Any = None,
        options: Optional[Mapping] = None,
        vat: Any = None,
    ) -> "CartManager":
        """
        Add one product or a batch of products.

        Args:
            id_or_attributes: Product id (with the positional fields), a mapping
                of product attributes, or a list of such mappings
            name: Product name
            qty: Quantity to add
            price: Unit price
            options: Option metadata (size, color, ...)
            vat: VAT percentage

        Returns:
            self

        Raises:
            InvalidProductError: (or a subclass) if validation fails. The
                "add" event has already fired at that point.
        """
        if isinstance(id_or_attributes, (list, tuple)):
            self._add_many(id_or_attributes)
            return self

        if isinstance(id_or_attributes, Mapping):
            attributes = dict(id_or_attributes)
            attributes["options"] = attributes.get("options") or {}
        else:
            attributes = {
                "id": id_or_attributes,
                "name": name,
                "qty": qty,
                "price": price,
                "options": options or {},
            }
            if vat is not None:
                attributes["vat"] = vat

        self._fire(CartEvents.ADD, attributes)
        self._add_row(attributes)
        self._fire(CartEvents.ADDED, attributes)
        return self

    def update(self, identity: str, attribute: Union[Mapping, int, float, str]) -> "CartManager":
        """
        Update a row.

        A number replaces the quantity; zero or less removes the row. A
        mapping is applied like Product.update (options are merged).

        Raises:
            ProductNotFoundError: If the identity is not in the cart
            InvalidProductError: (or a subclass) if a value is rejected; the
                row and the stored cart are left unchanged
        """
        cart = self._get_content()
        self._has_product_or_fail(cart, identity)

        self._fire(CartEvents.UPDATE, identity)

        if is_numeric(attribute) and to_float(attribute) <= 0:
            self._fire(CartEvents.DELETE, identity)
            cart.delete_product(identity)
            self._persist(cart)
            self._fire(CartEvents.DELETED, identity)
        else:
            changes = attribute if isinstance(attribute, Mapping) else {"qty": attribute}
            try:
                cart.update_product(identity, changes)
            except InvalidProductError as e:
                logger.warning("Rejected update of %s: %s", sanitize_id_for_logging(identity), e)
                raise
            self._persist(cart)

        self._fire(CartEvents.UPDATED, identity)
        return self

    def remove(self, identity: str) -> "CartManager":
        """
        Remove a row.

        Raises:
            ProductNotFoundError: If the identity is not in the cart
        """
        cart = self._get_content()
        self._has_product_or_fail(cart, identity)

        self._fire(CartEvents.DELETE, identity)
        cart.delete_product(identity)
        self._persist(cart)
        self._fire(CartEvents.DELETED, identity)
        return self

    def destroy(self) -> "CartManager":
        """Replace the instance's cart with an empty one."""
        self._fire(CartEvents.DESTROY)
        self._persist(Cart())
        logger.info("Cart %s destroyed", sanitize_string_for_logging(self._instance))
        self._fire(CartEvents.DESTROYED)
        return self

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, identity: str) -> Optional[Product]:
        return self._get_content().get(identity)

    def content(self) -> Cart:
        """Current cart of the instance (empty if nothing persisted yet)."""
        return self._get_content()

    def total(self) -> float:
        return self._get_content().total()

    def total_with_vat(self) -> float:
        return self._get_content().total_with_vat()

    def count(self, aggregate_qty: bool = True) -> int:
        return self._get_content().count(aggregate_qty)

    def search(self, criteria: Mapping) -> Union[list[str], Literal[False]]:
        """Identities whose fields/options equal every criterion, or False."""
        return self._get_content().search(criteria)

    def summary(self) -> CartSummary:
        """Snapshot of the current instance."""
        return CartSummary.from_cart(self._instance, self._get_content())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _add_many(self, items: Sequence[Any]) -> None:
        # Not atomic: each item is persisted on its own
        self._fire(CartEvents.BATCH, items)
        for item in items:
            if not isinstance(item, Mapping):
                raise InvalidProductError(ERROR_BATCH_ITEM_INVALID)
            attributes = dict(item)
            attributes["options"] = attributes.get("options") or {}
            self._add_row(attributes)
        self._fire(CartEvents.BATCHED, items)

    def _add_row(self, attributes: Mapping) -> None:
        cart = self._get_content()
        try:
            cart.add_product(attributes)
        except InvalidProductError as e:
            logger.warning(
                "Rejected product %s for cart %s: %s",
                sanitize_string_for_logging(str(attributes.get("id"))),
                sanitize_string_for_logging(self._instance),
                e,
            )
            raise
        self._persist(cart)

    def _has_product_or_fail(self, cart: Cart, identity: str) -> None:
        if not cart.has_product(identity):
            raise ProductNotFoundError(identity)

    def _get_content(self) -> Cart:
        key = self.session_key
        if self.session.has(key):
            return self.session.get(key)
        return Cart()

    def _persist(self, cart: Cart) -> None:
        cart.touch()
        self.session.put(self.session_key, cart)
        logger.debug(
            "Cart %s persisted: %d rows, qty %d",
            sanitize_string_for_logging(self._instance),
            cart.count(aggregate_qty=False),
            cart.count(),
        )

    def _fire(self, verb: str, payload: Any = None) -> None:
        event_name = f"{self.settings.event_namespace}.{verb}"
        if isinstance(payload, str):
            logger.debug("Firing %s for %s", event_name, sanitize_id_for_logging(payload))
        self.events.fire(event_name, payload)


def create_cart_manager(
    session: Optional[SessionStore] = None,
    events: Optional[EventSink] = None,
    instance: Optional[str] = None,
) -> CartManager:
    """Build a manager for one request/session; defaults to the Redis session store."""
    return CartManager(
        session=session if session is not None else RedisSessionStore(),
        events=events,
        instance=instance,
    )
