"""
Tests for CartManager
"""

import logging

import pytest
from unittest.mock import Mock

from shopcart.cart import Cart, CartManager, InMemorySessionStore, RedisSessionStore, create_cart_manager, make_identity
from shopcart.errors import (
    InvalidCartInstanceError,
    InvalidPriceError,
    InvalidProductError,
    InvalidQuantityError,
    ProductNotFoundError,
)
from shopcart.models import CartSummary


def _event_names(events):
    return [name for name, _ in events.fired]


class TestInstance:
    """Tests for instance switching."""

    def test_default_instance(self, manager):
        """Test the manager starts on "main"."""
        assert manager.instance == "main"
        assert manager.session_key == "cart.main"

    def test_set_instance(self, manager, session):
        """Test switching instance only changes the key."""
        session.put = Mock(wraps=session.put)

        result = manager.set_instance("wishlist")

        assert result is manager
        assert manager.instance == "wishlist"
        assert manager.session_key == "cart.wishlist"
        session.put.assert_not_called()

    @pytest.mark.parametrize("name", ["", None, "   "])
    def test_set_empty_instance(self, manager, name):
        """Test empty instance names are rejected."""
        with pytest.raises(InvalidCartInstanceError):
            manager.set_instance(name)

        assert manager.instance == "main"

    def test_instance_in_constructor(self, session, events, settings):
        """Test passing the instance at construction."""
        manager = CartManager(session, events, instance="wishlist", settings=settings)

        assert manager.instance == "wishlist"

    def test_multi_instance_isolation(self, manager):
        """Test rows added to one instance are not visible in another."""
        manager.add("sku-1", "Shirt", 1, 10.0)
        identity = make_identity("sku-1", {})

        manager.set_instance("wishlist")
        assert manager.content().is_empty()
        assert manager.get(identity) is None

        manager.add("sku-2", "Mug", 1, 5.0)
        manager.set_instance("main")
        assert manager.count() == 1
        assert manager.get(make_identity("sku-2", {})) is None


class TestAdd:
    """Tests for add()."""

    def test_add_positional(self, manager, events):
        """Test adding with positional fields."""
        result = manager.add("sku-1", "Shirt", 2, 19.99, {"size": "M"})

        identity = make_identity("sku-1", {"size": "M"})
        product = manager.get(identity)
        assert result is manager
        assert product.name == "Shirt"
        assert product.qty == 2
        assert product.size == "M"

        payload = {"id": "sku-1", "name": "Shirt", "qty": 2, "price": 19.99, "options": {"size": "M"}}
        assert events.fired == [("cart.add", payload), ("cart.added", payload)]

    def test_add_positional_with_vat(self, manager):
        """Test the vat keyword."""
        manager.add("sku-1", "Shirt", 1, 100.0, vat=20)

        assert manager.total_with_vat() == pytest.approx(120.0)

    def test_add_mapping_defaults_options(self, manager, events, another_product):
        """Test a single attribute map; options defaulted to {}."""
        manager.add(another_product)

        assert manager.count() == 1
        name, payload = events.fired[0]
        assert name == "cart.add"
        assert payload["options"] == {}
        assert manager.content().first().id == 4021

    def test_add_twice_merges(self, manager):
        """Test merge-on-add through the manager."""
        manager.add("sku-1", "Shirt", 1, 10.0, {"size": "L", "color": "red"})
        manager.add("sku-1", "Shirt", 2, 10.0, {"color": "red", "size": "L"})

        assert manager.count(aggregate_qty=False) == 1
        assert manager.count() == 3

    def test_add_batch(self, manager, events, sample_product, another_product):
        """Test a batch of attribute maps."""
        batch = [sample_product, another_product, dict(another_product, qty=4)]

        manager.add(batch)

        assert manager.count(False) == 2
        assert manager.count() == 2 + 1 + 4
        assert _event_names(events) == ["cart.batch", "cart.batched"]
        assert events.fired[0][1] == batch

    def test_batch_is_not_atomic(self, manager, events, sample_product, another_product):
        """Test a failing item keeps the earlier items persisted."""
        batch = [sample_product, dict(another_product, price=0), {"id": "x", "name": "X", "qty": 1, "price": 1}]

        with pytest.raises(InvalidPriceError):
            manager.add(batch)

        assert manager.count(False) == 1
        assert _event_names(events) == ["cart.batch"]

    def test_batch_rejects_non_mapping_items(self, manager):
        """Test batch items must be mappings."""
        with pytest.raises(InvalidProductError):
            manager.add([("sku-1", "Shirt", 1, 10.0)])

    def test_add_invalid_propagates_after_pre_event(self, manager, session, events):
        """Test validation failure: pre-event fired, nothing persisted."""
        with pytest.raises(InvalidQuantityError):
            manager.add("sku-1", "Shirt", 0, 10.0)

        assert _event_names(events) == ["cart.add"]
        assert not session.has("cart.main")

    def test_rejected_add_is_logged(self, manager, caplog):
        """Test rejected products are logged as warnings."""
        with caplog.at_level(logging.WARNING, logger="shopcart.cart.service"):
            with pytest.raises(InvalidPriceError):
                manager.add("sku-1", "Shirt", 1, "free")

        assert "Rejected product sku-1 for cart main" in caplog.text

    def test_add_missing_fields(self, manager):
        """Test all missing required fields are reported."""
        with pytest.raises(InvalidProductError) as exc_info:
            manager.add({})

        assert str(exc_info.value) == "These attributes are missing or empty: id, name, qty, price."

    def test_round_trip_through_store(self, session, events, settings):
        """Test a fresh manager on the same session sees the added rows."""
        CartManager(session, events, settings=settings).add("sku-1", "Shirt", 2, 10.0)

        fresh = CartManager(session, settings=settings)
        cart = fresh.content()

        assert isinstance(cart, Cart)
        assert cart.identities() == [make_identity("sku-1", {})]
        assert cart.first().qty == 2


class TestUpdate:
    """Tests for update()."""

    @pytest.fixture
    def identity(self, manager):
        manager.add("sku-1", "Shirt", 1, 10.0, {"size": "S", "color": "red"})
        return make_identity("sku-1", {"size": "S", "color": "red"})

    def test_update_quantity(self, manager, events, identity):
        """Test a number replaces the quantity."""
        events.fired.clear()

        result = manager.update(identity, 5)

        assert result is manager
        assert manager.get(identity).qty == 5
        assert events.fired == [("cart.update", identity), ("cart.updated", identity)]

    @pytest.mark.parametrize("qty", [0, -1, "0"])
    def test_update_non_positive_removes(self, manager, events, identity, qty):
        """Test zero or negative quantity removes the row."""
        events.fired.clear()

        manager.update(identity, qty)

        assert manager.content().is_empty()
        assert _event_names(events) == ["cart.update", "cart.delete", "cart.deleted", "cart.updated"]

    def test_update_invalid_quantity(self, manager, identity):
        """Test a non-numeric quantity."""
        with pytest.raises(InvalidQuantityError):
            manager.update(identity, "lots")

        assert manager.get(identity).qty == 1

    def test_update_attributes(self, manager, identity):
        """Test an attribute map update."""
        manager.update(identity, {"name": "Linen shirt", "price": 25})

        product = manager.get(identity)
        assert product.name == "Linen shirt"
        assert product.price == 25.0

    def test_update_options_merges(self, manager, identity):
        """Test options override without dropping other keys."""
        manager.update(identity, {"options": {"size": "L"}})

        new_identity = make_identity("sku-1", {"size": "L", "color": "red"})
        product = manager.get(new_identity)
        assert manager.get(identity) is None
        assert product.options == {"size": "L", "color": "red"}
        assert manager.count(False) == 1

    def test_update_unknown_identity(self, manager, events, identity):
        """Test a stale identity fails and leaves the cart untouched."""
        events.fired.clear()
        before = manager.content().to_dict()

        with pytest.raises(ProductNotFoundError):
            manager.update("nonexistent", 3)

        assert manager.content().to_dict() == before
        assert events.fired == []

    def test_rejected_update_with_shared_session(self, events, settings):
        """Test a rejected update leaves the stored cart as it was when the store keeps references."""
        class ReferenceStore:
            def __init__(self):
                self.data = {}

            def has(self, key):
                return key in self.data

            def get(self, key):
                return self.data[key]

            def put(self, key, cart):
                self.data[key] = cart

        manager = CartManager(ReferenceStore(), events, settings=settings)
        manager.add("sku-1", "Shirt", 2, 10.0)
        identity = make_identity("sku-1", {})

        with pytest.raises(InvalidPriceError):
            manager.update(identity, {"qty": 7, "price": 0})

        product = manager.get(identity)
        assert product.qty == 2
        assert product.price == 10.0

    def test_rejected_update_is_logged(self, manager, identity, caplog):
        """Test rejected updates are logged as warnings."""
        with caplog.at_level(logging.WARNING, logger="shopcart.cart.service"):
            with pytest.raises(InvalidQuantityError):
                manager.update(identity, "lots")

        assert "Rejected update" in caplog.text


class TestRemove:
    """Tests for remove()."""

    def test_remove(self, manager, events):
        """Test removing a row."""
        manager.add("sku-1", "Shirt", 1, 10.0)
        manager.add("sku-2", "Mug", 1, 5.0)
        identity = make_identity("sku-1", {})
        events.fired.clear()

        result = manager.remove(identity)

        assert result is manager
        assert manager.get(identity) is None
        assert manager.count(False) == 1
        assert events.fired == [("cart.delete", identity), ("cart.deleted", identity)]

    def test_remove_unknown_identity(self, manager):
        """Test a stale identity fails and leaves the cart untouched."""
        manager.add("sku-1", "Shirt", 1, 10.0)

        with pytest.raises(ProductNotFoundError):
            manager.remove("nonexistent")

        assert manager.count() == 1

    def test_remove_on_empty_cart(self, manager):
        """Test removing from a cart never persisted."""
        with pytest.raises(ProductNotFoundError):
            manager.remove("nonexistent")


class TestReads:
    """Tests for content, totals, search, destroy and summary."""

    def test_content_never_none(self, manager):
        """Test an empty cart is returned when nothing was persisted."""
        cart = manager.content()

        assert isinstance(cart, Cart)
        assert cart.is_empty()
        assert manager.total() == 0
        assert manager.count() == 0

    def test_totals(self, manager):
        """Test totals for two rows."""
        manager.add("sku-1", "Book", 1, 9.99)
        manager.add("sku-2", "Pen", 1, 19.99)

        assert manager.total() == pytest.approx(29.98)
        assert manager.count(True) == 2
        assert manager.count(False) == 2

    def test_search(self, manager):
        """Test search returns identities or False."""
        manager.add("sku-1", "Shirt", 1, 10.0, {"color": "red"})
        manager.add("sku-2", "Shirt", 1, 12.0, {"color": "blue"})

        assert manager.search({"color": "red"}) == [make_identity("sku-1", {"color": "red"})]
        assert manager.search({"name": "Shirt"}) == manager.content().identities()
        assert manager.search({"color": "green"}) is False
        assert manager.search({}) is False

    def test_destroy(self, manager, session, events):
        """Test destroy replaces the cart with an empty one."""
        manager.add("sku-1", "Shirt", 1, 10.0)
        events.fired.clear()

        result = manager.destroy()

        assert result is manager
        assert session.has("cart.main")
        assert manager.content().is_empty()
        assert events.fired == [("cart.destroy", None), ("cart.destroyed", None)]

    def test_destroy_is_logged(self, manager, caplog):
        """Test destroy logs the instance."""
        with caplog.at_level(logging.INFO, logger="shopcart.cart.service"):
            manager.set_instance("wishlist").destroy()

        assert "Cart wishlist destroyed" in caplog.text

    def test_summary(self, manager):
        """Test the pydantic summary."""
        manager.add("sku-1", "Shirt", 2, 10.0, {"size": "M"}, vat=10)

        summary = manager.summary()

        assert isinstance(summary, CartSummary)
        assert summary.instance == "main"
        assert summary.is_empty is False
        assert summary.rows == 1
        assert summary.total_qty == 2
        assert summary.total == pytest.approx(20.0)
        assert summary.total_with_vat == pytest.approx(22.0)
        assert summary.lines[0].options == {"size": "M"}


class TestSessionDiscipline:
    """Tests for the one-read/one-write cycle."""

    def test_one_get_one_put_per_mutation(self, manager, session):
        """Test update reads once and writes once."""
        manager.add("sku-1", "Shirt", 1, 10.0)
        identity = make_identity("sku-1", {})
        session.get = Mock(wraps=session.get)
        session.put = Mock(wraps=session.put)

        manager.update(identity, 0)

        assert session.get.call_count == 1
        assert session.put.call_count == 1

    def test_custom_namespaces(self, session, events):
        """Test session and event namespaces come from settings."""
        from shopcart.config import CartSettings

        settings = CartSettings(session_namespace="shop", event_namespace="basket")
        manager = CartManager(session, events, settings=settings)

        manager.add("sku-1", "Shirt", 1, 10.0)

        assert session.has("shop.main")
        assert _event_names(events) == ["basket.add", "basket.added"]

    def test_create_cart_manager_defaults_to_redis(self):
        """Test the factory wires a Redis session store."""
        manager = create_cart_manager(instance="wishlist")

        assert isinstance(manager.session, RedisSessionStore)
        assert manager.instance == "wishlist"

    def test_create_cart_manager_with_session(self):
        """Test the factory accepts an explicit store."""
        session = InMemorySessionStore()

        manager = create_cart_manager(session=session)

        assert manager.session is session
