"""Cart: ordered collection of products keyed by identity."""
from collections import OrderedDict
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Iterable, Iterator, Literal, Optional, Union

from shopcart.errors import ProductNotFoundError

from .product import Product


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class Cart:
    """
    Products of one cart instance, one row per identity.

    Adding a product whose identity is already present sums the quantities
    instead of creating a second row. Rows keep insertion order.
    """

    def __init__(
        self,
        products: Optional[Iterable[Product]] = None,
        created_at: str = "",
        updated_at: str = "",
    ):
        self._products: "OrderedDict[str, Product]" = OrderedDict()
        now = _utcnow()
        self.created_at = created_at or now
        self.updated_at = updated_at or now
        for product in products or []:
            self.add(product)

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[Product]:
        return iter(list(self._products.values()))

    def __contains__(self, identity: object) -> bool:
        return identity in self._products

    def __repr__(self) -> str:
        return f"Cart(rows={len(self._products)}, qty={self.count()})"

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def add(self, product: Product) -> "Cart":
        """Insert a product, or merge its quantity into the row with the same identity."""
        existing = self._products.get(product.identity)
        if existing is not None:
            merged = Product(product.to_dict())
            merged.qty = existing.qty + product.qty
            product = merged
        self._products[product.identity] = product
        return self

    def add_product(self, attributes: Mapping) -> "Cart":
        """Build a product from attributes (full validation) and add it."""
        return self.add(Product(attributes))

    def get(self, identity: str, default: Optional[Product] = None) -> Optional[Product]:
        return self._products.get(identity, default)

    def has_product(self, identity: str) -> bool:
        return identity in self._products

    def update_product(self, identity: str, attributes: Mapping) -> "Cart":
        """
        Update a row in place.

        The product applies the attributes all or nothing, so a rejected
        value leaves the row and its key untouched.

        Raises:
            ProductNotFoundError: If the identity is not in the cart
            InvalidProductError: (or a subclass) if a value is rejected
        """
        product = self._get_or_fail(identity)
        product.update(attributes)
        if product.identity != identity:
            self._rekey(identity, product)
        return self

    def delete_product(self, identity: str) -> "Cart":
        """
        Remove a row.

        Raises:
            ProductNotFoundError: If the identity is not in the cart
        """
        self._get_or_fail(identity)
        del self._products[identity]
        return self

    def delete(self, product: Product) -> "Cart":
        return self.delete_product(product.identity)

    def clear(self) -> "Cart":
        self._products.clear()
        return self

    def first(self, default: Optional[Product] = None) -> Optional[Product]:
        return next(iter(self._products.values()), default)

    def all(self) -> list[Product]:
        """Rows in insertion order."""
        return list(self._products.values())

    def identities(self) -> list[str]:
        return list(self._products.keys())

    def is_empty(self) -> bool:
        return not self._products

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def count(self, aggregate_qty: bool = True) -> int:
        """Sum of quantities, or the number of rows when aggregate_qty is False."""
        if not aggregate_qty:
            return len(self._products)
        return sum(product.qty for product in self._products.values())

    def total(self) -> float:
        """Total before VAT."""
        return sum((product.total for product in self._products.values()), 0.0)

    def vat_amount(self) -> float:
        return sum((product.vat_amount for product in self._products.values()), 0.0)

    def total_with_vat(self) -> float:
        return sum((product.total_with_vat for product in self._products.values()), 0.0)

    def search(self, criteria: Mapping) -> Union[list[str], Literal[False]]:
        """Identities of rows matching every criterion, or False when none (or no criteria)."""
        if not criteria:
            return False
        rows = [identity for identity, product in self._products.items() if product.matches(criteria)]
        return rows or False

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def to_dict(self) -> dict:
        """Convert to dictionary for session storage."""
        return {
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "products": [product.to_dict() for product in self._products.values()],
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "Cart":
        """Create from dictionary."""
        products = [Product.from_dict(item) for item in data.get("products", [])]
        return cls(
            products=products,
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_or_fail(self, identity: str) -> Product:
        product = self._products.get(identity)
        if product is None:
            raise ProductNotFoundError(identity)
        return product

    def _rekey(self, old_identity: str, product: Product) -> None:
        # Identity changed after an id/options update
        target = self._products.get(product.identity)
        if target is not None:
            target.qty = target.qty + product.qty
            del self._products[old_identity]
            return
        self._products = OrderedDict(
            (product.identity if key == old_identity else key, row)
            for key, row in self._products.items()
        )
