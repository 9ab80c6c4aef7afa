"""Cart line item with validation and content-derived identity."""
import hashlib
import json
from collections.abc import Mapping
from typing import Any, Optional, Union

from shopcart.errors import (
    ERROR_PRICE_NOT_NUMERIC,
    ERROR_PRICE_NOT_POSITIVE,
    ERROR_PRODUCT_EMPTY,
    ERROR_PRODUCT_ID_EMPTY,
    ERROR_PRODUCT_MISSING,
    ERROR_PRODUCT_NAME_EMPTY,
    ERROR_PRODUCT_OPTIONS_INVALID,
    ERROR_PRODUCT_READ_ONLY,
    ERROR_QTY_NOT_NUMERIC,
    ERROR_QTY_NOT_POSITIVE,
    ERROR_VAT_NEGATIVE,
    ERROR_VAT_NOT_NUMERIC,
    InvalidPriceError,
    InvalidProductError,
    InvalidProductIdError,
    InvalidQuantityError,
    InvalidVatError,
    ReadOnlyAttributeError,
)
from shopcart.utils.validators import is_blank, is_numeric, is_valid_string, to_float, to_int

from .options import ProductOptions

ProductId = Union[str, int]

REQUIRED_FIELDS = ("id", "name", "qty", "price")
OPTIONAL_FIELDS = ("vat", "options")
READ_ONLY_FIELDS = ("identity", "total", "vat_amount", "total_with_vat")


def make_identity(product_id: ProductId, options: Optional[Mapping] = None) -> str:
    """
    Hash a product id together with its options.

    Options are sorted by key first, so key insertion order never changes the result.
    """
    if isinstance(options, ProductOptions):
        canonical = options.canonical()
    else:
        canonical = ProductOptions(options).canonical()
    serialized = json.dumps(canonical, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.md5(f"{product_id}{serialized}".encode()).hexdigest()


class Product:
    """
    Single cart row.

    Known fields are typed properties that validate on assignment. Any other
    attribute name reads from / writes to the options map, so ad-hoc metadata
    (``product.isbn10``) needs no code change.
    """

    def __init__(self, attributes: Optional[Mapping] = None):
        if not attributes:
            raise InvalidProductError(ERROR_PRODUCT_EMPTY)

        attributes = dict(attributes)
        self._check_required(attributes)
        self._check_read_only(attributes)
        attributes.setdefault("vat", 0)
        if attributes.get("options") is None:
            attributes["options"] = {}

        self._options = ProductOptions()
        self._identity = ""
        self.id = attributes["id"]
        self.name = attributes["name"]
        self.qty = attributes["qty"]
        self.price = attributes["price"]
        self.vat = attributes["vat"]
        self._load_options(attributes)

    @classmethod
    def create(
        cls,
        id: ProductId,
        name: str,
        qty: Any,
        price: Any,
        vat: Any = 0,
        options: Optional[Mapping] = None,
    ) -> "Product":
        """Build a product from positional fields."""
        return cls({
            "id": id,
            "name": name,
            "qty": qty,
            "price": price,
            "vat": vat,
            "options": options or {},
        })

    # ------------------------------------------------------------------
    # Fallback to options for unknown attribute names
    # ------------------------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        # Only reached when no real attribute/property matched
        if name.startswith("_"):
            raise AttributeError(name)
        return self._options.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or name in REQUIRED_FIELDS or name in OPTIONAL_FIELDS:
            object.__setattr__(self, name, value)
            return
        if name in READ_ONLY_FIELDS:
            raise ReadOnlyAttributeError(ERROR_PRODUCT_READ_ONLY.format(field=name))
        self._options.put(name, value)
        self._refresh_identity()

    def __repr__(self) -> str:
        return f"Product(id={self._id!r}, name={self._name!r}, qty={self._qty}, identity={self._identity!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Product):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def id(self) -> ProductId:
        return self._id

    @id.setter
    def id(self, value: ProductId) -> None:
        if not is_valid_string(value):
            raise InvalidProductIdError(ERROR_PRODUCT_ID_EMPTY)
        self._id = value
        self._refresh_identity()

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if is_blank(value) or value is False:
            raise InvalidProductError(ERROR_PRODUCT_NAME_EMPTY)
        self._name = value if isinstance(value, str) else str(value)

    @property
    def qty(self) -> int:
        return self._qty

    @qty.setter
    def qty(self, value: Any) -> None:
        if not is_numeric(value):
            raise InvalidQuantityError(ERROR_QTY_NOT_NUMERIC)
        qty = to_int(value)
        if qty <= 0:
            raise InvalidQuantityError(ERROR_QTY_NOT_POSITIVE)
        self._qty = qty

    @property
    def price(self) -> float:
        return self._price

    @price.setter
    def price(self, value: Any) -> None:
        if not is_numeric(value):
            raise InvalidPriceError(ERROR_PRICE_NOT_NUMERIC)
        price = to_float(value)
        if price <= 0:
            raise InvalidPriceError(ERROR_PRICE_NOT_POSITIVE)
        self._price = price

    @property
    def vat(self) -> float:
        return self._vat

    @vat.setter
    def vat(self, value: Any) -> None:
        if not is_numeric(value):
            raise InvalidVatError(ERROR_VAT_NOT_NUMERIC)
        vat = to_float(value)
        if vat < 0:
            raise InvalidVatError(ERROR_VAT_NEGATIVE)
        self._vat = vat

    @property
    def options(self) -> ProductOptions:
        return self._options

    @options.setter
    def options(self, value: Mapping | ProductOptions) -> None:
        """Replace the options wholesale."""
        if not isinstance(value, (Mapping, ProductOptions)):
            raise InvalidProductError(ERROR_PRODUCT_OPTIONS_INVALID)
        self._options = ProductOptions(value.to_dict() if isinstance(value, ProductOptions) else value)
        self._refresh_identity()

    # ------------------------------------------------------------------
    # Derived amounts
    # ------------------------------------------------------------------

    @property
    def total(self) -> float:
        """Price of all units before VAT."""
        return float(self._qty * self._price)

    @property
    def vat_amount(self) -> float:
        return float(self.total * (self._vat / 100))

    @property
    def total_with_vat(self) -> float:
        return float(self.total + self.vat_amount)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update(self, attributes: Mapping) -> "Product":
        """
        Apply attributes, all or nothing.

        ``options`` is merged into the current options; known fields are
        re-validated through their setters; unknown keys become options.
        Changes are staged on a copy, so a rejected value leaves the product
        exactly as it was.

        Raises:
            InvalidProductError: (or a subclass) if any value is rejected
        """
        staged = Product(self.to_dict())
        for key, value in attributes.items():
            if key == "options":
                if value is None:
                    continue
                if not isinstance(value, (Mapping, ProductOptions)):
                    raise InvalidProductError(ERROR_PRODUCT_OPTIONS_INVALID)
                staged.options = staged.options.merge(value)
            else:
                setattr(staged, key, value)
        self.__dict__.update(staged.__dict__)
        return self

    def matches(self, criteria: Mapping) -> bool:
        """True when every criterion is present on the product and strictly equal."""
        for key, expected in criteria.items():
            if key in REQUIRED_FIELDS or key in OPTIONAL_FIELDS or key in READ_ONLY_FIELDS:
                actual = getattr(self, key)
            elif key in self._options:
                actual = self._options.get(key)
            else:
                return False
            if actual != expected:
                return False
        return True

    def to_dict(self) -> dict:
        """Convert to dictionary for session storage."""
        return {
            "id": self._id,
            "name": self._name,
            "qty": self._qty,
            "price": self._price,
            "vat": self._vat,
            "options": self._options.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "Product":
        """Create from dictionary."""
        return cls(data)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_required(attributes: Mapping) -> None:
        missing = [
            field for field in REQUIRED_FIELDS
            if field not in attributes or is_blank(attributes[field])
        ]
        if missing:
            raise InvalidProductError(ERROR_PRODUCT_MISSING.format(fields=", ".join(missing)))

    @staticmethod
    def _check_read_only(attributes: Mapping) -> None:
        for field in READ_ONLY_FIELDS:
            if field in attributes:
                raise ReadOnlyAttributeError(ERROR_PRODUCT_READ_ONLY.format(field=field))

    def _load_options(self, attributes: Mapping) -> None:
        options = attributes["options"]
        if not isinstance(options, (Mapping, ProductOptions)):
            raise InvalidProductError(ERROR_PRODUCT_OPTIONS_INVALID)
        extra = {
            key: value for key, value in attributes.items()
            if key not in REQUIRED_FIELDS and key not in OPTIONAL_FIELDS
        }
        self.options = ProductOptions(extra).merge(options)

    def _refresh_identity(self) -> None:
        # id is assigned before options during construction
        if "_id" not in self.__dict__:
            return
        self._identity = make_identity(self._id, self._options)
