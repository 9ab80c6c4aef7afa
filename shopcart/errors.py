"""
Cart Errors

Centralized error messages and the exception hierarchy raised by the cart core.
"""

# Product attribute errors
ERROR_PRODUCT_EMPTY = "The product attributes are empty."
ERROR_PRODUCT_MISSING = "These attributes are missing or empty: {fields}."
ERROR_PRODUCT_NAME_EMPTY = "The product name is empty."
ERROR_PRODUCT_OPTIONS_INVALID = "The product options must be a mapping."
ERROR_PRODUCT_ID_EMPTY = "The product id is empty or equal to 0."
ERROR_PRODUCT_READ_ONLY = "The product attribute {field} is derived and cannot be set."
ERROR_BATCH_ITEM_INVALID = "Every batch item must be a mapping of product attributes."

# Quantity / price / VAT errors
ERROR_QTY_NOT_NUMERIC = "The product quantity must be a numeric value."
ERROR_QTY_NOT_POSITIVE = "The product quantity must be an integer greater than 0."
ERROR_PRICE_NOT_NUMERIC = "The product price must be a numeric value."
ERROR_PRICE_NOT_POSITIVE = "The product price must be greater than 0."
ERROR_VAT_NOT_NUMERIC = "The product VAT must be a numeric value."
ERROR_VAT_NEGATIVE = "The product VAT must be greater than or equal to 0."

# Cart errors
ERROR_CART_INSTANCE_EMPTY = "The cart instance name is empty."
ERROR_PRODUCT_NOT_FOUND = "Product not found in cart: {identity}"


class CartError(Exception):
    """Base class for every cart failure."""


class InvalidProductError(CartError, ValueError):
    """Missing/empty required attributes, blank name or malformed options."""


class InvalidProductIdError(InvalidProductError):
    """Product id is None, blank or zero."""


class ReadOnlyAttributeError(InvalidProductError, AttributeError):
    """Attempt to set a derived attribute (identity, totals)."""


class InvalidQuantityError(InvalidProductError):
    """Quantity is not numeric or not greater than 0."""


class InvalidPriceError(InvalidProductError):
    """Price is not numeric or not greater than 0."""


class InvalidVatError(InvalidProductError):
    """VAT is not numeric or negative."""


class InvalidCartInstanceError(CartError, ValueError):
    """Empty cart instance name."""


class ProductNotFoundError(CartError, KeyError):
    """Identity is not present in the current cart."""

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(ERROR_PRODUCT_NOT_FOUND.format(identity=identity))

    def __str__(self) -> str:
        # KeyError would repr() the message
        return self.args[0]
