"""Scalar checks shared by the product setters."""
import math
from decimal import Decimal
from typing import Any


def is_blank(value: Any) -> bool:
    """True for None and for strings that are empty after trimming."""
    if value is None:
        return True
    return isinstance(value, str) and value.strip() == ""


def is_valid_string(value: Any) -> bool:
    """
    Check a required identifier-like value (product id, product name).

    Rejects None, blank strings, False and zero ("0", 0, 0.0).
    """
    if is_blank(value) or value is False:
        return False
    if isinstance(value, str):
        return value.strip() != "0"
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    return bool(value)


def is_numeric(value: Any) -> bool:
    """
    Check a value is a finite number or a numeric string.

    Booleans are not numbers here.
    """
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, Decimal)):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        try:
            return math.isfinite(float(value.strip()))
        except ValueError:
            return False
    return False


def to_int(value: Any) -> int:
    """Coerce a numeric value (already checked with is_numeric) to int, truncating."""
    if isinstance(value, str):
        return int(float(value.strip()))
    return int(value)


def to_float(value: Any) -> float:
    """Coerce a numeric value (already checked with is_numeric) to float."""
    if isinstance(value, str):
        return float(value.strip())
    return float(value)
