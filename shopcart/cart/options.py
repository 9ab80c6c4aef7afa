"""Product options: ordered scalar metadata attached to a cart line."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterator, Optional


class ProductOptions:
    """
    String-keyed options of a single product (size, color, ...).

    Iteration follows insertion order; equality and canonical() ignore it.
    """

    def __init__(self, items: Optional[Mapping] = None):
        self._items: dict[str, Any] = dict(items or {})

    def __getattr__(self, key: str) -> Any:
        if key.startswith("_"):
            raise AttributeError(key)
        return self._items.get(key)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ProductOptions):
            return self._items == other._items
        if isinstance(other, Mapping):
            return self._items == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ProductOptions({self._items!r})"

    def get(self, key: str, default: Any = None) -> Any:
        return self._items.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._items

    def put(self, key: str, value: Any) -> None:
        self._items[key] = value

    def merge(self, other: Mapping | "ProductOptions") -> "ProductOptions":
        """Return a new map with all keys; values from `other` win."""
        merged = dict(self._items)
        merged.update(_as_dict(other))
        return ProductOptions(merged)

    def update(self, other: Mapping | "ProductOptions") -> "ProductOptions":
        """In-place variant of merge()."""
        self._items.update(_as_dict(other))
        return self

    def delete(self, *keys: str) -> None:
        """Delete the given keys, or every key when called without arguments."""
        if not keys:
            self.clear()
            return
        for key in keys:
            self._items.pop(key, None)

    def clear(self) -> "ProductOptions":
        self._items.clear()
        return self

    def items(self):
        return self._items.items()

    def to_dict(self) -> dict[str, Any]:
        """Options in insertion order."""
        return dict(self._items)

    def canonical(self) -> dict[str, Any]:
        """Options sorted by key, the form used for identity hashing."""
        return {key: self._items[key] for key in sorted(self._items, key=str)}


def _as_dict(value: Mapping | ProductOptions) -> dict[str, Any]:
    if isinstance(value, ProductOptions):
        return value.to_dict()
    return dict(value)
