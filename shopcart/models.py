"""
Pydantic Models - Cart summary schemas

Read-only snapshots of a cart for API responses and logging contexts.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CartLineSummary(BaseModel):
    """One cart row."""
    identity: str
    product_id: str
    name: str
    qty: int
    price: float
    vat: float = 0.0
    options: Dict[str, Any] = Field(default_factory=dict)
    total: float  # qty * price
    vat_amount: float
    total_with_vat: float

    @classmethod
    def from_product(cls, product) -> "CartLineSummary":
        return cls(
            identity=product.identity,
            product_id=str(product.id),
            name=product.name,
            qty=product.qty,
            price=product.price,
            vat=product.vat,
            options=product.options.to_dict(),
            total=product.total,
            vat_amount=product.vat_amount,
            total_with_vat=product.total_with_vat,
        )


class CartSummary(BaseModel):
    """Whole cart instance."""
    instance: str
    is_empty: bool
    rows: int = 0
    total_qty: int = 0
    total: float = 0.0
    vat_amount: float = 0.0
    total_with_vat: float = 0.0
    lines: List[CartLineSummary] = Field(default_factory=list)
    updated_at: Optional[str] = None

    @classmethod
    def from_cart(cls, instance: str, cart) -> "CartSummary":
        return cls(
            instance=instance,
            is_empty=cart.is_empty(),
            rows=cart.count(aggregate_qty=False),
            total_qty=cart.count(),
            total=cart.total(),
            vat_amount=cart.vat_amount(),
            total_with_vat=cart.total_with_vat(),
            lines=[CartLineSummary.from_product(product) for product in cart.all()],
            updated_at=cart.updated_at,
        )
