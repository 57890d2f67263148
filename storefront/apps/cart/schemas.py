"""Pydantic schemas for cart requests and responses."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from storefront.apps.catalog.schemas import ProductOut
from storefront.schemas import CamelModel

from .domain import Cart, ResolvedCart


class AddToCartIn(CamelModel):
    """Body of ``POST /cart/add``.

    Attributes:
        user_id: Caller-supplied cart owner; trusted as-is.
        quantity: Units to add, at least 1.
        variant: Free-form variant label, empty when the product has none.
    """

    user_id: str = Field(min_length=1, max_length=200)
    product_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    variant: str = ""


class UpdateCartItemIn(CamelModel):
    """Body of ``PUT /cart/update``. A quantity of 0 removes the item."""

    user_id: str = Field(min_length=1, max_length=200)
    item_id: str = Field(min_length=1)
    quantity: int


class CartItemOut(CamelModel):
    id: str
    product_id: str
    product: Optional[ProductOut] = None
    quantity: int
    variant: str
    price: float
    subtotal: float


class CartOut(CamelModel):
    id: Optional[str]
    user_id: str
    items: List[CartItemOut]
    total: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, cart: Cart, products: dict | None = None) -> "CartOut":
        products = products or {}
        return cls(
            id=cart.id,
            user_id=cart.user_id,
            items=[
                CartItemOut(
                    id=i.id,
                    product_id=i.product_id,
                    product=ProductOut.from_domain(products[i.product_id]) if i.product_id in products else None,
                    quantity=i.quantity,
                    variant=i.variant,
                    price=float(i.price),
                    subtotal=float(i.subtotal),
                )
                for i in cart.items
            ],
            total=float(cart.total),
            created_at=cart.created_at,
            updated_at=cart.updated_at,
        )

    @classmethod
    def from_resolved(cls, resolved: ResolvedCart) -> "CartOut":
        return cls.from_domain(resolved.cart, resolved.products)
