"""Pydantic schemas for orders.

Request schemas validate the two checkout payloads (direct single product and
cart checkout); response schemas render an order with its product details.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from storefront.apps.catalog.schemas import ProductOut
from storefront.schemas import CamelModel

from .domain import Customer, PaymentInfo, ResolvedOrder


class CustomerIn(CamelModel):
    """Shipping and contact details embedded in the order."""

    full_name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=254)
    phone: str = Field(min_length=1, max_length=50)
    address: str = Field(min_length=1, max_length=300)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    zip_code: str = Field(min_length=1, max_length=20)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Require a single ``@`` with text on both sides."""
        v2 = v.strip()
        local, sep, domain = v2.partition("@")
        if not sep or not local or not domain or "@" in domain:
            raise ValueError("Invalid email address")
        return v2

    def to_domain(self) -> Customer:
        return Customer(**self.model_dump())


class PaymentInfoIn(CamelModel):
    """Simulated payment data. Only ``cvv`` drives the outcome."""

    cvv: Optional[str] = None
    card_number: Optional[str] = None
    expiry_date: Optional[str] = None
    card_name: Optional[str] = None

    @field_validator("cvv", mode="before")
    @classmethod
    def coerce_cvv(cls, v):
        return None if v is None else str(v)

    def to_domain(self) -> PaymentInfo:
        return PaymentInfo(cvv=self.cvv)


class CreateOrderIn(CamelModel):
    """Body of ``POST /orders`` (direct single-product checkout).

    ``subtotal`` and ``total`` are computed by the client and stored as sent.
    """

    product_id: str = Field(min_length=1)
    variant: str = ""
    quantity: int = Field(gt=0)
    subtotal: float = Field(ge=0)
    total: float = Field(ge=0)
    customer: CustomerIn
    payment_info: Optional[PaymentInfoIn] = None


class CheckoutCartIn(CamelModel):
    """Body of ``POST /orders/checkout``."""

    user_id: str = Field(min_length=1, max_length=200)
    customer: CustomerIn
    payment_info: Optional[PaymentInfoIn] = None


class CustomerOut(CamelModel):
    full_name: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str


class OrderItemOut(CamelModel):
    product_id: str
    product: Optional[ProductOut] = None
    quantity: int
    variant: str
    price: float
    subtotal: float


class SideEffectOut(CamelModel):
    name: str
    target: str
    status: str
    error: Optional[str] = None
    at: datetime


class OrderOut(CamelModel):
    id: Optional[str]
    order_number: str
    items: List[OrderItemOut]
    product_id: Optional[str] = None
    product: Optional[ProductOut] = None
    variant: Optional[str] = None
    quantity: Optional[int] = None
    subtotal: float
    total: float
    customer: CustomerOut
    status: str
    created_at: Optional[datetime] = None
    side_effects: List[SideEffectOut] = []

    @classmethod
    def from_resolved(cls, resolved: ResolvedOrder) -> "OrderOut":
        o = resolved.order

        def product_out(product_id):
            p = resolved.product(product_id)
            return ProductOut.from_domain(p) if p else None

        return cls(
            id=o.id,
            order_number=o.order_number,
            items=[
                OrderItemOut(
                    product_id=i.product_id,
                    product=product_out(i.product_id),
                    quantity=i.quantity,
                    variant=i.variant,
                    price=float(i.price),
                    subtotal=float(i.subtotal),
                )
                for i in o.items
            ],
            product_id=o.product_id,
            product=product_out(o.product_id),
            variant=o.variant,
            quantity=o.quantity,
            subtotal=float(o.subtotal),
            total=float(o.total),
            customer=CustomerOut(
                full_name=o.customer.full_name,
                email=o.customer.email,
                phone=o.customer.phone,
                address=o.customer.address,
                city=o.customer.city,
                state=o.customer.state,
                zip_code=o.customer.zip_code,
            ),
            status=o.status.value,
            created_at=o.created_at,
            side_effects=[
                SideEffectOut(name=t.name, target=t.target, status=t.status.value, error=t.error, at=t.at)
                for t in o.side_effects
            ],
        )


class OrderCreatedOut(CamelModel):
    message: str = "Order created successfully"
    order: OrderOut
