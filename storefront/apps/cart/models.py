from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import mapped_column, relationship

from storefront.db import Base


def _now():
    return datetime.now(timezone.utc)


class CartModel(Base):
    """One cart per user; ``total`` caches the rounded sum of item subtotals."""

    __tablename__ = "carts"

    id = mapped_column(String(36), primary_key=True)
    user_id = mapped_column(String(200), nullable=False, unique=True, index=True)
    total = mapped_column(Numeric(12, 2), nullable=False, default=0)
    created_at = mapped_column(DateTime(timezone=True), default=_now)
    updated_at = mapped_column(DateTime(timezone=True), default=_now)

    items = relationship(
        "CartItemModel",
        order_by="CartItemModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = mapped_column(String(36), primary_key=True)
    cart_id = mapped_column(ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    position = mapped_column(Integer, nullable=False, default=0)
    product_id = mapped_column(String(36), nullable=False)
    quantity = mapped_column(Integer, nullable=False)
    variant = mapped_column(String(200), nullable=False, default="")
    price = mapped_column(Numeric(12, 2), nullable=False)
    subtotal = mapped_column(Numeric(12, 2), nullable=False)
