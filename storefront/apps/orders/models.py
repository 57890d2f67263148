from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import mapped_column, relationship

from storefront.db import Base


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    """Persisted order.

    Cart checkouts have rows in ``order_items``; direct checkouts store the
    single product in the legacy ``product_id``/``variant``/``quantity``
    columns. ``customer`` is an embedded JSON record.
    """

    __tablename__ = "orders"

    id = mapped_column(String(36), primary_key=True)
    order_number = mapped_column(String(20), nullable=False, unique=True, index=True)
    status = mapped_column(String(16), nullable=False, default="approved")
    subtotal = mapped_column(Numeric(12, 2), nullable=False)
    total = mapped_column(Numeric(12, 2), nullable=False)
    customer = mapped_column(JSON, nullable=False)

    product_id = mapped_column(String(36), nullable=True)
    variant = mapped_column(String(200), nullable=True)
    quantity = mapped_column(Integer, nullable=True)

    created_at = mapped_column(DateTime(timezone=True), default=_now)

    items = relationship(
        "OrderItemModel",
        order_by="OrderItemModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tasks = relationship(
        "OrderTaskModel",
        order_by="OrderTaskModel.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = mapped_column(Integer, nullable=False, default=0)
    product_id = mapped_column(String(36), nullable=False)
    quantity = mapped_column(Integer, nullable=False)
    variant = mapped_column(String(200), nullable=False, default="")
    price = mapped_column(Numeric(12, 2), nullable=False)
    subtotal = mapped_column(Numeric(12, 2), nullable=False)


class OrderTaskModel(Base):
    """Outcome of one post-commit side effect of an order."""

    __tablename__ = "order_tasks"

    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    name = mapped_column(String(32), nullable=False)
    target = mapped_column(String(200), nullable=False, default="")
    status = mapped_column(String(16), nullable=False)
    error = mapped_column(Text, nullable=True)
    attempted_at = mapped_column(DateTime(timezone=True), default=_now)


class IdempotencyKey(Base):
    """Stored response for a client-provided ``Idempotency-Key``.

    Attributes:
        request_hash: SHA-256 of the canonical JSON body of the first request.
        response_status: 0 while the first request is still in flight.
        order_id: Order created by the first request, if any.
    """

    __tablename__ = "idempotency_keys"

    key = mapped_column(String(200), primary_key=True)
    request_hash = mapped_column(String(64), nullable=False)
    response_status = mapped_column(Integer, nullable=False, default=0)
    response_body = mapped_column(JSON, nullable=False, default=dict)
    order_id = mapped_column(String(36), nullable=True)
    created_at = mapped_column(DateTime(timezone=True), default=_now)
