"""Repository layer for persisting orders.

Keeps the domain layer decoupled from SQLAlchemy: orders go in and come out as
``Order`` dataclasses. A unique-constraint violation on the order number is
reported as ``DuplicateOrderNumber`` so the service can pick another number.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.errors import DependencyFailure

from .domain import Customer, DuplicateOrderNumber, Order, OrderItem, OrderStatus, TaskOutcome, TaskStatus
from .models import OrderItemModel, OrderModel, OrderTaskModel


def customer_to_json(c: Customer) -> dict:
    return {
        "fullName": c.full_name,
        "email": c.email,
        "phone": c.phone,
        "address": c.address,
        "city": c.city,
        "state": c.state,
        "zipCode": c.zip_code,
    }


def customer_from_json(d: dict) -> Customer:
    return Customer(
        full_name=d.get("fullName", ""),
        email=d.get("email", ""),
        phone=d.get("phone", ""),
        address=d.get("address", ""),
        city=d.get("city", ""),
        state=d.get("state", ""),
        zip_code=d.get("zipCode", ""),
    )


def to_domain(row: OrderModel) -> Order:
    return Order(
        id=row.id,
        order_number=row.order_number,
        customer=customer_from_json(row.customer or {}),
        status=OrderStatus(row.status),
        subtotal=row.subtotal,
        total=row.total,
        items=[
            OrderItem(
                product_id=i.product_id,
                quantity=i.quantity,
                variant=i.variant or "",
                price=i.price,
                subtotal=i.subtotal,
            )
            for i in row.items
        ],
        product_id=row.product_id,
        variant=row.variant,
        quantity=row.quantity,
        created_at=row.created_at,
        side_effects=[
            TaskOutcome(t.name, t.target, TaskStatus(t.status), error=t.error, at=t.attempted_at)
            for t in row.tasks
        ],
    )


class OrderRepository:
    """Repository that persists Order domain objects using SQLAlchemy."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, order: Order) -> Order:
        """Insert the order and its items in one transaction.

        Raises:
            DuplicateOrderNumber: When the order number is already used.
            DependencyFailure: For any other storage error.
        """
        row = OrderModel(
            id=order.id or str(uuid.uuid4()),
            order_number=order.order_number,
            status=order.status.value,
            subtotal=order.subtotal,
            total=order.total,
            customer=customer_to_json(order.customer),
            product_id=order.product_id,
            variant=order.variant,
            quantity=order.quantity,
            items=[
                OrderItemModel(
                    position=pos,
                    product_id=i.product_id,
                    quantity=i.quantity,
                    variant=i.variant,
                    price=i.price,
                    subtotal=i.subtotal,
                )
                for pos, i in enumerate(order.items)
            ],
        )
        try:
            self.session.add(row)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if self._number_taken(order.order_number):
                raise DuplicateOrderNumber(order.order_number) from e
            raise DependencyFailure("Failed to save order", {"error": str(e)[:200]}) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DependencyFailure("Failed to save order", {"error": str(e)[:200]}) from e
        self.session.refresh(row)
        return to_domain(row)

    def _number_taken(self, order_number: str) -> bool:
        return self.session.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        try:
            row = self.session.execute(
                select(OrderModel)
                .where(OrderModel.order_number == order_number)
                .execution_options(populate_existing=True)
            ).scalars().first()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DependencyFailure("Failed to load order", {"error": str(e)[:200]}) from e
        return to_domain(row) if row else None

    def record_tasks(self, order_id: str, outcomes: List[TaskOutcome]) -> None:
        try:
            for o in outcomes:
                self.session.add(
                    OrderTaskModel(
                        order_id=order_id,
                        name=o.name,
                        target=o.target,
                        status=o.status.value,
                        error=o.error,
                        attempted_at=o.at,
                    )
                )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DependencyFailure("Failed to record order tasks", {"error": str(e)[:200]}) from e
