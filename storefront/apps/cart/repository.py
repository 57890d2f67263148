"""SQLAlchemy repository for carts.

A cart is saved as a whole: the row's total is overwritten and its item rows
are reconciled with the domain list (updated in place, inserted, or deleted as
orphans). Concurrent saves of the same cart are last-write-wins.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.errors import DependencyFailure

from .domain import Cart, CartItem
from .models import CartItemModel, CartModel


def to_domain(row: CartModel) -> Cart:
    return Cart(
        id=row.id,
        user_id=row.user_id,
        items=[
            CartItem(
                id=i.id,
                product_id=i.product_id,
                quantity=i.quantity,
                variant=i.variant or "",
                price=i.price,
                subtotal=i.subtotal,
            )
            for i in row.items
        ],
        total=row.total,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class CartRepository:
    def __init__(self, session: Session):
        self.session = session

    def _load(self, user_id: str) -> Optional[CartModel]:
        return self.session.execute(
            select(CartModel).where(CartModel.user_id == user_id).execution_options(populate_existing=True)
        ).scalars().first()

    def find_by_user(self, user_id: str) -> Optional[Cart]:
        try:
            row = self._load(user_id)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DependencyFailure("Failed to load cart", {"error": str(e)[:200]}) from e
        return to_domain(row) if row else None

    def save(self, cart: Cart) -> Cart:
        try:
            row = self._load(cart.user_id)
            if row is None:
                row = CartModel(id=cart.id or str(uuid.uuid4()), user_id=cart.user_id)
                self.session.add(row)
            row.total = cart.total
            row.updated_at = cart.updated_at or datetime.now(timezone.utc)

            existing = {i.id: i for i in row.items}
            rows = []
            for pos, item in enumerate(cart.items):
                r = existing.get(item.id) or CartItemModel(id=item.id)
                r.position = pos
                r.product_id = item.product_id
                r.quantity = item.quantity
                r.variant = item.variant
                r.price = item.price
                r.subtotal = item.subtotal
                rows.append(r)
            row.items = rows
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DependencyFailure("Failed to save cart", {"error": str(e)[:200]}) from e
        self.session.refresh(row)
        return to_domain(row)
