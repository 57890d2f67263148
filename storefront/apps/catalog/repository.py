"""SQLAlchemy repository for catalog products.

Maps ``ProductModel`` rows to ``Product`` DTOs so the domain layer never sees
ORM objects. Any ``SQLAlchemyError`` is rolled back and re-raised as
``DependencyFailure``.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.errors import DependencyFailure

from .domain import Product, VariantAxis
from .models import ProductModel


def to_domain(row: ProductModel) -> Product:
    return Product(
        id=row.id,
        title=row.title,
        description=row.description or "",
        price=row.price,
        image=row.image or "",
        variants=[VariantAxis(v.get("name", ""), list(v.get("options", []))) for v in (row.variants or [])],
        inventory=row.inventory,
    )


class ProductRepository:
    """Repository for product reads, inserts and inventory updates."""

    def __init__(self, session: Session):
        self.session = session

    def _fail(self, exc: SQLAlchemyError, action: str):
        self.session.rollback()
        raise DependencyFailure(f"Failed to {action}", {"error": str(exc)[:200]}) from exc

    def get(self, product_id: str) -> Optional[Product]:
        try:
            row = self.session.get(ProductModel, product_id, populate_existing=True)
        except SQLAlchemyError as e:
            self._fail(e, "load product")
        return to_domain(row) if row else None

    def list(self) -> List[Product]:
        try:
            rows = self.session.execute(
                select(ProductModel)
                .order_by(ProductModel.created_at)
                .execution_options(populate_existing=True)
            ).scalars().all()
        except SQLAlchemyError as e:
            self._fail(e, "list products")
        return [to_domain(r) for r in rows]

    def first(self) -> Optional[Product]:
        try:
            row = self.session.execute(
                select(ProductModel).order_by(ProductModel.created_at).limit(1)
            ).scalars().first()
        except SQLAlchemyError as e:
            self._fail(e, "load product")
        return to_domain(row) if row else None

    def get_many(self, product_ids: List[str]) -> dict[str, Product]:
        if not product_ids:
            return {}
        try:
            rows = self.session.execute(
                select(ProductModel)
                .where(ProductModel.id.in_(set(product_ids)))
                .execution_options(populate_existing=True)
            ).scalars().all()
        except SQLAlchemyError as e:
            self._fail(e, "load products")
        return {r.id: to_domain(r) for r in rows}

    def add(self, product: Product) -> None:
        try:
            self.session.add(
                ProductModel(
                    id=product.id,
                    title=product.title,
                    description=product.description,
                    price=product.price,
                    image=product.image,
                    variants=[{"name": v.name, "options": list(v.options)} for v in product.variants],
                    inventory=product.inventory,
                )
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail(e, "create product")

    def set_price(self, product_id: str, price: Decimal) -> None:
        try:
            self.session.execute(update(ProductModel).where(ProductModel.id == product_id).values(price=price))
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail(e, "update product price")

    def set_inventory(self, product_id: str, inventory: int) -> None:
        try:
            self.session.execute(
                update(ProductModel).where(ProductModel.id == product_id).values(inventory=inventory)
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail(e, "update product inventory")

    def decrement_inventory(self, product_id: str, quantity: int) -> Optional[int]:
        """Atomically decrement inventory with a single UPDATE statement.

        The subtraction happens in the database (``inventory = inventory - :qty``)
        so concurrent orders for the same product serialize on the row.

        Returns:
            int | None: The inventory after the update, or None if the product
            does not exist.
        """
        try:
            result = self.session.execute(
                update(ProductModel)
                .where(ProductModel.id == product_id)
                .values(inventory=ProductModel.inventory - quantity)
            )
            self.session.commit()
            if result.rowcount == 0:
                return None
            return self.session.execute(
                select(ProductModel.inventory).where(ProductModel.id == product_id)
            ).scalar_one()
        except SQLAlchemyError as e:
            self._fail(e, "decrement inventory")
