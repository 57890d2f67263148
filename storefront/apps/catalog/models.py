from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import mapped_column

from storefront.db import Base


class ProductModel(Base):
    """SQLAlchemy model for a catalog product.

    Attributes:
        id: Public UUID string, also used by carts and orders as reference.
        price: Unit price with 2 decimals. Nullable so rows with a missing
            price can be detected and repaired instead of failing to load.
        variants: JSON list of ``{"name": str, "options": [str, ...]}``.
        inventory: Units available. Decrements are applied in SQL.
    """

    __tablename__ = "products"

    id = mapped_column(String(36), primary_key=True)
    title = mapped_column(String(200), nullable=False)
    description = mapped_column(Text, nullable=False, default="")
    price = mapped_column(Numeric(12, 2), nullable=True)
    image = mapped_column(String(500), nullable=False, default="")
    variants = mapped_column(JSON, nullable=False, default=list)
    inventory = mapped_column(Integer, nullable=False, default=0)
    created_at = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
