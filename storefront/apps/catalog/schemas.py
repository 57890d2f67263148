"""Pydantic schemas for catalog responses."""

from typing import List

from storefront.money import is_valid_price
from storefront.schemas import CamelModel

from .domain import Product


class VariantAxisOut(CamelModel):
    name: str
    options: List[str]


class ProductOut(CamelModel):
    """Product as returned by the API.

    Attributes:
        price: Unit price as a JSON number, or null for a row awaiting repair.
    """

    id: str
    title: str
    description: str
    price: float | None
    image: str
    variants: List[VariantAxisOut]
    inventory: int

    @classmethod
    def from_domain(cls, p: Product) -> "ProductOut":
        return cls(
            id=p.id,
            title=p.title,
            description=p.description,
            price=float(p.price) if is_valid_price(p.price) else None,
            image=p.image,
            variants=[VariantAxisOut(name=v.name, options=list(v.options)) for v in p.variants],
            inventory=p.inventory,
        )


class SeedProductOut(CamelModel):
    message: str
    product: ProductOut
