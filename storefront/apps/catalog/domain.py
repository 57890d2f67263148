"""Catalog domain: product DTOs, the repository port and catalog resolution.

Every demo convenience the storefront has (synthesizing unknown products,
topping up low inventory, substituting a default price) lives in
``CatalogService`` and is switched by ``CatalogPolicy``, so a production
deployment can disable all of them from configuration.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import List, Optional, Protocol

from storefront import settings
from storefront.errors import BadRequest, ComputationError, DependencyFailure, NotFound
from storefront.money import is_valid_price, round2

logger = logging.getLogger("storefront.catalog")

DEMO_TITLE = "Converse Chuck Taylor All Star"
DEMO_DESCRIPTION = "The classic Chuck Taylor with premium materials and enhanced comfort"
SEED_TITLE = "Converse Chuck Taylor All Star II Hi"
SEED_DESCRIPTION = (
    "The Converse Chuck Taylor All Star II Hi gives the classic Chuck Taylor a modern "
    "upgrade with premium materials and enhanced comfort features."
)
DEMO_IMAGE = "https://i.imgur.com/8yJQQJ9.jpeg"
DEMO_PRICE = Decimal("85.00")


@dataclass
class VariantAxis:
    """A named variant dimension (e.g. Color) and its ordered options."""

    name: str
    options: List[str] = field(default_factory=list)


@dataclass
class Product:
    """Catalog product as seen by the rest of the domain.

    Attributes:
        price: Unit price, or None when the stored row has no usable price.
        persisted: False for a fallback product synthesized after a storage
            failure; callers must not assume it exists in the database.
    """

    id: str
    title: str
    description: str = ""
    price: Optional[Decimal] = None
    image: str = ""
    variants: List[VariantAxis] = field(default_factory=list)
    inventory: int = 0
    persisted: bool = True


def demo_variants() -> List[VariantAxis]:
    return [
        VariantAxis("Color", ["Black", "White", "Red", "Blue"]),
        VariantAxis("Size", ["7", "8", "9", "10", "11", "12"]),
    ]


def demo_product(product_id: str, inventory: int = 1000) -> Product:
    return Product(
        id=product_id,
        title=DEMO_TITLE,
        description=DEMO_DESCRIPTION,
        price=DEMO_PRICE,
        image=DEMO_IMAGE,
        variants=demo_variants(),
        inventory=inventory,
    )


def ensure_product_id(product_id: str) -> str:
    """Return the canonical form of a product id or raise ``BadRequest``."""
    try:
        return str(uuid.UUID(str(product_id)))
    except (ValueError, TypeError):
        raise BadRequest("Invalid product ID format", {"productId": product_id})


@dataclass(frozen=True)
class CatalogPolicy:
    """Switches for the catalog's demo fallbacks.

    Attributes:
        auto_create_missing: Synthesize a demo product for unknown ids when an
            order references them.
        fallback_on_storage_error: Return an unpersisted fallback product when
            storage fails during resolution.
        replenish_low_inventory: Top up products below
            ``low_inventory_threshold`` to ``replenish_to`` on resolution.
        repair_missing_price: Use ``default_price`` for products without a
            valid price and write it back.
    """

    auto_create_missing: bool = True
    fallback_on_storage_error: bool = True
    replenish_low_inventory: bool = True
    repair_missing_price: bool = True
    low_inventory_threshold: int = 100
    replenish_to: int = 1000
    default_price: Decimal = DEMO_PRICE

    @classmethod
    def from_settings(cls) -> "CatalogPolicy":
        return cls(
            auto_create_missing=settings.CATALOG_AUTO_CREATE,
            fallback_on_storage_error=settings.CATALOG_FALLBACK_ON_ERROR,
            replenish_low_inventory=settings.CATALOG_REPLENISH,
            repair_missing_price=settings.CATALOG_REPAIR_PRICE,
        )

    @classmethod
    def strict(cls) -> "CatalogPolicy":
        """Policy with every demo fallback disabled."""
        return cls(
            auto_create_missing=False,
            fallback_on_storage_error=False,
            replenish_low_inventory=False,
            repair_missing_price=False,
        )


# ---- Ports ----
class ProductRepositoryPort(Protocol):
    """Storage operations the catalog needs.

    Implementations raise ``DependencyFailure`` when storage is unavailable.
    """

    def get(self, product_id: str) -> Optional[Product]: ...

    def list(self) -> List[Product]: ...

    def first(self) -> Optional[Product]: ...

    def get_many(self, product_ids: List[str]) -> dict[str, Product]: ...

    def add(self, product: Product) -> None: ...

    def set_price(self, product_id: str, price: Decimal) -> None: ...

    def set_inventory(self, product_id: str, inventory: int) -> None: ...

    def decrement_inventory(self, product_id: str, quantity: int) -> Optional[int]:
        """Atomically subtract ``quantity``; return the new level or None if no row matched."""
        ...


class CatalogService:
    """Product lookup, seeding and order-time resolution."""

    def __init__(self, products: ProductRepositoryPort, policy: CatalogPolicy | None = None):
        self.products = products
        self.policy = policy or CatalogPolicy()

    def list_products(self) -> List[Product]:
        return self.products.list()

    def get_product(self, product_id: str) -> Product:
        """Plain lookup without any fallback.

        Raises:
            NotFound: If no product carries ``product_id``.
        """
        product = self.products.get(product_id)
        if product is None:
            raise NotFound("Product not found", {"productId": product_id})
        return product

    def get_many(self, product_ids: List[str]) -> dict[str, Product]:
        return self.products.get_many(product_ids)

    def resolve_product(self, product_id: str) -> Product:
        """Resolve a product for an order, applying the policy's fallbacks.

        Returns:
            Product: The stored product (possibly replenished), a newly
            synthesized demo product, or an unpersisted fallback.

        Raises:
            BadRequest: If ``product_id`` is not a well-formed id.
            NotFound: If the product is absent and auto-creation is disabled.
            DependencyFailure: If storage fails and fallbacks are disabled.
        """
        product_id = ensure_product_id(product_id)
        try:
            product = self.products.get(product_id)
        except DependencyFailure:
            if not self.policy.fallback_on_storage_error:
                raise
            logger.exception("product lookup failed, using fallback", extra={"product_id": product_id})
            fallback = demo_product(product_id)
            return replace(
                fallback,
                title="Fallback Product",
                description="This is a fallback product created due to an error",
                variants=[],
                persisted=False,
            )

        if product is None:
            if not self.policy.auto_create_missing:
                raise NotFound("Product not found", {"productId": product_id})
            return self.ensure_product(product_id)

        if self.policy.replenish_low_inventory and product.inventory < self.policy.low_inventory_threshold:
            try:
                self.products.set_inventory(product_id, self.policy.replenish_to)
                logger.info(
                    "inventory replenished",
                    extra={"product_id": product_id, "inventory": self.policy.replenish_to},
                )
            except DependencyFailure:
                logger.exception("inventory replenish failed", extra={"product_id": product_id})
            product.inventory = self.policy.replenish_to
        return product

    def ensure_product(self, product_id: str) -> Product:
        """Create the demo product under ``product_id``.

        When the insert fails and the policy allows it, an unpersisted product
        with the same shape is returned instead (``persisted=False``).
        """
        product = demo_product(product_id)
        try:
            self.products.add(product)
            stored = self.products.get(product_id)
            if stored is None:
                raise DependencyFailure("Product was inserted but could not be retrieved")
        except DependencyFailure:
            if not self.policy.fallback_on_storage_error:
                raise
            logger.exception("default product not persisted, using fallback", extra={"product_id": product_id})
            product.persisted = False
            product.variants = []
            return product
        logger.info("default product created", extra={"product_id": product_id})
        return stored

    def resolve_price(self, product: Product) -> Decimal:
        """Return the product's unit price rounded to 2 decimals.

        A missing or invalid price is replaced by the policy's default price,
        which is also written back to storage (best effort).

        Raises:
            ComputationError: If the price is invalid and repair is disabled.
        """
        if is_valid_price(product.price):
            return round2(product.price)
        if not self.policy.repair_missing_price:
            raise ComputationError("Product has no valid price", {"productId": product.id})

        logger.warning("invalid product price, using default", extra={"product_id": product.id})
        price = self.policy.default_price
        try:
            self.products.set_price(product.id, price)
        except DependencyFailure:
            logger.exception("failed to repair product price", extra={"product_id": product.id})
        product.price = price
        return round2(price)

    def seed_demo_product(self) -> tuple[Product, bool]:
        """Create the demo product unless the catalog already has products.

        Returns:
            tuple[Product, bool]: The first existing product and False, or
            the newly created product and True.
        """
        existing = self.products.first()
        if existing is not None:
            return existing, False
        product = Product(
            id=str(uuid.uuid4()),
            title=SEED_TITLE,
            description=SEED_DESCRIPTION,
            price=DEMO_PRICE,
            image=DEMO_IMAGE,
            variants=demo_variants(),
            inventory=100,
        )
        self.products.add(product)
        logger.info("initial product created", extra={"product_id": product.id})
        return product, True

    def decrement_inventory(self, product_id: str, quantity: int) -> int:
        """Subtract ``quantity`` from the product's inventory in storage.

        Raises:
            NotFound: If the product row does not exist.
        """
        remaining = self.products.decrement_inventory(product_id, quantity)
        if remaining is None:
            raise NotFound(f"Product {product_id} not found for inventory update", {"productId": product_id})
        logger.info("inventory updated", extra={"product_id": product_id, "inventory": remaining})
        return remaining
