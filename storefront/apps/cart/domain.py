"""Cart domain: cart DTOs, the repository port and the cart service.

The service keeps one invariant on every mutation: ``cart.total`` equals the
rounded sum of the item subtotals, and every subtotal equals
``round2(price * quantity)``. Validation happens before any change is made, so
a failed call leaves the stored cart untouched.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Protocol

from storefront.apps.catalog.domain import CatalogService, Product
from storefront.errors import BadRequest, NotFound
from storefront.money import ZERO, line_subtotal, sum_rounded

logger = logging.getLogger("storefront.cart")


@dataclass
class CartItem:
    """A line item. ``(product_id, variant)`` is unique within a cart."""

    id: str
    product_id: str
    quantity: int
    variant: str
    price: Decimal
    subtotal: Decimal


@dataclass
class Cart:
    user_id: str
    items: List[CartItem] = field(default_factory=list)
    total: Decimal = ZERO
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def find_line(self, product_id: str, variant: str) -> Optional[CartItem]:
        for item in self.items:
            if item.product_id == product_id and item.variant == variant:
                return item
        return None

    def find_item(self, item_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def recompute_total(self) -> Decimal:
        self.total = sum_rounded(i.subtotal for i in self.items)
        return self.total

    def empty(self) -> None:
        self.items = []
        self.total = ZERO


@dataclass
class ResolvedCart:
    """A cart plus the current catalog record of each referenced product.

    A product missing from ``products`` has been removed from the catalog.
    """

    cart: Cart
    products: Dict[str, Product] = field(default_factory=dict)


# ---- Ports ----
class CartRepositoryPort(Protocol):
    def find_by_user(self, user_id: str) -> Optional[Cart]: ...

    def save(self, cart: Cart) -> Cart:
        """Persist the whole cart (last write wins) and return the stored state."""
        ...


class CartService:
    """Per-user cart operations.

    Args:
        carts: Cart storage.
        catalog: Catalog used to look up products and resolve prices.
    """

    def __init__(self, carts: CartRepositoryPort, catalog: CatalogService):
        self.carts = carts
        self.catalog = catalog

    def resolve(self, cart: Cart) -> ResolvedCart:
        products = self.catalog.get_many([i.product_id for i in cart.items])
        return ResolvedCart(cart=cart, products=products)

    def _save(self, cart: Cart) -> Cart:
        cart.updated_at = datetime.now(timezone.utc)
        return self.carts.save(cart)

    def find(self, user_id: str) -> Optional[Cart]:
        return self.carts.find_by_user(user_id)

    def _require_cart(self, user_id: str) -> Cart:
        cart = self.carts.find_by_user(user_id)
        if cart is None:
            raise NotFound("Cart not found", {"userId": user_id})
        return cart

    def get(self, user_id: str) -> ResolvedCart:
        """Return the user's cart, creating an empty one on first access."""
        cart = self.carts.find_by_user(user_id)
        if cart is None:
            cart = self._save(Cart(user_id=user_id))
            logger.info("cart created", extra={"user_id": user_id})
        return self.resolve(cart)

    def add(self, user_id: str, product_id: str, quantity: int, variant: str = "") -> ResolvedCart:
        """Add ``quantity`` units of a product variant to the cart.

        An existing line with the same product and variant is merged: its
        quantity grows, its price snapshot is refreshed and its subtotal is
        recomputed. Otherwise a new line is appended.

        Raises:
            BadRequest: If ``quantity`` is lower than 1.
            NotFound: If the product does not exist.
            ComputationError: If a price, subtotal or total cannot be computed.
        """
        if quantity < 1:
            raise BadRequest("Quantity must be at least 1", {"quantity": quantity})
        variant = variant or ""

        product = self.catalog.get_product(product_id)
        price = self.catalog.resolve_price(product)
        subtotal = line_subtotal(price, quantity)

        cart = self.carts.find_by_user(user_id) or Cart(user_id=user_id)
        line = cart.find_line(product.id, variant)
        if line is not None:
            line.quantity += quantity
            line.price = price
            line.subtotal = line_subtotal(price, line.quantity)
        else:
            cart.items.append(
                CartItem(
                    id=str(uuid.uuid4()),
                    product_id=product.id,
                    quantity=quantity,
                    variant=variant,
                    price=price,
                    subtotal=subtotal,
                )
            )
        cart.recompute_total()
        saved = self._save(cart)
        logger.info(
            "item added to cart",
            extra={"user_id": user_id, "product_id": product.id, "quantity": quantity, "total": str(saved.total)},
        )
        return self.resolve(saved)

    def update_quantity(self, user_id: str, item_id: str, quantity: int) -> ResolvedCart:
        """Set a line's quantity, re-pricing it from the current product price.

        A quantity of 0 removes the line.

        Raises:
            BadRequest: If ``quantity`` is negative or exceeds the inventory.
            NotFound: If the cart, the item or its product does not exist.
        """
        if quantity < 0:
            raise BadRequest("Quantity must be positive", {"quantity": quantity})
        cart = self._require_cart(user_id)
        item = cart.find_item(item_id)
        if item is None:
            raise NotFound("Item not found in cart", {"itemId": item_id})

        product = self.catalog.get_product(item.product_id)
        if product.inventory < quantity:
            raise BadRequest(
                "Not enough inventory",
                {"requested": quantity, "available": product.inventory, "productId": product.id},
            )

        if quantity == 0:
            cart.items.remove(item)
        else:
            price = self.catalog.resolve_price(product)
            item.quantity = quantity
            item.price = price
            item.subtotal = line_subtotal(price, quantity)
        cart.recompute_total()
        return self.resolve(self._save(cart))

    def remove_item(self, user_id: str, item_id: str) -> ResolvedCart:
        cart = self._require_cart(user_id)
        item = cart.find_item(item_id)
        if item is None:
            raise NotFound("Item not found in cart", {"itemId": item_id})
        cart.items.remove(item)
        cart.recompute_total()
        return self.resolve(self._save(cart))

    def clear(self, user_id: str) -> Cart:
        cart = self._require_cart(user_id)
        cart.empty()
        saved = self._save(cart)
        logger.info("cart cleared", extra={"user_id": user_id})
        return saved
