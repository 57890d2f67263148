"""Domain models, ports and service for orders.

This module contains the order DTOs, protocol definitions (ports) for the
order store and the notifier, and the domain service that places orders from
either a direct single-product request or the user's cart.

Placing an order has two phases. Validation (product resolution, inventory
checks) happens first and aborts the call before anything is written. Once the
order is committed, the side effects (inventory decrement, cart clearing,
notification) run as a post-commit task list: each task is attempted, its
outcome is recorded on the order, and a failing task never unwinds the order.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol

from storefront.apps.cart.domain import CartService
from storefront.apps.catalog.domain import CatalogService, Product
from storefront.errors import BadRequest, DependencyFailure, NotFound
from storefront.money import round2

logger = logging.getLogger("storefront.orders")

ORDER_NUMBER_ATTEMPTS = 5


# ---- Enums ----
class OrderStatus(str, Enum):
    """Simulated payment outcome stored on the order."""

    APPROVED = "approved"
    DECLINED = "declined"
    ERROR = "error"


class TaskStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


# Test CVV codes; any other value (or none) approves the payment.
CVV_OUTCOMES = {
    "1": OrderStatus.APPROVED,
    "2": OrderStatus.DECLINED,
    "3": OrderStatus.ERROR,
}


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class Customer:
    full_name: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str


@dataclass(frozen=True)
class PaymentInfo:
    cvv: Optional[str] = None


@dataclass(frozen=True)
class OrderItem:
    """A line item frozen at order creation; price and subtotal never change."""

    product_id: str
    quantity: int
    variant: str
    price: Decimal
    subtotal: Decimal


@dataclass
class TaskOutcome:
    """Recorded result of one post-commit side effect.

    Attributes:
        name: ``decrement_inventory``, ``clear_cart`` or ``notify``.
        target: What the task acted on (product id, user id, recipient).
        error: Failure message, or the reason a task was skipped.
    """

    name: str
    target: str
    status: TaskStatus
    error: Optional[str] = None
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Order:
    """Container for order data.

    Cart checkouts fill ``items``; direct checkouts fill the legacy
    ``product_id``/``variant``/``quantity`` fields and leave ``items`` empty.
    """

    order_number: str
    customer: Customer
    status: OrderStatus
    subtotal: Decimal
    total: Decimal
    items: List[OrderItem] = field(default_factory=list)
    product_id: Optional[str] = None
    variant: Optional[str] = None
    quantity: Optional[int] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    side_effects: List[TaskOutcome] = field(default_factory=list)

    @property
    def is_legacy(self) -> bool:
        return not self.items and self.product_id is not None

    def product_ids(self) -> List[str]:
        if self.items:
            return [i.product_id for i in self.items]
        return [self.product_id] if self.product_id else []


@dataclass
class ResolvedOrder:
    """An order plus the current catalog record of each referenced product."""

    order: Order
    products: Dict[str, Product] = field(default_factory=dict)

    def product(self, product_id: Optional[str]) -> Optional[Product]:
        return self.products.get(product_id) if product_id else None


class DuplicateOrderNumber(Exception):
    """Raised by an order store when the generated order number is taken."""


def status_from_payment(payment: Optional[PaymentInfo]) -> OrderStatus:
    if payment is None or not payment.cvv:
        return OrderStatus.APPROVED
    return CVV_OUTCOMES.get(payment.cvv, OrderStatus.APPROVED)


def generate_order_number() -> str:
    """Return ``ORD-`` followed by 8 uppercase hex characters."""
    return f"ORD-{uuid.uuid4().hex[:8].upper()}"


# ---- Ports (DIP) ----
class OrderRepositoryPort(Protocol):
    def add(self, order: Order) -> Order:
        """Persist a new order and return it with ``id`` and ``created_at`` set.

        Raises:
            DuplicateOrderNumber: If ``order.order_number`` already exists.
        """
        ...

    def get_by_number(self, order_number: str) -> Optional[Order]: ...

    def record_tasks(self, order_id: str, outcomes: List[TaskOutcome]) -> None: ...


class NotifierPort(Protocol):
    def send(self, resolved: ResolvedOrder) -> None:
        """Deliver the status notification for an order; raise on failure."""
        ...


class PostCommitTasks:
    """Runs best-effort side effects for a committed order and records outcomes."""

    def __init__(self, order: Order):
        self.order = order
        self.outcomes: List[TaskOutcome] = []

    def run(self, name: str, target: str, fn: Callable[[], object]) -> bool:
        try:
            fn()
        except Exception as e:
            logger.exception(
                "post-commit task failed",
                extra={"order_number": self.order.order_number, "task": name, "target": target},
            )
            self.outcomes.append(TaskOutcome(name, target, TaskStatus.FAILED, error=str(e) or type(e).__name__))
            return False
        self.outcomes.append(TaskOutcome(name, target, TaskStatus.SUCCEEDED))
        return True

    def skip(self, name: str, target: str, reason: str) -> None:
        self.outcomes.append(TaskOutcome(name, target, TaskStatus.SKIPPED, error=reason))


# ---- Domain service ----
class OrderService:
    """Domain service responsible for placing and reading orders.

    Args:
        catalog: Resolves products and decrements inventory.
        carts: Loads and clears the user's cart.
        orders: Order storage.
        notifier: Delivers the status email.
        number_factory: Generates order numbers; injectable for tests.
    """

    def __init__(
        self,
        catalog: CatalogService,
        carts: CartService,
        orders: OrderRepositoryPort,
        notifier: NotifierPort,
        number_factory: Callable[[], str] = generate_order_number,
    ):
        self.catalog = catalog
        self.carts = carts
        self.orders = orders
        self.notifier = notifier
        self.number_factory = number_factory

    def _persist(self, order: Order) -> Order:
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            try:
                saved = self.orders.add(order)
            except DuplicateOrderNumber:
                logger.warning("order number collision", extra={"order_number": order.order_number})
                order.order_number = self.number_factory()
                continue
            logger.info(
                "order saved",
                extra={"order_number": saved.order_number, "status": saved.status.value, "total": str(saved.total)},
            )
            return saved
        raise DependencyFailure("Could not allocate a unique order number")

    def _resolve(self, order: Order, known: Optional[Dict[str, Product]] = None) -> ResolvedOrder:
        products = self.catalog.get_many(order.product_ids())
        for product_id, product in (known or {}).items():
            products.setdefault(product_id, product)
        return ResolvedOrder(order=order, products=products)

    def _resolve_committed(self, order: Order, known: Optional[Dict[str, Product]] = None) -> ResolvedOrder:
        # The order already exists; a failed lookup only drops product details.
        try:
            return self._resolve(order, known)
        except DependencyFailure:
            logger.exception("product details unavailable", extra={"order_number": order.order_number})
            return ResolvedOrder(order=order, products=dict(known or {}))

    def _finish(self, tasks: PostCommitTasks, order: Order, known: Optional[Dict[str, Product]] = None) -> ResolvedOrder:
        resolved = self._resolve_committed(order, known)
        tasks.run("notify", order.customer.email, lambda: self.notifier.send(resolved))
        order.side_effects = tasks.outcomes
        try:
            self.orders.record_tasks(order.id, tasks.outcomes)
        except DependencyFailure:
            logger.exception("failed to record post-commit outcomes", extra={"order_number": order.order_number})
        return resolved

    def create_direct(
        self,
        product_id: str,
        quantity: int,
        customer: Customer,
        subtotal,
        total,
        variant: str = "",
        payment: Optional[PaymentInfo] = None,
    ) -> ResolvedOrder:
        """Place an order for a single product.

        ``subtotal`` and ``total`` are taken from the caller as-is (only
        rounded to cents); they are not recomputed from the product price.

        Raises:
            BadRequest: If the product id is malformed or ``quantity`` exceeds
                the available inventory.
            NotFound: If the product is unknown and auto-creation is disabled.
        """
        if quantity < 1:
            raise BadRequest("Quantity must be at least 1", {"quantity": quantity})
        product = self.catalog.resolve_product(product_id)
        if product.inventory < quantity:
            logger.info(
                "inventory check failed",
                extra={"product_id": product.id, "requested": quantity, "available": product.inventory},
            )
            raise BadRequest(
                "Not enough inventory",
                {"requested": quantity, "available": product.inventory, "productId": product.id},
            )

        status = status_from_payment(payment)
        order = self._persist(
            Order(
                order_number=self.number_factory(),
                customer=customer,
                status=status,
                subtotal=round2(subtotal),
                total=round2(total),
                product_id=product.id,
                variant=variant or "",
                quantity=quantity,
            )
        )

        tasks = PostCommitTasks(order)
        if status is OrderStatus.APPROVED:
            tasks.run("decrement_inventory", product.id, lambda: self.catalog.decrement_inventory(product.id, quantity))
        else:
            tasks.skip("decrement_inventory", product.id, f"payment {status.value}")

        known = {} if product.persisted else {product.id: product}
        return self._finish(tasks, order, known)

    def create_from_cart(self, user_id: str, customer: Customer, payment: Optional[PaymentInfo] = None) -> ResolvedOrder:
        """Place an order for everything in the user's cart.

        Every line is checked against current inventory before anything is
        written; the first shortfall fails the whole call. When the payment is
        approved, inventory is decremented per line and the cart is emptied.

        Raises:
            BadRequest: If the cart is empty or a line exceeds its product's
                inventory.
            NotFound: If a product referenced by the cart no longer exists.
        """
        cart = self.carts.find(user_id)
        if cart is None or not cart.items:
            raise BadRequest("Cart is empty", {"userId": user_id})

        products = self.catalog.get_many([i.product_id for i in cart.items])
        for item in cart.items:
            product = products.get(item.product_id)
            if product is None:
                raise NotFound(f"Product {item.product_id} not found", {"productId": item.product_id})
            if product.inventory < item.quantity:
                raise BadRequest(
                    f"Not enough inventory for {product.title}",
                    {"requested": item.quantity, "available": product.inventory, "productId": product.id},
                )

        status = status_from_payment(payment)
        order = self._persist(
            Order(
                order_number=self.number_factory(),
                customer=customer,
                status=status,
                subtotal=cart.total,
                total=cart.total,
                items=[
                    OrderItem(
                        product_id=i.product_id,
                        quantity=i.quantity,
                        variant=i.variant,
                        price=i.price,
                        subtotal=i.subtotal,
                    )
                    for i in cart.items
                ],
            )
        )

        tasks = PostCommitTasks(order)
        if status is OrderStatus.APPROVED:
            for item in order.items:
                tasks.run(
                    "decrement_inventory",
                    item.product_id,
                    lambda item=item: self.catalog.decrement_inventory(item.product_id, item.quantity),
                )
            tasks.run("clear_cart", user_id, lambda: self.carts.clear(user_id))
        else:
            tasks.skip("decrement_inventory", user_id, f"payment {status.value}")

        return self._finish(tasks, order)

    def get_by_number(self, order_number: str) -> ResolvedOrder:
        order = self.orders.get_by_number(order_number)
        if order is None:
            raise NotFound("Order not found", {"orderNumber": order_number})
        return self._resolve(order)
