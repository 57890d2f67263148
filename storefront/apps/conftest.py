"""In-memory repository doubles for domain-level tests.

They implement the same ports as the SQLAlchemy repositories and hand out
copies, so a service mutating a loaded object does not change what is stored
until ``save``/``add`` is called.
"""

import copy
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from storefront.apps.cart.domain import CartService
from storefront.apps.catalog.domain import CatalogPolicy, CatalogService, Product
from storefront.apps.notifications.adapters import NotifierStub
from storefront.apps.orders.domain import DuplicateOrderNumber, OrderService
from storefront.errors import DependencyFailure


class MemoryProducts:
    def __init__(self):
        self.rows = {}
        self.fail_reads = False
        self.fail_writes = False
        self.decrements = []

    def put(self, price="20.00", inventory=1000, title="Canvas Sneaker", product_id=None):
        pid = product_id or str(uuid.uuid4())
        self.rows[pid] = Product(
            id=pid,
            title=title,
            price=Decimal(price) if price is not None else None,
            inventory=inventory,
        )
        return pid

    def _write(self):
        if self.fail_writes:
            raise DependencyFailure("storage down")

    def get(self, product_id):
        if self.fail_reads:
            raise DependencyFailure("storage down")
        p = self.rows.get(product_id)
        return copy.deepcopy(p) if p else None

    def list(self):
        return [copy.deepcopy(p) for p in self.rows.values()]

    def first(self):
        return copy.deepcopy(next(iter(self.rows.values()), None))

    def get_many(self, product_ids):
        return {pid: copy.deepcopy(self.rows[pid]) for pid in product_ids if pid in self.rows}

    def add(self, product):
        self._write()
        self.rows[product.id] = copy.deepcopy(product)

    def set_price(self, product_id, price):
        self._write()
        self.rows[product_id].price = price

    def set_inventory(self, product_id, inventory):
        self._write()
        self.rows[product_id].inventory = inventory

    def decrement_inventory(self, product_id, quantity):
        self._write()
        if product_id not in self.rows:
            return None
        self.rows[product_id].inventory -= quantity
        self.decrements.append((product_id, quantity))
        return self.rows[product_id].inventory


class MemoryCarts:
    def __init__(self):
        self.rows = {}
        self.fail_writes = False

    def find_by_user(self, user_id):
        c = self.rows.get(user_id)
        return copy.deepcopy(c) if c else None

    def save(self, cart):
        if self.fail_writes:
            raise DependencyFailure("storage down")
        stored = copy.deepcopy(cart)
        stored.id = stored.id or str(uuid.uuid4())
        stored.created_at = stored.created_at or datetime.now(timezone.utc)
        self.rows[cart.user_id] = stored
        return copy.deepcopy(stored)


class MemoryOrders:
    def __init__(self):
        self.rows = {}
        self.tasks = {}
        self.taken = set()

    def add(self, order):
        if order.order_number in self.taken or order.order_number in self.rows:
            raise DuplicateOrderNumber(order.order_number)
        stored = copy.deepcopy(order)
        stored.id = str(uuid.uuid4())
        stored.created_at = datetime.now(timezone.utc)
        self.rows[stored.order_number] = stored
        return copy.deepcopy(stored)

    def get_by_number(self, order_number):
        o = self.rows.get(order_number)
        if o is None:
            return None
        o = copy.deepcopy(o)
        o.side_effects = list(self.tasks.get(o.id, []))
        return o

    def record_tasks(self, order_id, outcomes):
        self.tasks.setdefault(order_id, []).extend(outcomes)


@pytest.fixture
def products():
    return MemoryProducts()


@pytest.fixture
def carts():
    return MemoryCarts()


@pytest.fixture
def orders():
    return MemoryOrders()


@pytest.fixture
def catalog(products):
    return CatalogService(products, CatalogPolicy())


@pytest.fixture
def cart_service(carts, catalog):
    return CartService(carts, catalog)


@pytest.fixture
def stub_notifier():
    return NotifierStub(record=True)


@pytest.fixture
def order_service(catalog, cart_service, orders, stub_notifier):
    return OrderService(catalog, cart_service, orders, stub_notifier)
