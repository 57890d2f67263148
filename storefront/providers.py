"""Service provider helpers for wiring domain services with their ports.

Each ``get_*`` function is a FastAPI dependency. Repositories share the
request's SQLAlchemy session. The notifier is the HTTP email client when an
API token is configured, otherwise an in-process stub that only logs; tests
swap it through ``app.dependency_overrides[get_notifier]``.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from . import settings
from .apps.cart.domain import CartService
from .apps.cart.repository import CartRepository
from .apps.catalog.domain import CatalogPolicy, CatalogService
from .apps.catalog.repository import ProductRepository
from .apps.notifications.adapters import NotifierStub
from .apps.notifications.http_adapters import HttpEmailClient
from .apps.orders.domain import NotifierPort, OrderService
from .apps.orders.repository import OrderRepository
from .db import session_dependency

_stub_notifier = NotifierStub()


def get_notifier() -> NotifierPort:
    if settings.MAIL_API_TOKEN:
        return HttpEmailClient()
    return _stub_notifier


def get_catalog_service(session: Session = Depends(session_dependency)) -> CatalogService:
    return CatalogService(ProductRepository(session), CatalogPolicy.from_settings())


def get_cart_service(
    session: Session = Depends(session_dependency),
    catalog: CatalogService = Depends(get_catalog_service),
) -> CartService:
    return CartService(CartRepository(session), catalog)


def get_order_service(
    session: Session = Depends(session_dependency),
    catalog: CatalogService = Depends(get_catalog_service),
    carts: CartService = Depends(get_cart_service),
    notifier: NotifierPort = Depends(get_notifier),
) -> OrderService:
    return OrderService(catalog, carts, OrderRepository(session), notifier)
