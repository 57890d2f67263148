# Point the storefront at an in-memory SQLite database before it is imported.
import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.pop("MAIL_API_TOKEN", None)

import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront import db
from storefront.apps.catalog.models import ProductModel
from storefront.apps.notifications.adapters import NotifierStub
from storefront.main import create_app
from storefront.providers import get_notifier


@pytest.fixture(autouse=True)
def fresh_db():
    db.init_db()
    yield
    db.Base.metadata.drop_all(db.engine)


@pytest.fixture
def notifier():
    return NotifierStub(record=True)


@pytest.fixture
def app(notifier):
    app = create_app(init_storage=False)
    app.dependency_overrides[get_notifier] = lambda: notifier
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_product():
    """Insert a product row and return its id."""

    def _make(price="20.00", inventory=1000, title="Canvas Sneaker", product_id=None):
        pid = product_id or str(uuid.uuid4())
        with db.get_session() as s:
            s.add(
                ProductModel(
                    id=pid,
                    title=title,
                    description="",
                    price=Decimal(price) if price is not None else None,
                    image="",
                    variants=[{"name": "Size", "options": ["8", "9"]}],
                    inventory=inventory,
                )
            )
            s.commit()
        return pid

    return _make


@pytest.fixture
def product_row():
    """Read a product row with a fresh session."""

    def _get(pid):
        with db.get_session() as s:
            return s.get(ProductModel, pid)

    return _get
