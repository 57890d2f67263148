"""API tests for the product endpoints and the SQL inventory decrement."""

import uuid

from storefront import db
from storefront.apps.catalog.domain import CatalogService
from storefront.apps.catalog.repository import ProductRepository


def test_list_products_empty(client):
    r = client.get("/api/products")
    assert r.status_code == 200
    assert r.json() == []


def test_get_product(client, make_product):
    pid = make_product(price="20.00", inventory=7)
    r = client.get(f"/api/products/{pid}")
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == pid
    assert body["price"] == 20.0
    assert body["inventory"] == 7
    assert body["variants"] == [{"name": "Size", "options": ["8", "9"]}]


def test_get_product_not_found(client):
    r = client.get(f"/api/products/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json()["message"] == "Product not found"


def test_init_creates_then_reuses(client):
    r1 = client.post("/api/products/init")
    assert r1.status_code == 201
    assert r1.json()["message"] == "Initial product created successfully"
    assert r1.json()["product"]["inventory"] == 100

    r2 = client.post("/api/products/init")
    assert r2.status_code == 200
    assert r2.json()["message"] == "Using existing product"
    assert r2.json()["product"]["id"] == r1.json()["product"]["id"]
    assert len(client.get("/api/products").json()) == 1


def test_decrement_runs_in_sql(make_product, product_row):
    pid = make_product(inventory=10)
    with db.get_session() as s:
        catalog = CatalogService(ProductRepository(s))
        assert catalog.decrement_inventory(pid, 3) == 7
        assert catalog.decrement_inventory(pid, 4) == 3
    assert product_row(pid).inventory == 3


def test_missing_price_row_is_repaired(make_product, product_row):
    pid = make_product(price=None)
    with db.get_session() as s:
        catalog = CatalogService(ProductRepository(s))
        product = catalog.get_product(pid)
        assert product.price is None
        assert str(catalog.resolve_price(product)) == "85.00"
    assert str(product_row(pid).price) == "85.00"
