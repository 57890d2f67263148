from sqlalchemy import func, select

from storefront import db
from storefront.apps.catalog.domain import CatalogService
from storefront.apps.orders.domain import OrderService
from storefront.apps.orders.idempotency import canonical_hash
from storefront.apps.orders.models import IdempotencyKey, OrderModel
from storefront.apps.orders.schemas import CreateOrderIn
from storefront.errors import DependencyFailure

CREATE_URL = "/api/orders"


def order_count():
    with db.get_session() as s:
        return s.execute(select(func.count()).select_from(OrderModel)).scalar_one()


def test_idempotent_same_payload_returns_same_order_on_retry(client, make_product, product_row, direct_payload):
    pid = make_product(inventory=500)
    payload = direct_payload(pid)
    headers = {"Idempotency-Key": "idem-same-1"}

    r1 = client.post(CREATE_URL, json=payload, headers=headers)
    assert r1.status_code == 201
    assert r1.headers.get("Idempotent-Replay") is None

    r2 = client.post(CREATE_URL, json=payload, headers=headers)
    assert r2.status_code == 201
    assert r2.json() == r1.json()
    assert r2.headers.get("Idempotent-Replay") == "true"

    assert order_count() == 1
    assert product_row(pid).inventory == 499


def test_idempotent_conflict_on_different_payload_with_same_key(client, make_product, direct_payload):
    pid = make_product()
    headers = {"Idempotency-Key": "idem-conflict-1"}

    r1 = client.post(CREATE_URL, json=direct_payload(pid, quantity=1), headers=headers)
    assert r1.status_code == 201

    r2 = client.post(CREATE_URL, json=direct_payload(pid, quantity=2), headers=headers)
    assert r2.status_code == 409
    assert r2.json()["message"] == "IDEMPOTENCY_CONFLICT"
    assert order_count() == 1


def test_idempotent_replay_preserves_400_status(client, make_product, direct_payload):
    pid = make_product(inventory=1000)
    payload = direct_payload(pid, quantity=1001)
    headers = {"Idempotency-Key": "idem-400"}

    r1 = client.post(CREATE_URL, json=payload, headers=headers)
    assert r1.status_code == 400

    r2 = client.post(CREATE_URL, json=payload, headers=headers)
    assert r2.status_code == 400
    assert r2.json() == r1.json()
    assert r2.headers.get("Idempotent-Replay") == "true"


def test_in_flight_key_returns_409(client, make_product, direct_payload):
    pid = make_product()
    payload = direct_payload(pid)
    with db.get_session() as s:
        s.add(
            IdempotencyKey(
                key="idem-busy",
                request_hash=canonical_hash(CreateOrderIn.model_validate(payload).model_dump(mode="json")),
            )
        )
        s.commit()

    r = client.post(CREATE_URL, json=payload, headers={"Idempotency-Key": "idem-busy"})
    assert r.status_code == 409
    assert r.json()["message"] == "IDEMPOTENCY_IN_PROGRESS"
    assert order_count() == 0


def test_server_failure_releases_key(client, make_product, direct_payload, monkeypatch):
    pid = make_product()
    payload = direct_payload(pid)
    headers = {"Idempotency-Key": "idem-503"}

    def broken(self, *a, **kw):
        raise DependencyFailure("Failed to save order")

    with monkeypatch.context() as m:
        m.setattr(OrderService, "create_direct", broken)
        r1 = client.post(CREATE_URL, json=payload, headers=headers)
    assert r1.status_code == 503

    r2 = client.post(CREATE_URL, json=payload, headers=headers)
    assert r2.status_code == 201
    assert r2.headers.get("Idempotent-Replay") is None
    assert order_count() == 1


def test_cart_checkout_accepts_idempotency_key(client, make_product, checkout_payload):
    pid = make_product()
    client.post("/api/cart/add", json={"userId": "u1", "productId": pid, "quantity": 1})
    headers = {"Idempotency-Key": "idem-cart"}

    r1 = client.post("/api/orders/checkout", json=checkout_payload(), headers=headers)
    assert r1.status_code == 201
    r2 = client.post("/api/orders/checkout", json=checkout_payload(), headers=headers)
    assert r2.status_code == 201
    assert r2.json()["order"]["orderNumber"] == r1.json()["order"]["orderNumber"]
    assert order_count() == 1


def test_lookup_failure_after_commit_is_replayed(client, make_product, product_row, direct_payload, monkeypatch):
    pid = make_product(inventory=500)
    payload = direct_payload(pid, quantity=3)
    headers = {"Idempotency-Key": "idem-after-commit"}

    def unavailable(self, product_ids):
        raise DependencyFailure("Failed to load products")

    with monkeypatch.context() as m:
        m.setattr(CatalogService, "get_many", unavailable)
        r1 = client.post(CREATE_URL, json=payload, headers=headers)
    assert r1.status_code == 201
    assert r1.json()["order"]["product"] is None

    r2 = client.post(CREATE_URL, json=payload, headers=headers)
    assert r2.status_code == 201
    assert r2.headers.get("Idempotent-Replay") == "true"
    assert r2.json() == r1.json()
    assert order_count() == 1
    assert product_row(pid).inventory == 497
