DETAIL_URL = "/api/orders/{number}"


def test_get_order_by_number(client, make_product, direct_payload):
    pid = make_product()
    created = client.post("/api/orders", json=direct_payload(pid, quantity=2, subtotal=40, total=40)).json()["order"]

    r = client.get(DETAIL_URL.format(number=created["orderNumber"]))
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == created["id"]
    assert body["orderNumber"] == created["orderNumber"]
    assert body["status"] == "approved"
    assert body["total"] == 40.0
    assert body["quantity"] == 2
    assert body["product"]["id"] == pid
    assert body["customer"]["fullName"] == "Ada Lovelace"
    assert [s["name"] for s in body["sideEffects"]] == ["decrement_inventory", "notify"]


def test_get_cart_order_includes_items(client, make_product, checkout_payload):
    pid = make_product(price="12.50")
    client.post("/api/cart/add", json={"userId": "u1", "productId": pid, "quantity": 2})
    number = client.post("/api/orders/checkout", json=checkout_payload()).json()["order"]["orderNumber"]

    body = client.get(DETAIL_URL.format(number=number)).json()
    assert body["productId"] is None
    assert body["items"][0]["product"]["id"] == pid
    assert body["items"][0]["subtotal"] == 25.0
    assert body["total"] == 25.0


def test_get_order_not_found_returns_404(client):
    r = client.get(DETAIL_URL.format(number="ORD-00000000"))
    assert r.status_code == 404
    assert r.json()["message"] == "Order not found"
