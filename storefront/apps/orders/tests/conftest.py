import pytest

CUSTOMER_JSON = {
    "fullName": "Ada Lovelace",
    "email": "ada@example.com",
    "phone": "555-0100",
    "address": "1 Analytical St",
    "city": "London",
    "state": "LN",
    "zipCode": "00001",
}


@pytest.fixture
def direct_payload():
    """Build a camelCase body for ``POST /api/orders``."""

    def _build(product_id, quantity=1, cvv="1", subtotal=85.0, total=85.0, variant="Black"):
        body = {
            "productId": product_id,
            "variant": variant,
            "quantity": quantity,
            "subtotal": subtotal,
            "total": total,
            "customer": dict(CUSTOMER_JSON),
        }
        if cvv is not None:
            body["paymentInfo"] = {"cardNumber": "4111111111111111", "expiryDate": "12/30", "cvv": cvv}
        return body

    return _build


@pytest.fixture
def checkout_payload():
    """Build a camelCase body for ``POST /api/orders/checkout``."""

    def _build(user_id="u1", cvv="1"):
        body = {"userId": user_id, "customer": dict(CUSTOMER_JSON)}
        if cvv is not None:
            body["paymentInfo"] = {"cvv": cvv}
        return body

    return _build
