from decimal import Decimal

import pytest

from storefront.apps.catalog.domain import Product
from storefront.apps.notifications.adapters import NotifierStub
from storefront.apps.notifications.templates import render
from storefront.apps.orders.domain import Customer, Order, OrderItem, OrderStatus, ResolvedOrder

CUSTOMER = Customer("Ada <Lovelace>", "ada@example.com", "555", "1 St", "London", "LN", "00001")


def cart_order(status=OrderStatus.APPROVED):
    order = Order(
        order_number="ORD-0000ABCD",
        customer=CUSTOMER,
        status=status,
        subtotal=Decimal("65.00"),
        total=Decimal("65.00"),
        items=[
            OrderItem("p1", 2, "Black", Decimal("20.00"), Decimal("40.00")),
            OrderItem("p2", 1, "", Decimal("25.00"), Decimal("25.00")),
        ],
    )
    products = {
        "p1": Product(id="p1", title="High Top", price=Decimal("20.00")),
        "p2": Product(id="p2", title="Low & Slim", price=Decimal("25.00")),
    }
    return ResolvedOrder(order, products)


def legacy_order(status=OrderStatus.APPROVED):
    order = Order(
        order_number="ORD-0000ABCD",
        customer=CUSTOMER,
        status=status,
        subtotal=Decimal("85"),
        total=Decimal("85"),
        product_id="p1",
        variant="Red",
        quantity=1,
    )
    return ResolvedOrder(order, {"p1": Product(id="p1", title="High Top")})


@pytest.mark.parametrize(
    "status,subject",
    [
        (OrderStatus.APPROVED, "Order Confirmed - #ORD-0000ABCD"),
        (OrderStatus.DECLINED, "Transaction Declined - #ORD-0000ABCD"),
        (OrderStatus.ERROR, "Transaction Error - #ORD-0000ABCD"),
    ],
)
def test_subject_and_category_follow_status(status, subject):
    msg = render(cart_order(status))
    assert msg.subject == subject
    assert msg.category == f"Order-{status.value}"
    assert msg.to_email == "ada@example.com"
    assert "ORD-0000ABCD" in msg.text


def test_approved_lists_every_line_with_prices():
    html = render(cart_order()).html
    assert "High Top" in html
    assert "Low &amp; Slim" in html
    assert "Variant: Black" in html
    assert "Price: $20.00" in html
    assert "Subtotal: $40.00" in html
    assert "Total: $65.00" in html
    assert "Shipping Information" in html


def test_declined_omits_prices_and_shipping():
    html = render(cart_order(OrderStatus.DECLINED)).html
    assert "Price:" not in html
    assert "Shipping Information" not in html
    assert "different payment method" in html


def test_legacy_order_shows_single_product():
    html = render(legacy_order()).html
    assert "<p>Product: High Top</p>" in html
    assert "Variant: Red" in html
    assert "Quantity: 1" in html
    assert "Total: $85.00" in html


def test_values_are_escaped():
    html = render(cart_order()).html
    assert "Ada &lt;Lovelace&gt;" in html
    assert "<Lovelace>" not in html


def test_missing_product_falls_back_to_generic_title():
    resolved = legacy_order()
    resolved.products.clear()
    assert "<p>Product: Product</p>" in render(resolved).html


def test_default_stub_keeps_no_history():
    stub = NotifierStub()
    for _ in range(3):
        stub.send(cart_order())
    assert stub.sent == []

    recording = NotifierStub(record=True)
    recording.send(cart_order())
    assert [m.category for m in recording.sent] == ["Order-approved"]
