"""HTML and plain-text bodies for order status emails.

One template family per order status. Cart orders list every line; legacy
direct orders show the single product. Every interpolated value is escaped.
"""

from dataclasses import dataclass
from decimal import Decimal
from html import escape
from typing import List

from storefront.apps.orders.domain import OrderStatus, ResolvedOrder

ITEM_STYLE = "margin-bottom: 15px; border-bottom: 1px solid #eee; padding-bottom: 15px;"


@dataclass(frozen=True)
class EmailMessage:
    to_email: str
    to_name: str
    subject: str
    text: str
    html: str
    category: str


def _money(value) -> str:
    return f"${Decimal(value or 0):.2f}"


def _lines(resolved: ResolvedOrder, show_price: bool) -> str:
    order = resolved.order
    if not order.items:
        product = resolved.product(order.product_id)
        parts = [f"<p>Product: {escape(product.title if product else 'Product')}</p>"]
        if order.variant:
            parts.append(f"<p>Variant: {escape(order.variant)}</p>")
        parts.append(f"<p>Quantity: {order.quantity}</p>")
        return "\n".join(parts)

    blocks: List[str] = []
    for item in order.items:
        product = resolved.product(item.product_id)
        rows = [f"<p><strong>Product:</strong> {escape(product.title if product else 'Product')}</p>"]
        if item.variant:
            rows.append(f"<p>Variant: {escape(item.variant)}</p>")
        rows.append(f"<p>Quantity: {item.quantity}</p>")
        if show_price:
            rows.append(f"<p>Price: {_money(item.price)}</p>")
        rows.append(f"<p>Subtotal: {_money(item.subtotal)}</p>")
        blocks.append(f'<div style="{ITEM_STYLE}">' + "".join(rows) + "</div>")
    return "\n".join(blocks)


def _shipping(resolved: ResolvedOrder) -> str:
    c = resolved.order.customer
    return (
        "<h2>Shipping Information:</h2>"
        f"<p>{escape(c.full_name)}</p>"
        f"<p>{escape(c.address)}</p>"
        f"<p>{escape(c.city)}, {escape(c.state)} {escape(c.zip_code)}</p>"
    )


def approved_html(resolved: ResolvedOrder) -> str:
    order = resolved.order
    return (
        f"<h1>Order Confirmed - #{escape(order.order_number)}</h1>"
        "<p>Thank you for your purchase!</p>"
        "<h2>Order Details:</h2>"
        f"{_lines(resolved, show_price=True)}"
        f"<p><strong>Total: {_money(order.total)}</strong></p>"
        f"{_shipping(resolved)}"
        "<p>We'll notify you when your order ships!</p>"
    )


def declined_html(resolved: ResolvedOrder) -> str:
    order = resolved.order
    return (
        f"<h1>Transaction Declined - #{escape(order.order_number)}</h1>"
        "<p>We're sorry, but your transaction was declined.</p>"
        "<h2>Order Details:</h2>"
        f"{_lines(resolved, show_price=False)}"
        f"<p><strong>Total: {_money(order.total)}</strong></p>"
        "<p>Please try again with a different payment method or contact your bank for assistance.</p>"
        "<p>If you need help, please contact our support team.</p>"
    )


def error_html(resolved: ResolvedOrder) -> str:
    order = resolved.order
    return (
        f"<h1>Transaction Error - #{escape(order.order_number)}</h1>"
        "<p>We're sorry, but there was an error processing your transaction.</p>"
        "<h2>Order Details:</h2>"
        f"{_lines(resolved, show_price=False)}"
        f"<p><strong>Total: {_money(order.total)}</strong></p>"
        "<p>Our team has been notified of this issue. "
        "Please try again later or contact our support team for assistance.</p>"
    )


def render(resolved: ResolvedOrder) -> EmailMessage:
    """Build the email for the order's status.

    Unknown statuses fall back to the approved body with an "Order Update"
    subject.
    """
    order = resolved.order
    number = order.order_number
    status = order.status.value if isinstance(order.status, OrderStatus) else str(order.status)

    if status == OrderStatus.APPROVED.value:
        subject = f"Order Confirmed - #{number}"
        html = approved_html(resolved)
        text = f"Thank you for your order #{number}. Your transaction has been approved."
    elif status == OrderStatus.DECLINED.value:
        subject = f"Transaction Declined - #{number}"
        html = declined_html(resolved)
        text = f"We're sorry, but your transaction for order #{number} was declined."
    elif status == OrderStatus.ERROR.value:
        subject = f"Transaction Error - #{number}"
        html = error_html(resolved)
        text = f"We encountered an error processing your transaction for order #{number}."
    else:
        subject = f"Order Update - #{number}"
        html = approved_html(resolved)
        text = f"Order update for #{number}"

    return EmailMessage(
        to_email=order.customer.email or "customer@example.com",
        to_name=order.customer.full_name or "Customer",
        subject=subject,
        text=text,
        html=html,
        category=f"Order-{status}",
    )
