"""In-process stub notifier.

Implements ``NotifierPort`` without any network call. It is wired when no
email API token is configured (local development), where it only logs the
rendered message. Tests build it with ``record=True`` and assert on ``sent``.
"""

import logging
from typing import List

from storefront.apps.orders.domain import NotifierPort, ResolvedOrder
from storefront.errors import NotificationError

from .templates import EmailMessage, render

logger = logging.getLogger("storefront.notifications")


class NotifierStub(NotifierPort):
    """Renders each email and logs it instead of delivering it.

    Args:
        fail: When True every ``send`` raises, to simulate a provider outage.
        record: Keep rendered messages in ``sent``.
    """

    def __init__(self, fail: bool = False, record: bool = False):
        self.fail = fail
        self.record = record
        self.sent: List[EmailMessage] = []

    def send(self, resolved: ResolvedOrder) -> None:
        if self.fail:
            raise NotificationError("notifier unavailable")
        msg = render(resolved)
        if self.record:
            self.sent.append(msg)
        logger.info(
            "email captured",
            extra={"order_number": resolved.order.order_number, "category": msg.category, "to": msg.to_email},
        )
