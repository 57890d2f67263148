"""HTTP email client with a circuit breaker and request correlation.

This module implements the ``NotifierPort`` against a transactional email
HTTP API using ``httpx``. It adds:

- Request correlation: propagates ``X-Request-ID`` from the ContextVar set
  by the gateway middleware.
- A circuit breaker so a failing email provider is not called on every order
  while it is down, with HALF_OPEN probing after a timeout.

Delivery is attempted once per call; there are no retries. Any failure is
raised as ``NotificationError`` and left to the caller to record.
"""

import logging
import threading
import time
from typing import Optional

import httpx

from storefront import settings
from storefront.apps.orders.domain import NotifierPort, ResolvedOrder
from storefront.errors import NotificationError
from storefront.gateway.middleware import REQUEST_ID_CTX

from .templates import EmailMessage, render

logger = logging.getLogger("storefront.notifications")


class CircuitBreaker:
    """Fail fast while the email provider keeps failing.

    After ``fail_threshold`` failures the circuit opens and ``before_call``
    raises without contacting the provider. Once ``reset_timeout`` seconds
    have passed one trial request is let through: success closes the
    circuit, failure opens it again for another ``reset_timeout``.
    """

    def __init__(self, name: str, fail_threshold: int, reset_timeout: float):
        self.name = name
        self.fail_threshold = fail_threshold
        self.reset_timeout = reset_timeout
        self._lock = threading.RLock()
        self._failures = 0
        self._state = "CLOSED"
        self._opened_at = 0.0
        self._probing = False

    @property
    def state(self) -> str:
        with self._lock:
            if self._state == "OPEN" and (time.monotonic() - self._opened_at) >= self.reset_timeout:
                self._state = "HALF_OPEN"
                self._probing = False
            return self._state

    def before_call(self) -> str:
        """Raise ``NotificationError`` unless a send may go out now."""
        with self._lock:
            st = self.state
            if st == "OPEN":
                raise NotificationError("CIRCUIT_OPEN", {"circuit": self.name})
            if st == "HALF_OPEN":
                if self._probing:
                    raise NotificationError("CIRCUIT_HALF_OPEN_BUSY", {"circuit": self.name})
                self._probing = True
            return st

    def on_success(self):
        with self._lock:
            self._failures = 0
            self._state = "CLOSED"
            self._probing = False

    def on_failure(self):
        with self._lock:
            self._failures += 1
            tripped = self._failures >= self.fail_threshold and self._state != "OPEN"
            if self._state == "HALF_OPEN" or tripped:
                self._state = "OPEN"
                self._opened_at = time.monotonic()
                self._probing = False

    def on_finish(self):
        with self._lock:
            if self._state == "HALF_OPEN":
                self._probing = False


_mail_cb = CircuitBreaker(
    "mail",
    settings.MAIL_CIRCUIT_FAIL_THRESHOLD,
    settings.MAIL_CIRCUIT_RESET_TIMEOUT,
)


def _request_headers(extra: Optional[dict] = None) -> dict:
    headers: dict[str, str] = {"Accept": "application/json"}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


def build_payload(msg: EmailMessage, from_email: str, from_name: str) -> dict:
    return {
        "to": [{"email": msg.to_email, "name": msg.to_name}],
        "from": {"email": from_email, "name": from_name},
        "subject": msg.subject,
        "text": msg.text,
        "html": msg.html,
        "category": msg.category,
    }


class HttpEmailClient(NotifierPort):
    """Sends order emails through the transactional email HTTP API."""

    def __init__(
        self,
        api_url: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
        breaker: CircuitBreaker | None = None,
    ):
        self.api_url = api_url or settings.MAIL_API_URL
        self.api_token = api_token or settings.MAIL_API_TOKEN or ""
        self.timeout = timeout or settings.MAIL_TIMEOUT_SECS
        self.breaker = breaker or _mail_cb
        self.from_email = settings.MAIL_FROM_EMAIL
        self.from_name = settings.MAIL_FROM_NAME

    def send(self, resolved: ResolvedOrder) -> dict:
        """Render and deliver the status email for ``resolved``.

        Returns:
            dict: The provider's JSON response.

        Raises:
            NotificationError: When the circuit is open, on transport errors,
                or when the provider answers with a non-2xx status.
        """
        msg = render(resolved)
        payload = build_payload(msg, self.from_email, self.from_name)
        headers = _request_headers({"Api-Token": self.api_token})

        self.breaker.before_call()
        try:
            with httpx.Client(timeout=self.timeout) as client:
                try:
                    resp = client.post(self.api_url, json=payload, headers=headers)
                except httpx.RequestError as e:
                    self.breaker.on_failure()
                    raise NotificationError("Email API unreachable", {"error": str(e)[:200]}) from e

                if resp.status_code >= 400:
                    self.breaker.on_failure()
                    raise NotificationError(
                        "Email API rejected the message",
                        {"status": resp.status_code, "body": resp.text[:200]},
                    )
                self.breaker.on_success()
                logger.info(
                    "email sent",
                    extra={"order_number": resolved.order.order_number, "category": msg.category},
                )
                try:
                    return resp.json()
                except ValueError:
                    return {}
        finally:
            self.breaker.on_finish()
