"""Middleware that assigns and propagates a request identifier.

Every incoming HTTP request receives a request identifier. The identifier is
read from the incoming ``X-Request-ID`` header when provided by the client, or
generated server-side otherwise. It is stored on ``request.state`` and in a
context variable so code running downstream (services, log filters, the email
client) can read it without passing it explicitly.

Behavior contract:
- If the incoming request contains the ``X-Request-ID`` header, that value
  is reused as the request id.
- Otherwise a new UUIDv4 is generated.
- The response will include the same id in the ``X-Request-ID`` header,
  including 500 responses for unhandled exceptions.
"""

import contextvars
import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")

logger = logging.getLogger("storefront.gateway")


def server_error_response(exc: Exception) -> JSONResponse:
    return JSONResponse({"message": "Server error", "details": {"error": str(exc)[:200]}}, status_code=500)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Sets ``REQUEST_ID_CTX`` for the duration of a request.

    Unhandled exceptions are turned into the 500 error body here so that the
    response still carries the request id.

    Attributes:
        HEADER (str): Incoming header that may carry a client-provided id.
        RESPONSE_HEADER (str): Header added to every response.
    """

    HEADER = "X-Request-ID"
    RESPONSE_HEADER = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(self.HEADER) or str(uuid.uuid4())
        request.state.request_id = rid
        token = REQUEST_ID_CTX.set(rid)
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("unhandled error", extra={"path": request.url.path, "method": request.method})
            response = server_error_response(exc)
        finally:
            logger.info("request handled", extra={"path": request.url.path, "method": request.method})
            REQUEST_ID_CTX.reset(token)
        response.headers[self.RESPONSE_HEADER] = rid
        return response
