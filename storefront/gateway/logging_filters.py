"""Logging setup and filters for enriching log records with request context.

``configure_logging`` attaches a JSON formatter to the ``storefront`` logger
tree. ``RequestIdFilter`` injects the current request id from the ContextVar
set by the gateway middleware, so every record can reference
``%(request_id)s`` without the call site passing it.
"""

import logging
from logging import Filter, LogRecord

from pythonjsonlogger.json import JsonFormatter

from .middleware import REQUEST_ID_CTX

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    If no value is present, a hyphen ("-") is used as a placeholder.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Install the JSON handler on the ``storefront`` root logger once."""
    logger = logging.getLogger("storefront")
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(JsonFormatter(LOG_FORMAT))
        h.addFilter(RequestIdFilter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger
