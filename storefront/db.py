"""SQLAlchemy engine, declarative base and session helpers.

The engine is created once at import time from ``settings.DATABASE_URL``.
PostgreSQL (psycopg) is the production target; SQLite URLs are accepted for
local runs and tests, in which case a single shared connection is used so an
in-memory database survives across sessions.
"""

import time
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import DeclarativeBase, Session
from sqlalchemy.pool import StaticPool

from . import settings


def _make_engine(url: str):
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, pool_pre_ping=True)


engine = _make_engine(settings.DATABASE_URL)


class Base(DeclarativeBase):
    pass


@contextmanager
def get_session() -> Iterator[Session]:
    """Context manager that yields a SQLAlchemy session.

    The session is automatically closed when exiting the context.

    Yields:
        Session: Active SQLAlchemy session connected to the database.
    """
    with Session(engine, expire_on_commit=False) as s:
        yield s


def session_dependency() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    with get_session() as s:
        yield s


def init_db() -> None:
    """Create every table registered on ``Base.metadata``."""
    # Model modules register their tables on import.
    from .apps.catalog import models as _catalog  # noqa: F401
    from .apps.cart import models as _cart  # noqa: F401
    from .apps.orders import models as _orders  # noqa: F401

    Base.metadata.create_all(engine)


def wait_for_db(timeout: float) -> None:
    """Block until the database accepts connections or ``timeout`` elapses."""
    deadline = time.time() + timeout
    while True:
        try:
            with engine.connect() as conn:
                conn.execute(text("select 1"))
            return
        except Exception:
            if time.time() > deadline:
                raise
            time.sleep(1)


def ping() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("select 1"))
        return True
    except Exception:
        return False
