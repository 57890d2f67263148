"""Storefront API built with FastAPI.

This module assembles the application: JSON logging, request-id and CORS
middleware, the error mapping for the storefront exception taxonomy, and the
catalog, cart and orders routers mounted under ``/api``. Validation is
performed with Pydantic models, while persistence is delegated to the
SQLAlchemy-backed repositories of each app.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import db, settings
from .apps.cart.routes import router as cart_router
from .apps.catalog.routes import router as catalog_router
from .apps.orders.routes import router as orders_router
from .errors import StorefrontError
from .gateway.logging_filters import configure_logging
from .gateway.middleware import RequestIdMiddleware, server_error_response

logger = configure_logging(settings.LOG_LEVEL)
app_logger = logging.getLogger("storefront.api")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # wait briefly until the database accepts connections
    db.wait_for_db(settings.DB_STARTUP_TIMEOUT_SECS)
    db.init_db()
    app_logger.info("storefront started")
    yield


def create_app(init_storage: bool = True) -> FastAPI:
    app = FastAPI(title="Storefront API", lifespan=lifespan if init_storage else None)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(StorefrontError)
    async def storefront_error(_request: Request, exc: StorefrontError):
        if exc.status_code >= 500:
            app_logger.error("request failed", extra={"error": exc.message, "details": exc.details})
        return JSONResponse(exc.to_body(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(_request: Request, exc: RequestValidationError):
        errors = [
            {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg", "")}
            for e in exc.errors()
        ]
        return JSONResponse({"message": "Invalid request", "details": {"errors": errors}}, status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error(_request: Request, exc: Exception):
        app_logger.exception("unhandled error")
        return server_error_response(exc)

    @app.get("/health")
    def health():
        """Liveness check including the database.

        Returns:
            dict: ``{"ok": bool, "components": {"db": {"ok": bool}}}``; HTTP 503
            when the database is unreachable.
        """
        db_ok = db.ping()
        return JSONResponse({"ok": db_ok, "components": {"db": {"ok": db_ok}}}, status_code=200 if db_ok else 503)

    app.include_router(catalog_router, prefix="/api")
    app.include_router(cart_router, prefix="/api")
    app.include_router(orders_router, prefix="/api")
    return app


app = create_app()
