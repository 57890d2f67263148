"""HTTP routes for orders.

Routes are kept small: they validate requests (via Pydantic), delegate to the
``OrderService`` and render the response.

Idempotency: when an ``Idempotency-Key`` header is provided on an order
creation endpoint, the first request creates a record and, upon completion,
stores the response. Retries with the same payload replay the stored response
with its original status code and an ``Idempotent-Replay: true`` header. If
the same key is reused with a different payload, the endpoint returns HTTP 409.
Server-side failures (5xx) release the key so the client can retry.
"""

from typing import Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from storefront.db import session_dependency
from storefront.errors import StorefrontError
from storefront.providers import get_order_service

from .domain import OrderService, ResolvedOrder
from .idempotency import IdempotencyConflict, finalize, get_or_create_idempotent, release
from .schemas import CheckoutCartIn, CreateOrderIn, OrderCreatedOut, OrderOut

router = APIRouter(prefix="/orders", tags=["orders"])


def _created(resolved: ResolvedOrder) -> dict:
    return OrderCreatedOut(order=OrderOut.from_resolved(resolved)).model_dump(mode="json", by_alias=True)


def _place(request: Request, session: Session, payload: dict, place: Callable[[], ResolvedOrder]) -> JSONResponse:
    idem_key = request.headers.get("Idempotency-Key")
    rec = None
    if idem_key:
        try:
            existing, rec = get_or_create_idempotent(session, idem_key, payload)
        except IdempotencyConflict:
            return JSONResponse({"message": "IDEMPOTENCY_CONFLICT"}, status_code=409)
        if existing:
            if not rec.response_status:
                return JSONResponse({"message": "IDEMPOTENCY_IN_PROGRESS"}, status_code=409)
            resp = JSONResponse(rec.response_body, status_code=rec.response_status)
            resp.headers["Idempotent-Replay"] = "true"
            return resp

    try:
        resolved = place()
    except StorefrontError as e:
        if rec is not None:
            if e.status_code < 500:
                finalize(session, rec, e.status_code, e.to_body())
            else:
                release(session, rec)
        raise
    except Exception:
        if rec is not None:
            release(session, rec)
        raise

    body = _created(resolved)
    if rec is not None:
        finalize(session, rec, 201, body, order_id=resolved.order.id)
    return JSONResponse(body, status_code=201)


@router.post("", response_model=OrderCreatedOut, status_code=201)
def create_order(
    req: CreateOrderIn,
    request: Request,
    session: Session = Depends(session_dependency),
    orders: OrderService = Depends(get_order_service),
):
    """Place a direct single-product order."""
    return _place(
        request,
        session,
        req.model_dump(mode="json"),
        lambda: orders.create_direct(
            product_id=req.product_id,
            quantity=req.quantity,
            customer=req.customer.to_domain(),
            subtotal=req.subtotal,
            total=req.total,
            variant=req.variant,
            payment=req.payment_info.to_domain() if req.payment_info else None,
        ),
    )


@router.post("/checkout", response_model=OrderCreatedOut, status_code=201)
def checkout_cart(
    req: CheckoutCartIn,
    request: Request,
    session: Session = Depends(session_dependency),
    orders: OrderService = Depends(get_order_service),
):
    """Place an order for the whole cart of ``userId``."""
    return _place(
        request,
        session,
        req.model_dump(mode="json"),
        lambda: orders.create_from_cart(
            req.user_id,
            req.customer.to_domain(),
            req.payment_info.to_domain() if req.payment_info else None,
        ),
    )


@router.get("/{order_number}", response_model=OrderOut)
def get_order(order_number: str, orders: OrderService = Depends(get_order_service)):
    return OrderOut.from_resolved(orders.get_by_number(order_number))
