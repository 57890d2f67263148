"""Idempotency-Key storage for the order creation endpoints.

A key is claimed by inserting a row before the order is placed. The final
HTTP status and body are written back to that row so a retry with the same
key and payload can be answered from storage instead of placing a second
order. Reusing a key for a different payload is a conflict.
"""

import hashlib
import json

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import IdempotencyKey


class IdempotencyConflict(Exception):
    """The key was already used with a different request payload."""


def canonical_hash(payload: dict) -> str:
    """SHA-256 of ``payload`` serialized with sorted keys and no whitespace."""
    body = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


def get_or_create_idempotent(session: Session, key: str, payload: dict) -> tuple[bool, IdempotencyKey]:
    """Claim ``key`` for this request, or load the record of an earlier one.

    Returns:
        tuple[bool, IdempotencyKey]: ``(False, rec)`` when the key was new and
        is now claimed; ``(True, rec)`` when an earlier request with the same
        payload owns it. ``rec.response_status`` is 0 while that request is
        still running.

    Raises:
        IdempotencyConflict: If the stored request hash differs.
    """
    h = canonical_hash(payload)
    try:
        rec = IdempotencyKey(key=key, request_hash=h, response_status=0, response_body={})
        session.add(rec)
        session.commit()
        return False, rec
    except IntegrityError:
        session.rollback()
        rec = session.execute(
            select(IdempotencyKey).where(IdempotencyKey.key == key).with_for_update()
        ).scalars().one()
        if rec.request_hash != h:
            raise IdempotencyConflict(key)
        return True, rec


def finalize(session: Session, rec: IdempotencyKey, status_code: int, body: dict, order_id: str | None = None) -> None:
    """Store the response replayed for later requests with the same key."""
    rec.response_status = status_code
    rec.response_body = body
    if order_id is not None:
        rec.order_id = order_id
    session.add(rec)
    session.commit()


def release(session: Session, rec: IdempotencyKey) -> None:
    """Drop an unfinished record so the client can retry with the same key.

    Used when the request failed for a transient reason (5xx) that should not
    be replayed.
    """
    session.rollback()
    session.delete(rec)
    session.commit()
