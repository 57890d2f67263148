"""Money helpers.

Amounts are ``Decimal`` throughout the domain. ``round2`` rounds half away
from zero to two places, which matches how prices are presented to customers.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

from .errors import ComputationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Convert ``value`` to a finite Decimal or raise ``ComputationError``."""
    if value is None or isinstance(value, bool):
        raise ComputationError("Invalid monetary value", {"value": repr(value)})
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ComputationError("Invalid monetary value", {"value": repr(value)})
    if not d.is_finite():
        raise ComputationError("Invalid monetary value", {"value": repr(value)})
    return d


def round2(value) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_subtotal(price, quantity: int) -> Decimal:
    return round2(to_decimal(price) * quantity)


def sum_rounded(values: Iterable) -> Decimal:
    return round2(sum((to_decimal(v) for v in values), ZERO))


def is_valid_price(value) -> bool:
    try:
        return to_decimal(value) >= 0
    except ComputationError:
        return False
