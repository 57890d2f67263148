from decimal import Decimal

import pytest

from storefront.errors import ComputationError
from storefront.money import is_valid_price, line_subtotal, round2, sum_rounded


@pytest.mark.parametrize(
    "value,expected",
    [
        ("0.335", "0.34"),
        ("0.005", "0.01"),
        ("-0.005", "-0.01"),
        ("19.994", "19.99"),
        (85, "85.00"),
        (1.1, "1.10"),
    ],
)
def test_round2_half_away_from_zero(value, expected):
    assert round2(value) == Decimal(expected)


@pytest.mark.parametrize("bad", [None, "abc", float("nan"), float("inf"), Decimal("NaN"), True])
def test_round2_rejects_non_finite(bad):
    with pytest.raises(ComputationError):
        round2(bad)


def test_line_subtotal_and_sum():
    assert line_subtotal(Decimal("19.99"), 3) == Decimal("59.97")
    assert sum_rounded([Decimal("59.97"), Decimal("35.35")]) == Decimal("95.32")
    assert sum_rounded([]) == Decimal("0.00")


def test_is_valid_price():
    assert is_valid_price(Decimal("0"))
    assert is_valid_price("12.50")
    assert not is_valid_price(None)
    assert not is_valid_price(Decimal("-1"))
    assert not is_valid_price(float("nan"))
