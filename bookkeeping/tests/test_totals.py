from decimal import Decimal
from types import SimpleNamespace

import pytest
from django.core.exceptions import ValidationError

from ..services.totals import LineAmounts, aggregate, money, tax_for
from ..services.validation import parse_decimal


def test_money_rounds_half_up():
    assert money(Decimal("2.345")) == Decimal("2.35")
    assert money("0.125") == Decimal("0.13")
    assert money(None) == Decimal("0.00")


def test_aggregate_two_lines():
    totals = aggregate([
        LineAmounts(Decimal("2"), Decimal("100"), Decimal("18")),
        LineAmounts(Decimal("1"), Decimal("50"), Decimal("9")),
    ])
    assert totals.subtotal == Decimal("250.00")
    assert totals.tax_total == Decimal("27.00")
    assert totals.total == Decimal("277.00")


def test_aggregate_empty_is_zero():
    totals = aggregate([])
    assert totals.as_dict() == {
        "subtotal": Decimal("0.00"),
        "tax_total": Decimal("0.00"),
        "total": Decimal("0.00"),
    }


def test_total_equals_sum_of_line_totals_with_fractional_quantities():
    rows = [
        LineAmounts(Decimal("0.3333"), Decimal("9.99"), Decimal("0.60")),
        LineAmounts(Decimal("1.5"), Decimal("0.07"), Decimal("0")),
        LineAmounts(Decimal("3"), Decimal("33.33"), Decimal("18.00")),
    ]
    totals = aggregate(rows)
    assert totals.subtotal + totals.tax_total == totals.total
    assert totals.total == sum((r.total for r in rows), Decimal("0"))


@pytest.mark.parametrize(
    "rate_type, rate, amount, expected",
    [
        ("percentage", "18.00", "250.00", "45.00"),
        ("percentage", "5.00", "10.10", "0.51"),
        ("fixed", "12.50", "999.00", "12.50"),
    ],
)
def test_tax_for(rate_type, rate, amount, expected):
    tax_rate = SimpleNamespace(type=rate_type, rate=Decimal(rate))
    assert tax_for(Decimal(amount), tax_rate) == Decimal(expected)


def test_tax_for_without_rate_is_zero():
    assert tax_for(Decimal("100"), None) == Decimal("0.00")


@pytest.mark.parametrize(
    "raw, expected",
    [("100.50", "100.50"), ("1E+2", "100"), (12, "12"), ("0.000", "0")],
)
def test_parse_decimal_accepts_storable_values(raw, expected):
    assert parse_decimal(raw, "amount") == Decimal(expected)


@pytest.mark.parametrize(
    "raw", ["1e30", "10000000000000000", "100.005", "NaN", "abc", True])
def test_parse_decimal_rejects_unstorable_values(raw):
    with pytest.raises(ValidationError):
        parse_decimal(raw, "amount")


def test_parse_decimal_quantity_bounds():
    assert parse_decimal("0.1234", "quantity", places=4,
                         max_digits=14) == Decimal("0.1234")
    with pytest.raises(ValidationError):
        parse_decimal("0.12345", "quantity", places=4, max_digits=14)
    with pytest.raises(ValidationError):
        parse_decimal("10000000000", "quantity", places=4, max_digits=14)
