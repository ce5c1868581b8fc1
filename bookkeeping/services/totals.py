from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List

from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    """Quantize to cents, half-up, the way every stored amount is rounded."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineAmounts:
    quantity: Decimal
    price: Decimal
    tax_amount: Decimal = ZERO

    @property
    def amount(self) -> Decimal:
        return money(self.quantity * self.price)

    @property
    def total(self) -> Decimal:
        # line total = quantity * price + tax
        return self.amount + money(self.tax_amount)


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal = ZERO
    tax_total: Decimal = ZERO
    total: Decimal = ZERO

    def as_dict(self):
        return {
            "subtotal": self.subtotal,
            "tax_total": self.tax_total,
            "total": self.total,
        }


def aggregate(lines: Iterable[LineAmounts]) -> DocumentTotals:
    """
    subtotal = sum(quantity * price), tax_total = sum(tax_amount),
    total = subtotal + tax_total. An empty list gives all zeros.
    Rounding happens per line so total always equals the sum of line totals.
    """
    lines: List[LineAmounts] = list(lines)
    subtotal = sum((line.amount for line in lines), ZERO)
    tax_total = sum((money(line.tax_amount) for line in lines), ZERO)
    return DocumentTotals(
        subtotal=subtotal, tax_total=tax_total, total=subtotal + tax_total
    )


def tax_for(amount: Decimal, tax_rate) -> Decimal:
    """Tax a line amount with a TaxRate (percentage of amount, or flat)."""
    if tax_rate is None:
        return ZERO
    if tax_rate.type == "fixed":
        return money(tax_rate.rate)
    return money(amount * tax_rate.rate / Decimal("100"))


def decimal_sum(expression, places=2, **extra):
    """SUM() that yields 0 instead of NULL over an empty set."""
    return Coalesce(
        Sum(expression, **extra),
        Value(ZERO),
        output_field=DecimalField(max_digits=20, decimal_places=places),
    )
