import datetime
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date as django_parse_date

from ..exceptions import ReferentialError
from ..models import Item, TaxRate
from .totals import LineAmounts, money, tax_for

MONEY_PLACES = 2
MONEY_DIGITS = 18
QUANTITY_PLACES = 4
QUANTITY_DIGITS = 14
QUANTITY_STEP = Decimal("0.0001")


# ------------------------------------
# Request payload parsing
# ------------------------------------
def require(data: dict, *fields):
    missing = [f for f in fields if data.get(f) in (None, "")]
    if missing:
        raise ValidationError(
            {f: ["This field is required."] for f in missing})


def check_amount(value: Decimal, field: str, *, places=MONEY_PLACES,
                 max_digits=MONEY_DIGITS):
    """Reject values the DecimalField(max_digits, places) column cannot hold."""
    if abs(value) >= Decimal(10) ** (max_digits - places):
        raise ValidationError(
            {field: [f"Must have at most {max_digits - places} digits "
                     f"before the decimal point."]})
    return value


def parse_decimal(value, field: str, *, minimum=None, strict=False,
                  required=True, places=MONEY_PLACES,
                  max_digits=MONEY_DIGITS) -> Optional[Decimal]:
    """
    Parse a JSON number/string into Decimal.
    minimum is inclusive unless strict=True. Values with more than `places`
    decimals, or too large for max_digits, are rejected rather than rounded.
    """
    if value in (None, ""):
        if required:
            raise ValidationError({field: ["This field is required."]})
        return None
    if isinstance(value, bool):
        raise ValidationError({field: ["Must be a number."]})
    try:
        # float goes through str so 0.1 stays 0.1
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError({field: ["Must be a number."]})
    if not number.is_finite():
        raise ValidationError({field: ["Must be a number."]})
    check_amount(number, field, places=places, max_digits=max_digits)
    if number and -number.normalize().as_tuple().exponent > places:
        raise ValidationError(
            {field: [f"Must have at most {places} decimal places."]})
    if minimum is not None:
        if strict and number <= minimum:
            raise ValidationError({field: [f"Must be greater than {minimum}."]})
        if not strict and number < minimum:
            raise ValidationError(
                {field: [f"Must be greater than or equal to {minimum}."]})
    return number


def parse_date(value, field: str, *, required=True) -> Optional[datetime.date]:
    if value in (None, ""):
        if required:
            raise ValidationError({field: ["This field is required."]})
        return None
    if isinstance(value, datetime.date):
        return value
    try:
        parsed = django_parse_date(str(value)[:10])
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError({field: ["Enter a valid date (YYYY-MM-DD)."]})
    return parsed


def parse_choice(value, choices, field: str):
    """Validate value against a TextChoices class."""
    if value not in choices.values:
        allowed = ", ".join(choices.values)
        raise ValidationError({field: [f"Must be one of: {allowed}."]})
    return choices(value)


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "on")


def get_owned(model, organization, pk, label: str, *, lock=False):
    """
    Fetch a row of `model` that belongs to `organization`.
    Missing rows and rows of other organizations are indistinguishable.
    """
    try:
        uuid.UUID(str(pk))
    except ValueError:
        raise ReferentialError(f"{label} not found")
    qs = model.objects.for_organization(organization)
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=pk)
    except model.DoesNotExist:
        raise ReferentialError(f"{label} not found")


# ------------------------------------
# Line items
# ------------------------------------
@dataclass
class ParsedLine:
    description: str
    quantity: Decimal
    price: Decimal
    tax_amount: Decimal
    item: Optional[Item] = None
    tax_rate: Optional[TaxRate] = None

    @property
    def amounts(self) -> LineAmounts:
        return LineAmounts(self.quantity, self.price, self.tax_amount)

    @property
    def total(self) -> Decimal:
        return self.amounts.total


def parse_line_items(organization, raw_lines) -> List[ParsedLine]:
    """
    Validate incoming line items and resolve their item/tax rate references.

    Each line needs a quantity > 0 and a price >= 0. Description defaults to
    the item name; tax_amount is computed from tax_rate_id when omitted.
    """
    if raw_lines is None:
        return []
    if not isinstance(raw_lines, list):
        raise ValidationError({"line_items": ["Must be a list."]})

    parsed = []
    for index, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise ValidationError(
                {"line_items": [f"Line {index + 1} must be an object."]})
        prefix = f"line_items[{index}]"

        item = None
        if raw.get("item_id"):
            item = get_owned(Item, organization, raw["item_id"], "Item")

        tax_rate = None
        if raw.get("tax_rate_id"):
            tax_rate = get_owned(
                TaxRate, organization, raw["tax_rate_id"], "Tax rate")
        elif "tax_rate_id" not in raw and item is not None:
            # An explicit null opts the line out of the item's default rate
            tax_rate = item.tax_rate

        quantity = parse_decimal(
            raw.get("quantity"), f"{prefix}.quantity",
            minimum=Decimal("0"), strict=True, places=QUANTITY_PLACES,
            max_digits=QUANTITY_DIGITS).quantize(QUANTITY_STEP)
        if quantity <= 0:
            raise ValidationError(
                {f"{prefix}.quantity": ["Must be greater than 0."]})
        price = raw.get("price")
        if price in (None, "") and item is not None:
            price = item.price
        price = money(parse_decimal(
            price, f"{prefix}.price", minimum=Decimal("0")))

        # "tax" is accepted as an alias of tax_amount
        tax_value = raw.get("tax_amount", raw.get("tax"))
        if tax_value in (None, ""):
            tax_amount = tax_for(money(quantity * price), tax_rate)
        else:
            tax_amount = money(parse_decimal(
                tax_value, f"{prefix}.tax_amount", minimum=Decimal("0")))

        description = (raw.get("description") or "").strip()
        if not description and item is not None:
            description = item.name
        if not description:
            raise ValidationError(
                {f"{prefix}.description": ["This field is required."]})

        line = ParsedLine(
            description=description[:500],
            quantity=quantity,
            price=price,
            tax_amount=tax_amount,
            item=item,
            tax_rate=tax_rate,
        )
        check_amount(line.total, f"{prefix}.total")
        parsed.append(line)
    return parsed


def fetch(model, organization, pk, *, lock=False):
    """
    Like get_owned, but for the object a request addresses directly:
    raises model.DoesNotExist so the caller answers 404.
    """
    try:
        uuid.UUID(str(pk))
    except ValueError:
        raise model.DoesNotExist(f"{model._meta.verbose_name} not found")
    qs = model.objects.for_organization(organization)
    if lock:
        qs = qs.select_for_update()
    return qs.get(pk=pk)
