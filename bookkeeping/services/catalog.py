from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db.models import Count, F, Q

from ..models import Category, InvoiceStatus, TaxRate
from .totals import decimal_sum, money, tax_for
from .validation import get_owned, parse_choice, parse_date, parse_decimal


# ------------------------------------
# Categories
# ------------------------------------
def category_tree(organization, category_type):
    """Active categories of one type as nested dicts, roots first."""
    parse_choice(category_type, Category.Type, "type")
    categories = list(
        Category.objects.active(organization)
        .filter(type=category_type)
        .annotate(item_count=Count("items"))
        .order_by("name")
    )
    nodes = {
        c.pk: {
            "id": str(c.pk),
            "name": c.name,
            "description": c.description,
            "item_count": c.item_count,
            "children": [],
        }
        for c in categories
    }
    roots = []
    for c in categories:
        parent = nodes.get(c.parent_id)
        # A deactivated parent leaves its children at the top level
        (parent["children"] if parent else roots).append(nodes[c.pk])
    return roots


# ------------------------------------
# Tax
# ------------------------------------
def calculate_tax(organization, amount, tax_rate_id):
    subtotal = money(parse_decimal(amount, "amount", minimum=Decimal("0")))
    if not tax_rate_id:
        raise ValidationError({"tax_rate_id": ["This field is required."]})
    tax_rate = get_owned(TaxRate, organization, tax_rate_id, "Tax rate")
    if not tax_rate.is_active:
        raise ValidationError("Tax rate is inactive")
    tax_amount = tax_for(subtotal, tax_rate)
    return {
        "subtotal": subtotal,
        "tax_rate": tax_rate.rate,
        "type": tax_rate.type,
        "tax_amount": tax_amount,
        "total": subtotal + tax_amount,
    }


def tax_summary(organization, date_from=None, date_to=None):
    """
    Tax collected per rate on invoice lines, optionally within
    [date_from, date_to] of the invoice date. Cancelled invoices are ignored.
    """
    counted = [s for s in InvoiceStatus.values if s != InvoiceStatus.CANCELLED]
    line_filter = Q(line_items__invoice__status__in=counted)
    start = parse_date(date_from, "date_from", required=False)
    end = parse_date(date_to, "date_to", required=False)
    if start:
        line_filter &= Q(line_items__invoice__date__gte=start)
    if end:
        line_filter &= Q(line_items__invoice__date__lte=end)

    rows = (
        TaxRate.objects.for_organization(organization)
        .annotate(
            transaction_count=Count("line_items", filter=line_filter),
            total_tax_collected=decimal_sum(
                "line_items__tax_amount", filter=line_filter),
            total_taxable_amount=decimal_sum(
                F("line_items__total") - F("line_items__tax_amount"),
                filter=line_filter),
        )
        .order_by("rate", "name")
    )
    return [
        {
            "id": str(r.pk),
            "name": r.name,
            "rate": r.rate,
            "type": r.type,
            "transaction_count": r.transaction_count,
            "total_tax_collected": money(r.total_tax_collected),
            "total_taxable_amount": money(r.total_taxable_amount),
        }
        for r in rows
    ]
