import calendar
import datetime

from django.core.exceptions import ValidationError
from django.db.models import Avg, Count, F, Max, Q
from django.db.models.functions import TruncDay, TruncMonth, TruncWeek
from django.utils import timezone

from ..models import (Bill, BillStatus, Customer, Invoice, InvoiceStatus,
                      Item, LineItem, PayableDocument, Payment,
                      PaymentDirection, Vendor)
from .totals import ZERO, decimal_sum, money

SUMMARY_PERIODS = ("week", "month", "quarter", "year")
TREND_PERIODS = {
    "monthly": (TruncMonth, "%Y-%m"),
    "weekly": (TruncWeek, "%G-W%V"),
    "daily": (TruncDay, "%Y-%m-%d"),
}


def months_ago(day: datetime.date, months: int) -> datetime.date:
    """Same day `months` calendar months earlier, clamped to month end."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, min(day.day, last))


def period_start(period: str, today=None) -> datetime.date:
    today = today or timezone.localdate()
    if period == "week":
        return today - datetime.timedelta(days=7)
    if period == "month":
        return months_ago(today, 1)
    if period == "quarter":
        return months_ago(today, 3)
    if period == "year":
        return months_ago(today, 12)
    raise ValidationError(
        {"period": [f"Must be one of: {', '.join(SUMMARY_PERIODS)}."]})


# ------------------------------------
# Dashboard
# ------------------------------------
def dashboard_stats(organization, today=None):
    today = today or timezone.localdate()
    invoices = Invoice.objects.for_organization(organization)
    bills = Bill.objects.for_organization(organization)
    open_invoices = invoices.filter(
        status__in=[InvoiceStatus.SENT, InvoiceStatus.OVERDUE])
    open_bills = bills.filter(
        status__in=[BillStatus.RECEIVED, BillStatus.OVERDUE])

    top_customers = (
        Customer.objects.active(organization)
        .annotate(
            total=decimal_sum(
                "invoices__total",
                filter=Q(invoices__status=InvoiceStatus.PAID)))
        .order_by("-total", "name")[:5]
    )
    upcoming = (
        open_invoices.filter(due_date__lte=today + datetime.timedelta(days=30))
        .select_related("customer")
        .order_by("due_date")[:5]
    )
    recent_payments = (
        Payment.objects.for_organization(organization)
        .select_related("customer", "vendor")
        .order_by("-date", "-created_at")[:10]
    )

    return {
        "total_revenue": invoices.filter(status=InvoiceStatus.PAID).aggregate(
            v=decimal_sum("total"))["v"],
        "total_expenses": bills.filter(status=BillStatus.PAID).aggregate(
            v=decimal_sum("total"))["v"],
        "outstanding_invoices": open_invoices.count(),
        "overdue_invoices": invoices.filter(status=InvoiceStatus.OVERDUE).count(),
        "accounts_receivable": open_invoices.aggregate(
            v=decimal_sum("balance_due"))["v"],
        "accounts_payable": open_bills.aggregate(
            v=decimal_sum("balance_due"))["v"],
        "total_customers": Customer.objects.active(organization).count(),
        "total_vendors": Vendor.objects.active(organization).count(),
        "low_stock_items": Item.objects.active(organization)
        .filter(type=Item.Type.PRODUCT)
        .filter(quantity__lte=F("reorder_level"))
        .count(),
        "top_customers": [
            {"id": str(c.pk), "name": c.name, "email": c.email, "total": c.total}
            for c in top_customers
        ],
        "upcoming_payments": [
            {
                "invoice_number": inv.invoice_number,
                "due_date": inv.due_date,
                "amount": inv.balance_due,
                "customer_name": inv.customer.name,
            }
            for inv in upcoming
        ],
        "recent_payments": [
            {
                "payment_number": p.payment_number,
                "date": p.date,
                "direction": p.direction,
                "amount": p.amount,
                "counterparty": str(p.counterparty) if p.counterparty else None,
            }
            for p in recent_payments
        ],
    }


def revenue_trends(organization, period="monthly", today=None):
    """Paid invoice totals over the last 12 months, bucketed by period."""
    if period not in TREND_PERIODS:
        raise ValidationError(
            {"period": [f"Must be one of: {', '.join(TREND_PERIODS)}."]})
    trunc, label = TREND_PERIODS[period]
    today = today or timezone.localdate()
    rows = (
        Invoice.objects.for_organization(organization)
        .filter(status=InvoiceStatus.PAID, date__gte=months_ago(today, 12))
        .annotate(bucket=trunc("date"))
        .values("bucket")
        .annotate(revenue=decimal_sum("total"), invoice_count=Count("id"))
        .order_by("bucket")
    )
    return [
        {
            "period": row["bucket"].strftime(label),
            "revenue": row["revenue"],
            "invoice_count": row["invoice_count"],
        }
        for row in rows
    ]


def _monthly_payments(organization, direction, since):
    rows = (
        Payment.objects.for_organization(organization)
        .filter(direction=direction, date__gte=since)
        .annotate(month=TruncMonth("date"))
        .values("month")
        .annotate(amount=decimal_sum("amount"))
        .order_by("month")
    )
    return [
        {"month": row["month"].strftime("%Y-%m"), "amount": row["amount"]}
        for row in rows
    ]


def cash_flow(organization, today=None):
    """Money in vs. money out per month over the last six months."""
    today = today or timezone.localdate()
    since = months_ago(today, 6)
    inflows = _monthly_payments(organization, PaymentDirection.INCOMING, since)
    outflows = _monthly_payments(organization, PaymentDirection.OUTGOING, since)
    total_in = sum((row["amount"] for row in inflows), ZERO)
    total_out = sum((row["amount"] for row in outflows), ZERO)
    return {
        "cash_inflows": inflows,
        "cash_outflows": outflows,
        "net": total_in - total_out,
    }


def expense_breakdown(organization):
    """Bill line totals grouped by the category of the item purchased."""
    rows = (
        LineItem.objects.for_organization(organization)
        .filter(bill__isnull=False)
        .exclude(bill__status=BillStatus.CANCELLED)
        .values("item__category__name")
        .annotate(total=decimal_sum("total"), count=Count("id"))
        .order_by("-total")
    )
    return [
        {
            "category": row["item__category__name"] or "Uncategorized",
            "total": row["total"],
            "count": row["count"],
        }
        for row in rows
    ]


# ------------------------------------
# Per-resource summaries
# ------------------------------------
def document_summary(model, organization, period="month", today=None):
    """Counts per status and money totals for documents dated in the period."""
    since = period_start(period, today)
    qs = model.objects.for_organization(organization).filter(date__gte=since)
    aggregates = {
        "count": Count("id"),
        "total_amount": decimal_sum("total"),
        "average_value": Avg("total"),
    }
    if issubclass(model, PayableDocument):
        aggregates["paid_amount"] = decimal_sum(
            "total", filter=Q(status=model.PAID_STATUS))
        aggregates["outstanding_amount"] = decimal_sum(
            "balance_due", filter=~Q(status=model.CANCELLED_STATUS))
    summary = qs.aggregate(**aggregates)
    summary["average_value"] = money(summary["average_value"])
    by_status = dict(
        qs.order_by().values_list("status").annotate(n=Count("id"))
    )
    summary["by_status"] = {
        value: by_status.get(value, 0)
        for value, _label in model._meta.get_field("status").choices
    }
    summary["period"] = period
    summary["since"] = since
    return summary


def payment_summary(organization, period="month", today=None):
    since = period_start(period, today)
    qs = Payment.objects.for_organization(organization).filter(date__gte=since)
    summary = qs.aggregate(
        count=Count("id"),
        incoming_total=decimal_sum(
            "amount", filter=Q(direction=PaymentDirection.INCOMING)),
        outgoing_total=decimal_sum(
            "amount", filter=Q(direction=PaymentDirection.OUTGOING)),
    )
    summary["net"] = summary["incoming_total"] - summary["outgoing_total"]
    summary["period"] = period
    summary["since"] = since
    return summary


def customer_stats(customer):
    invoices = customer.invoices.exclude(status=InvoiceStatus.CANCELLED)
    stats = invoices.aggregate(
        total_invoices=Count("id"),
        total_invoiced=decimal_sum("total"),
        outstanding_balance=decimal_sum("balance_due"),
        avg_invoice_value=Avg("total"),
        last_invoice_date=Max("date"),
    )
    stats["avg_invoice_value"] = money(stats["avg_invoice_value"])
    stats.update(customer.sales_orders.aggregate(
        total_orders=Count("id"), last_order_date=Max("date")))
    stats["total_paid"] = customer.payments.aggregate(
        v=decimal_sum("amount"))["v"]
    return stats


def vendor_stats(vendor):
    bills = vendor.bills.exclude(status=BillStatus.CANCELLED)
    stats = bills.aggregate(
        total_bills=Count("id"),
        total_billed=decimal_sum("total"),
        outstanding_balance=decimal_sum("balance_due"),
        avg_bill_value=Avg("total"),
        last_bill_date=Max("date"),
    )
    stats["avg_bill_value"] = money(stats["avg_bill_value"])
    stats["total_paid"] = vendor.payments.aggregate(
        v=decimal_sum("amount"))["v"]
    return stats


def item_stats(item):
    lines = item.line_items.all()
    sold = lines.filter(invoice__isnull=False).exclude(
        invoice__status=InvoiceStatus.CANCELLED)
    bought = lines.filter(bill__isnull=False).exclude(
        bill__status=BillStatus.CANCELLED)
    ordered = lines.filter(sales_order__isnull=False)
    stats = {}
    stats.update(sold.aggregate(
        times_sold=Count("id"),
        quantity_sold=decimal_sum("quantity", places=4),
        revenue=decimal_sum("total"),
    ))
    stats.update(bought.aggregate(
        times_purchased=Count("id"),
        quantity_purchased=decimal_sum("quantity", places=4),
        purchase_cost=decimal_sum("total"),
    ))
    stats["times_ordered"] = ordered.count()
    stats["quantity_on_hand"] = item.quantity
    stats["stock_value"] = money(item.quantity * item.cost_price)
    stats["is_low_stock"] = item.is_low_stock
    return stats


def category_stats(category):
    """Items filed under the category and what bills spent on them."""
    stats = category.items.aggregate(
        item_count=Count("id"),
        active_item_count=Count("id", filter=Q(is_active=True)),
    )
    spend = (
        LineItem.objects.for_organization(category.organization)
        .filter(item__category=category, bill__isnull=False)
        .exclude(bill__status=BillStatus.CANCELLED)
    )
    stats.update(spend.aggregate(
        expense_count=Count("id"),
        total_expense_amount=decimal_sum("total"),
    ))
    stats["subcategory_count"] = category.children.count()
    return stats
