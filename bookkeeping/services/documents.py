import datetime
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..exceptions import ReferentialError, StateConflictError
from ..models import (Bill, BillStatus, Customer, Invoice, InvoiceStatus,
                      LineItem, PayableDocument, SalesOrder, SalesOrderStatus,
                      Vendor)
from .audit_helper import log_action
from .inventory import deliver_lines
from .numbering import next_document_number
from .totals import LineAmounts, aggregate
from .validation import (check_amount, fetch, get_owned, parse_choice,
                         parse_date, parse_line_items)

logger = logging.getLogger(__name__)

STATUS_CHOICES = {
    SalesOrder: SalesOrderStatus,
    Invoice: InvoiceStatus,
    Bill: BillStatus,
}

COUNTERPARTY_MODELS = {
    "customer": Customer,
    "vendor": Vendor,
}


def _is_payable(model):
    return issubclass(model, PayableDocument)


def _label(model):
    return model._meta.verbose_name.capitalize()


# ----------------------------------------------
# Field resolution
# ----------------------------------------------
def _resolve_fields(model, organization, data, instance=None) -> dict:
    """
    Turn request data into model field values. On update (instance given)
    only the keys present in data are returned.
    """
    creating = instance is None
    fields = {}

    counterparty = model.COUNTERPARTY_FIELD
    key = f"{counterparty}_id"
    if creating or key in data:
        if not data.get(key):
            raise ValidationError({key: ["This field is required."]})
        fields[counterparty] = get_owned(
            COUNTERPARTY_MODELS[counterparty], organization, data[key],
            counterparty.capitalize())

    if creating or "date" in data:
        fields["date"] = parse_date(data.get("date"), "date")

    for text in ("notes", "terms"):
        if text in data:
            fields[text] = data.get(text) or ""

    if creating:
        fields["currency_code"] = (
            data.get("currency_code") or organization.currency_code)
    elif data.get("currency_code"):
        fields["currency_code"] = data["currency_code"]

    if creating or "status" in data:
        status = data.get("status") or (
            STATUS_CHOICES[model].DRAFT if creating else None)
        fields["status"] = parse_choice(status, STATUS_CHOICES[model], "status")

    if _is_payable(model) and (creating or "due_date" in data):
        due_date = parse_date(data.get("due_date"), "due_date", required=False)
        if due_date is None and creating:
            # Default from the counterparty's payment terms
            party = fields[counterparty]
            due_date = fields["date"] + datetime.timedelta(
                days=party.payment_terms)
        fields["due_date"] = due_date

    if model is SalesOrder and "expected_delivery_date" in data:
        fields["expected_delivery_date"] = parse_date(
            data.get("expected_delivery_date"), "expected_delivery_date",
            required=False)

    if model is Bill and "reference_number" in data:
        fields["reference_number"] = data.get("reference_number") or ""

    if model is Invoice and "sales_order_id" in data:
        fields["sales_order"] = None
        if data.get("sales_order_id"):
            order = get_owned(
                SalesOrder, organization, data["sales_order_id"], "Sales order")
            customer = fields.get("customer") or (
                instance.customer if instance else None)
            if customer is not None and order.customer_id != customer.pk:
                raise ReferentialError(
                    "Sales order belongs to a different customer")
            fields["sales_order"] = order

    due = fields.get("due_date")
    issued = fields.get("date") or (instance.date if instance else None)
    if due and issued and due < issued:
        raise ValidationError({"due_date": ["Cannot be before the date."]})
    return fields


def _write_lines(document, lines):
    parent = document._meta.model_name  # salesorder / invoice / bill
    parent_field = {"salesorder": "sales_order"}.get(parent, parent)
    LineItem.objects.bulk_create(
        [
            LineItem(
                organization=document.organization,
                position=position,
                item=line.item,
                description=line.description,
                quantity=line.quantity,
                price=line.price,
                tax_rate=line.tax_rate,
                tax_amount=line.tax_amount,
                total=line.total,
                **{parent_field: document},
            )
            for position, line in enumerate(lines)
        ]
    )


def _set_totals(document, totals):
    check_amount(totals.total, "total")
    document.subtotal = totals.subtotal
    document.tax_total = totals.tax_total
    document.total = totals.total


# ----------------------------------------------
# Create / update / delete
# ----------------------------------------------
def create_document(model, organization, data, user=None):
    """
    Create a sales order, invoice or bill with its line items in one
    transaction. balance_due starts at the full total.
    """
    fields = _resolve_fields(model, organization, data)
    if _is_payable(model) and fields["status"] == model.PAID_STATUS:
        raise ValidationError(
            {"status": ["A new document cannot start out paid; record a payment."]})
    lines = parse_line_items(organization, data.get("line_items"))
    totals = aggregate(line.amounts for line in lines)

    with transaction.atomic():
        document = model(organization=organization, created_by=user, **fields)
        setattr(document, model.NUMBER_FIELD,
                next_document_number(organization, model))
        _set_totals(document, totals)
        if _is_payable(model):
            document.balance_due = totals.total
        document.save()
        _write_lines(document, lines)

        # Delivered on creation: goods leave the warehouse now
        if model is SalesOrder and document.status == SalesOrderStatus.DELIVERED:
            deliver_lines(organization, lines)

        log_action(
            action="create",
            instance=document,
            user=user,
            changes={"number": document.number, **totals.as_dict()},
        )
    logger.info("Created %s %s total=%s", model.__name__,
                document.number, document.total)
    return document


def update_document(model, organization, pk, data, user=None):
    """
    Update header fields and, when line_items is present, replace all lines.
    Payments already applied stay applied: balance_due = total - payments.
    """
    with transaction.atomic():
        document = fetch(model, organization, pk, lock=True)
        payable = _is_payable(model)
        if payable and document.is_paid:
            raise StateConflictError(
                f"Cannot update a paid {model._meta.verbose_name}")

        fields = _resolve_fields(model, organization, data, instance=document)
        new_status = fields.pop("status", None)
        if new_status is not None and new_status != document.status:
            if payable and new_status == model.PAID_STATUS:
                raise ValidationError(
                    {"status": ["Use the status endpoint or record a payment "
                                "to mark a document paid."]})
            _check_transition(document, new_status)
            document.status = new_status

        for name, value in fields.items():
            setattr(document, name, value)

        if "line_items" in data:
            lines = parse_line_items(organization, data.get("line_items"))
            document.line_items.all().delete()
            _write_lines(document, lines)
            totals = aggregate(line.amounts for line in lines)
        else:
            totals = aggregate(
                LineAmounts(line.quantity, line.price, line.tax_amount)
                for line in document.line_items.all()
            )
        _set_totals(document, totals)

        if payable:
            paid = document.payments_total()
            if totals.total < paid:
                raise StateConflictError(
                    f"New total ({totals.total}) is below the {paid} "
                    f"already paid")
            document.balance_due = totals.total - paid
            if paid > 0 and document.balance_due == 0:
                document.status = model.PAID_STATUS

        document.save()
        log_action(
            action="update",
            instance=document,
            user=user,
            changes={
                "fields": sorted(k for k in data if k != "line_items"),
                "lines_replaced": "line_items" in data,
                **totals.as_dict(),
            },
        )
    logger.info("Updated %s %s", model.__name__, document.number)
    return document


def delete_document(model, organization, pk, user=None):
    with transaction.atomic():
        document = fetch(model, organization, pk, lock=True)
        name = model._meta.verbose_name
        if _is_payable(model):
            if document.is_paid:
                raise StateConflictError(f"Cannot delete a paid {name}")
            if document.payments.exists():
                raise StateConflictError(
                    f"Cannot delete a {name} with recorded payments")
        if model is SalesOrder and document.invoices.exists():
            raise StateConflictError(
                "Cannot delete a sales order that has been invoiced")

        number = document.number
        log_action(
            action="delete",
            instance=document,
            user=user,
            changes={"number": number, "total": document.total},
        )
        # Lines first, then the document
        document.line_items.all().delete()
        document.delete()
    logger.info("Deleted %s %s", model.__name__, number)


# ----------------------------------------------
# Status changes
# ----------------------------------------------
def _check_transition(document, new_status):
    if not document.can_transition_to(new_status):
        raise StateConflictError(
            f"Cannot change status from {document.status} to {new_status}")
    if (
        isinstance(document, PayableDocument)
        and new_status == document.CANCELLED_STATUS
        and document.payments.exists()
    ):
        raise StateConflictError(
            f"Cannot cancel a {document._meta.verbose_name} with recorded payments")


def set_status(model, organization, pk, status, reason=None, user=None):
    """
    Narrow status change. Marking an invoice/bill paid by hand needs a
    reason and zeroes balance_due; leaving paid restores total - payments.
    """
    new_status = parse_choice(status, STATUS_CHOICES[model], "status")
    with transaction.atomic():
        document = fetch(model, organization, pk, lock=True)
        old_status = document.status
        if new_status == old_status:
            return document
        _check_transition(document, new_status)

        changes = {"from": old_status, "to": new_status}
        if _is_payable(model):
            if new_status == model.PAID_STATUS:
                if not (reason or "").strip():
                    raise ValidationError(
                        {"reason": ["A reason is required to mark a document "
                                    "paid without payments."]})
                changes["written_off"] = document.balance_due
                document.balance_due = 0
            elif old_status == model.PAID_STATUS:
                document.balance_due = document.total - document.payments_total()
                if document.balance_due <= 0:
                    raise StateConflictError(
                        f"{_label(model)} is fully settled by payments")
            changes["balance_due"] = document.balance_due
        if reason:
            changes["reason"] = reason

        document.status = new_status
        update_fields = ["status", "updated_at"]
        if _is_payable(model):
            update_fields.append("balance_due")
        document.save(update_fields=update_fields)
        log_action(action="status", instance=document, user=user,
                   changes=changes)
    logger.info("%s %s status %s -> %s", model.__name__, document.number,
                old_status, new_status)
    return document


def mark_overdue(today=None):
    """
    Flip sent invoices and received bills past their due date with money
    still owed to overdue. Returns the number of rows changed per model.
    """
    today = today or timezone.localdate()
    changed = {}
    for model, open_status, overdue_status in (
        (Invoice, InvoiceStatus.SENT, InvoiceStatus.OVERDUE),
        (Bill, BillStatus.RECEIVED, BillStatus.OVERDUE),
    ):
        changed[model.__name__] = model.objects.filter(
            status=open_status, due_date__lt=today, balance_due__gt=0
        ).update(status=overdue_status, updated_at=timezone.now())
    logger.info("Marked overdue: %s", changed)
    return changed
