import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from ..exceptions import ReferentialError
from ..models import (Bill, Customer, Invoice, Payment, PaymentDirection,
                      PaymentMethod, Vendor)
from .audit_helper import log_action
from .numbering import next_document_number
from .totals import money
from .validation import fetch, get_owned, parse_choice, parse_date, parse_decimal

logger = logging.getLogger(__name__)

LINK_FIELDS = ("customer_id", "vendor_id", "invoice_id", "bill_id")
VALUE_FIELDS = (
    "direction", "amount", "date", "payment_method", "currency_code",
    "reference_number", "notes",
)


# ----------------------------
# Payment field resolution
# ----------------------------
def _resolve_fields(organization, data) -> dict:
    """
    Validate a complete payment payload and resolve its links.
    Invoice/bill rows come back locked (select_for_update).
    """
    direction = parse_choice(data.get("direction"), PaymentDirection, "direction")
    amount = money(parse_decimal(
        data.get("amount"), "amount", minimum=Decimal("0"), strict=True))
    if amount <= 0:
        raise ValidationError({"amount": ["Must be greater than 0."]})

    fields = {
        "direction": direction,
        "amount": amount,
        "date": parse_date(data.get("date"), "date"),
        "payment_method": parse_choice(
            data.get("payment_method") or PaymentMethod.CASH,
            PaymentMethod, "payment_method"),
        "currency_code": data.get("currency_code") or organization.currency_code,
        "reference_number": data.get("reference_number") or "",
        "notes": data.get("notes") or "",
    }

    if data.get("customer_id") and data.get("vendor_id"):
        raise ValidationError(
            "A payment has either a customer or a vendor, not both")
    if data.get("invoice_id") and data.get("bill_id"):
        raise ValidationError(
            "A payment settles either an invoice or a bill, not both")

    customer = vendor = invoice = bill = None
    if data.get("customer_id"):
        customer = get_owned(Customer, organization, data["customer_id"], "Customer")
    if data.get("vendor_id"):
        vendor = get_owned(Vendor, organization, data["vendor_id"], "Vendor")

    if data.get("invoice_id"):
        invoice = get_owned(
            Invoice, organization, data["invoice_id"], "Invoice", lock=True)
        if customer is not None and invoice.customer_id != customer.pk:
            raise ReferentialError(
                "Invoice does not belong to the specified customer")
        customer = invoice.customer
    if data.get("bill_id"):
        bill = get_owned(Bill, organization, data["bill_id"], "Bill", lock=True)
        if vendor is not None and bill.vendor_id != vendor.pk:
            raise ReferentialError(
                "Bill does not belong to the specified vendor")
        vendor = bill.vendor

    if customer is None and vendor is None:
        raise ValidationError("customer_id or vendor_id is required")
    # Money comes in from customers and goes out to vendors
    if customer is not None and direction != PaymentDirection.INCOMING:
        raise ValidationError(
            {"direction": ["Customer payments must be incoming."]})
    if vendor is not None and direction != PaymentDirection.OUTGOING:
        raise ValidationError(
            {"direction": ["Vendor payments must be outgoing."]})

    fields.update(customer=customer, vendor=vendor, invoice=invoice, bill=bill)
    return fields


def _current_payload(payment) -> dict:
    return {
        "direction": payment.direction,
        "amount": payment.amount,
        "date": payment.date,
        "payment_method": payment.payment_method,
        "currency_code": payment.currency_code,
        "reference_number": payment.reference_number,
        "notes": payment.notes,
        "customer_id": payment.customer_id,
        "vendor_id": payment.vendor_id,
        "invoice_id": payment.invoice_id,
        "bill_id": payment.bill_id,
    }


def _locked_document(payment):
    if payment.invoice_id:
        return Invoice.objects.select_for_update().get(pk=payment.invoice_id)
    if payment.bill_id:
        return Bill.objects.select_for_update().get(pk=payment.bill_id)
    return None


def _snapshot(payment):
    return {
        "number": payment.payment_number,
        "amount": payment.amount,
        "direction": payment.direction,
        "invoice": str(payment.invoice_id) if payment.invoice_id else None,
        "bill": str(payment.bill_id) if payment.bill_id else None,
    }


# ----------------------------
# Payment workflows
# ----------------------------
def create_payment(organization, data, user=None) -> Payment:
    """
    Record a payment and apply it to its invoice/bill in one transaction:
    amount must not exceed balance_due; the document flips to paid at zero.
    """
    with transaction.atomic():
        fields = _resolve_fields(organization, data)
        payment = Payment(organization=organization, created_by=user, **fields)
        payment.payment_number = next_document_number(organization, Payment)

        document = payment.document
        if document is not None:
            payment.prior_status = document.apply_payment(payment.amount)
        payment.save()

        log_action(action="create", instance=payment, user=user,
                   changes=_snapshot(payment))
    logger.info("Recorded payment %s amount=%s", payment.payment_number,
                payment.amount)
    return payment


def update_payment(organization, pk, data, user=None) -> Payment:
    """
    Reverse the old effect, then validate and apply the new one. Any
    failure rolls back both steps.
    """
    with transaction.atomic():
        payment = fetch(Payment, organization, pk, lock=True)
        before = _snapshot(payment)

        old_document = _locked_document(payment)
        if old_document is not None:
            old_document.reverse_payment(payment.amount, payment.prior_status)

        payload = _current_payload(payment)
        if any(key in data for key in LINK_FIELDS):
            # Links are replaced as a set: whatever is not sent is cleared
            for key in LINK_FIELDS:
                payload[key] = data.get(key)
        for key in VALUE_FIELDS:
            if key in data:
                payload[key] = data[key]

        fields = _resolve_fields(organization, payload)
        new_document = fields["invoice"] or fields["bill"]
        if (
            old_document is not None
            and new_document is not None
            and type(new_document) is type(old_document)
            and new_document.pk == old_document.pk
        ):
            # Same row: keep the instance that already carries the reversal
            new_document = old_document
            fields["invoice" if isinstance(old_document, Invoice) else "bill"] = old_document

        for name, value in fields.items():
            setattr(payment, name, value)
        payment.prior_status = ""
        if new_document is not None:
            payment.prior_status = new_document.apply_payment(payment.amount)
        payment.save()

        log_action(action="update", instance=payment, user=user,
                   changes={"before": before, "after": _snapshot(payment)})
    logger.info("Updated payment %s", payment.payment_number)
    return payment


def delete_payment(organization, pk, user=None):
    with transaction.atomic():
        payment = fetch(Payment, organization, pk, lock=True)
        document = _locked_document(payment)
        if document is not None:
            document.reverse_payment(payment.amount, payment.prior_status)
        log_action(action="delete", instance=payment, user=user,
                   changes=_snapshot(payment))
        number = payment.payment_number
        payment.delete()
    logger.info("Deleted payment %s", number)
