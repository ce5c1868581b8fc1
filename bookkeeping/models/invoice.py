from django.db import models

from .customer import Customer
from .document import PayableDocument
from .sales_order import SalesOrder


class InvoiceStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    SENT = "sent", "Sent"
    PAID = "paid", "Paid"
    OVERDUE = "overdue", "Overdue"
    CANCELLED = "cancelled", "Cancelled"


class Invoice(PayableDocument):  # Represents a customer invoice

    NUMBER_FIELD = "invoice_number"
    NUMBER_PREFIX = "INV"
    COUNTERPARTY_FIELD = "customer"
    PAID_STATUS = InvoiceStatus.PAID
    CANCELLED_STATUS = InvoiceStatus.CANCELLED
    REOPENED_STATUS = InvoiceStatus.SENT
    """ Workflow:
        draft = not yet issued.
        sent = issued, awaiting payment.
        overdue = sent and past due_date with something still owed.
        paid = fully settled.
        cancelled = voided; only reachable while nothing was paid. """
    TRANSITIONS = {
        InvoiceStatus.DRAFT: [
            InvoiceStatus.SENT,
            InvoiceStatus.PAID,
            InvoiceStatus.CANCELLED,
        ],
        InvoiceStatus.SENT: [
            InvoiceStatus.DRAFT,
            InvoiceStatus.PAID,
            InvoiceStatus.OVERDUE,
            InvoiceStatus.CANCELLED,
        ],
        InvoiceStatus.OVERDUE: [
            InvoiceStatus.SENT,
            InvoiceStatus.PAID,
            InvoiceStatus.CANCELLED,
        ],
        InvoiceStatus.PAID: [InvoiceStatus.SENT, InvoiceStatus.OVERDUE],
        InvoiceStatus.CANCELLED: [InvoiceStatus.DRAFT],
    }

    invoice_number = models.CharField(max_length=32)
    customer = models.ForeignKey(
        Customer,
        # prevent deleting customer who has an invoice
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    # Optional link to the order this invoice bills
    sales_order = models.ForeignKey(
        SalesOrder,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    status = models.CharField(
        max_length=10, choices=InvoiceStatus.choices, default=InvoiceStatus.DRAFT
    )

    class Meta(PayableDocument.Meta):
        # Optimize for fast lookups by status or customer
        indexes = [
            models.Index(fields=["organization", "status"], name="invoice_org_status_idx"),
            models.Index(fields=["organization", "customer"], name="invoice_org_customer_idx"),
            models.Index(fields=["organization", "due_date"], name="invoice_org_due_date_idx"),
        ]
        constraints = [
            # Within one organization, each invoice number must be unique
            # Across organizations, duplicates are allowed
            models.UniqueConstraint(
                fields=["organization", "invoice_number"],
                name="uq_invoice_organization_number",
            ),
            models.CheckConstraint(
                condition=models.Q(balance_due__gte=0)
                & models.Q(balance_due__lte=models.F("total")),
                name="invoice_balance_within_total",
            ),
        ]
