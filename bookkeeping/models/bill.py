from django.db import models

from .document import PayableDocument
from .vendor import Vendor


class BillStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    RECEIVED = "received", "Received"
    PAID = "paid", "Paid"
    OVERDUE = "overdue", "Overdue"
    CANCELLED = "cancelled", "Cancelled"


class Bill(PayableDocument):  # Vendor bill, the AP mirror of Invoice

    NUMBER_FIELD = "bill_number"
    NUMBER_PREFIX = "BILL"
    COUNTERPARTY_FIELD = "vendor"
    PAID_STATUS = BillStatus.PAID
    CANCELLED_STATUS = BillStatus.CANCELLED
    REOPENED_STATUS = BillStatus.RECEIVED
    TRANSITIONS = {
        BillStatus.DRAFT: [
            BillStatus.RECEIVED,
            BillStatus.PAID,
            BillStatus.CANCELLED,
        ],
        BillStatus.RECEIVED: [
            BillStatus.DRAFT,
            BillStatus.PAID,
            BillStatus.OVERDUE,
            BillStatus.CANCELLED,
        ],
        BillStatus.OVERDUE: [
            BillStatus.RECEIVED,
            BillStatus.PAID,
            BillStatus.CANCELLED,
        ],
        BillStatus.PAID: [BillStatus.RECEIVED, BillStatus.OVERDUE],
        BillStatus.CANCELLED: [BillStatus.DRAFT],
    }

    bill_number = models.CharField(max_length=32)
    vendor = models.ForeignKey(
        Vendor,
        on_delete=models.PROTECT,
        related_name="bills",
    )
    # The vendor's own reference for this bill
    reference_number = models.CharField(max_length=64, blank=True)
    status = models.CharField(
        max_length=10, choices=BillStatus.choices, default=BillStatus.DRAFT
    )

    class Meta(PayableDocument.Meta):
        indexes = [
            models.Index(fields=["organization", "status"], name="bill_org_status_idx"),
            models.Index(fields=["organization", "vendor"], name="bill_org_vendor_idx"),
            models.Index(fields=["organization", "due_date"], name="bill_org_due_date_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "bill_number"],
                name="uq_bill_organization_number",
            ),
            models.CheckConstraint(
                condition=models.Q(balance_due__gte=0)
                & models.Q(balance_due__lte=models.F("total")),
                name="bill_balance_within_total",
            ),
        ]
