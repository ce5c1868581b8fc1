import uuid

from django.conf import settings
from django.db import models

from ..managers import TenantManager
from .bill import Bill
from .customer import Customer
from .invoice import Invoice
from .organization import Organization
from .vendor import Vendor


class PaymentDirection(models.TextChoices):
    INCOMING = "incoming", "Incoming"  # money received from a customer
    OUTGOING = "outgoing", "Outgoing"  # money sent to a vendor


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"
    CHEQUE = "cheque", "Cheque"
    CARD = "card", "Card"
    UPI = "upi", "UPI"
    OTHER = "other", "Other"


class Payment(models.Model):
    """
    Money received or sent. When linked to an invoice or bill the
    document's balance_due carries the effect of this row.
    """

    NUMBER_FIELD = "payment_number"
    NUMBER_PREFIX = "PAY"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE)
    payment_number = models.CharField(max_length=32)
    direction = models.CharField(
        max_length=10, choices=PaymentDirection.choices)

    # At most one counterparty and at most one document
    customer = models.ForeignKey(
        Customer,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    vendor = models.ForeignKey(
        Vendor,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        # documents with payments cannot be deleted
        on_delete=models.PROTECT,
        related_name="payments",
    )
    bill = models.ForeignKey(
        Bill,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    date = models.DateField()
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    currency_code = models.CharField(max_length=10, default="INR")
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CASH
    )
    reference_number = models.CharField(max_length=64, blank=True)
    notes = models.TextField(blank=True)

    # Document status before this payment was applied; restored on reversal
    prior_status = models.CharField(max_length=10, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["organization", "direction"], name="payment_org_direction_idx"),
            models.Index(fields=["organization", "date"], name="payment_org_date_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "payment_number"],
                name="uq_payment_organization_number",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_positive_amount",
            ),
            # never both a customer and a vendor
            models.CheckConstraint(
                condition=models.Q(customer__isnull=True)
                | models.Q(vendor__isnull=True),
                name="payment_single_counterparty",
            ),
            # never both an invoice and a bill
            models.CheckConstraint(
                condition=models.Q(invoice__isnull=True)
                | models.Q(bill__isnull=True),
                name="payment_single_document",
            ),
        ]

    def __str__(self):
        return f"{self.payment_number} {self.direction} {self.amount}"

    @property
    def document(self):
        return self.invoice or self.bill

    @property
    def counterparty(self):
        return self.customer or self.vendor
