import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Sum

from ..exceptions import StateConflictError
from ..managers import TenantManager
from .organization import Organization


class Document(models.Model):
    """
    Shared shape of sales orders, invoices and bills.

    Subclasses name their number field (NUMBER_FIELD), the prefix used when
    numbering (NUMBER_PREFIX) and the allowed status moves (TRANSITIONS).
    Totals are always derived from line items by the document services.
    """

    NUMBER_FIELD = None
    NUMBER_PREFIX = None
    COUNTERPARTY_FIELD = None
    TRANSITIONS = {}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Multi-tenant
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE)

    date = models.DateField()  # issue date
    notes = models.TextField(blank=True)
    terms = models.TextField(blank=True)
    currency_code = models.CharField(max_length=10, default="INR")

    # Derived from the line items on every create/update
    subtotal = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    tax_total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    # Who raised the document (null for imports and background jobs)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        abstract = True
        ordering = ["-date", "-created_at"]

    @property
    def number(self):
        return getattr(self, self.NUMBER_FIELD)

    def __str__(self):
        return self.number or str(self.pk)

    def can_transition_to(self, new_status):
        return new_status == self.status or new_status in self.TRANSITIONS.get(
            self.status, ()
        )


class PayableDocument(Document):
    """
    A document that payments settle (invoice or bill).

    balance_due starts equal to total and moves only through
    apply_payment/reverse_payment or an explicit status override.
    """

    PAID_STATUS = "paid"
    CANCELLED_STATUS = "cancelled"
    # Status a paid document falls back to when a payment is reversed
    REOPENED_STATUS = None

    due_date = models.DateField(null=True, blank=True)
    # Unpaid amount after payments are applied
    balance_due = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    class Meta(Document.Meta):
        abstract = True

    @property
    def is_paid(self):
        return self.status == self.PAID_STATUS

    def payments_total(self):
        """Sum of the payments currently recorded against this document."""
        if not self.pk:
            return Decimal("0.00")
        agg = self.payments.aggregate(total=Sum("amount"))
        return agg["total"] or Decimal("0.00")

    def apply_payment(self, amount):
        """
        Decrement balance_due by amount; flips to paid once nothing is owed.
        Returns the status held before the payment so it can be restored.
        """
        if self.status == self.CANCELLED_STATUS:
            raise StateConflictError(
                f"Cannot record a payment against a cancelled "
                f"{self._meta.verbose_name}")
        if amount > self.balance_due:
            raise StateConflictError(
                f"Payment amount ({amount}) exceeds balance due "
                f"({self.balance_due})")
        prior_status = self.status
        self.balance_due = self.balance_due - amount
        if self.balance_due <= 0:
            self.status = self.PAID_STATUS
        self.save(update_fields=["balance_due", "status", "updated_at"])
        return prior_status

    def reverse_payment(self, amount, prior_status=None):
        """Undo apply_payment: add amount back, leave paid if something is owed."""
        self.balance_due = self.balance_due + amount
        if self.balance_due > self.total:
            raise StateConflictError(
                f"Reversing {amount} would push balance due above total")
        if self.balance_due > 0 and self.status == self.PAID_STATUS:
            if prior_status and prior_status != self.PAID_STATUS:
                self.status = prior_status
            else:
                self.status = self.REOPENED_STATUS
        self.save(update_fields=["balance_due", "status", "updated_at"])
