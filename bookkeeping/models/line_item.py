import uuid
from decimal import Decimal

from django.db import models

from ..managers import TenantManager
from .bill import Bill
from .invoice import Invoice
from .item import Item
from .organization import Organization
from .sales_order import SalesOrder
from .tax_rate import TaxRate


class LineItem(models.Model):
    """
    A single priced row on exactly one sales order, invoice or bill.

    total = quantity * price + tax_amount, stored already rounded.
    Rows are written in bulk by the document services, never one by one.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE)

    # Exactly one parent is set (see constraint below)
    sales_order = models.ForeignKey(
        SalesOrder,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="line_items",
    )
    invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="line_items",
    )
    bill = models.ForeignKey(
        Bill,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="line_items",
    )
    # Keeps the order in which lines were entered
    position = models.PositiveIntegerField(default=0)

    # Optionally linked to a catalog Item, or just a free-text line
    item = models.ForeignKey(
        Item,
        null=True,
        blank=True,
        # Items that were sold or bought cannot be deleted
        on_delete=models.PROTECT,
        related_name="line_items",
    )
    description = models.CharField(max_length=500)

    # Core pricing logic: quantity × price + tax_amount = total
    quantity = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("1")
    )
    price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    tax_rate = models.ForeignKey(
        TaxRate,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="line_items",
    )
    tax_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    objects = TenantManager()

    class Meta:
        ordering = ["position"]
        indexes = [
            models.Index(fields=["organization", "item"], name="line_item_org_item_idx"),
        ]
        constraints = [
            # belongs to exactly one of sales order / invoice / bill
            models.CheckConstraint(
                condition=(
                    models.Q(
                        sales_order__isnull=False,
                        invoice__isnull=True,
                        bill__isnull=True,
                    )
                    | models.Q(
                        sales_order__isnull=True,
                        invoice__isnull=False,
                        bill__isnull=True,
                    )
                    | models.Q(
                        sales_order__isnull=True,
                        invoice__isnull=True,
                        bill__isnull=False,
                    )
                ),
                name="line_item_exactly_one_parent",
            ),
            # Ensure quantity, price and tax are never negative
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0)
                & models.Q(price__gte=0)
                & models.Q(tax_amount__gte=0),
                name="line_item_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.description} x {self.quantity} = {self.total}"

    @property
    def document(self):
        return self.sales_order or self.invoice or self.bill
