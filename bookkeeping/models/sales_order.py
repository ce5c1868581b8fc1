from django.db import models

from .customer import Customer
from .document import Document


class SalesOrderStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    OPEN = "open", "Open"
    CONFIRMED = "confirmed", "Confirmed"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class SalesOrder(Document):  # A customer's order, before it is invoiced

    NUMBER_FIELD = "order_number"
    NUMBER_PREFIX = "SO"
    COUNTERPARTY_FIELD = "customer"
    """ Workflow:
        draft → open → confirmed → delivered
        anything but delivered may be cancelled """
    TRANSITIONS = {
        SalesOrderStatus.DRAFT: [SalesOrderStatus.OPEN, SalesOrderStatus.CANCELLED],
        SalesOrderStatus.OPEN: [
            SalesOrderStatus.CONFIRMED,
            SalesOrderStatus.DRAFT,
            SalesOrderStatus.CANCELLED,
        ],
        SalesOrderStatus.CONFIRMED: [
            SalesOrderStatus.DELIVERED,
            SalesOrderStatus.CANCELLED,
        ],
        SalesOrderStatus.DELIVERED: [],
        SalesOrderStatus.CANCELLED: [SalesOrderStatus.DRAFT],
    }

    order_number = models.CharField(max_length=32)
    customer = models.ForeignKey(
        Customer,
        # prevent deleting a customer who has orders
        on_delete=models.PROTECT,
        related_name="sales_orders",
    )
    expected_delivery_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=10,
        choices=SalesOrderStatus.choices,
        default=SalesOrderStatus.DRAFT,
    )

    class Meta(Document.Meta):
        indexes = [
            models.Index(fields=["organization", "status"], name="sales_order_org_status_idx"),
            models.Index(fields=["organization", "customer"], name="sales_order_org_customer_idx"),
        ]
        constraints = [
            # Within one organization, each order number must be unique
            models.UniqueConstraint(
                fields=["organization", "order_number"],
                name="uq_sales_order_organization_number",
            ),
        ]
