import uuid
from decimal import Decimal

from django.db import \
    models  # ORM base classes to define database tables as Python classes

from ..exceptions import StateConflictError
from ..managers import TenantManager
from ..validators import gstin_validator, pan_validator, phone_validator
from .organization import Organization


# ---------- Customer ----------
# Represents client who receives invoices (AR side)
class Customer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Multi-tenant: every customer belongs to a single organization
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE)

    # The customer's legal or trade name
    name = models.CharField(max_length=100)
    email = models.EmailField()
    phone = models.CharField(
        max_length=32, blank=True, validators=[phone_validator])
    company_name = models.CharField(max_length=100, blank=True)
    gstin = models.CharField(
        max_length=15, blank=True, validators=[gstin_validator])
    pan_number = models.CharField(
        max_length=10, blank=True, validators=[pan_validator])
    billing_address = models.TextField(blank=True)
    shipping_address = models.TextField(blank=True)

    credit_limit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Standard credit terms
    payment_terms = models.PositiveIntegerField(default=30)
    """ Example: If terms = 30 → invoice due 30 days after issue. """
    currency_code = models.CharField(max_length=10, default="INR")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["organization", "name"], name="customer_org_name_idx"),
        ]
        # Enforce uniqueness per tenant
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "email"], name="uq_organization_customer_email"
            ),
            models.CheckConstraint(
                condition=models.Q(credit_limit__gte=0),
                name="customer_non_negative_credit_limit",
            ),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

    """ Customers with documents are deactivated, never deleted """

    def delete(self, *args, **kwargs):
        if self.invoices.exists() or self.sales_orders.exists():
            raise StateConflictError(
                "Cannot delete customer with existing invoices or orders. "
                "Consider deactivating instead."
            )
        return super().delete(*args, **kwargs)
