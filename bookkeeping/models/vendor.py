import uuid

from django.db import models

from ..exceptions import StateConflictError
from ..managers import TenantManager
from ..validators import gstin_validator, pan_validator, phone_validator
from .organization import Organization


class Vendor(models.Model):  # Mirrors Customer but for Accounts Payable (AP)
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Multi-tenant
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE)

    # Same fields as Customer, but now for suppliers/vendors
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
    payment_terms = models.PositiveIntegerField(default=30)
    currency_code = models.CharField(max_length=10, default="INR")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["organization", "name"], name="vendor_org_name_idx"),
        ]
        # Vendor emails must be unique per organization
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "email"], name="uq_organization_vendor_email"
            ),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.bills.exists():
            raise StateConflictError(
                "Cannot delete vendor with existing bills. "
                "Consider deactivating instead."
            )
        return super().delete(*args, **kwargs)
