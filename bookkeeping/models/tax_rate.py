import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from ..exceptions import StateConflictError
from ..managers import TenantManager
from .organization import Organization


class TaxRate(models.Model):

    class Type(models.TextChoices):
        PERCENTAGE = "percentage", "Percentage"  # rate is % of the line amount
        FIXED = "fixed", "Fixed"  # rate is a flat amount per line

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE)
    name = models.CharField(max_length=50)
    rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[
            MinValueValidator(Decimal("0")),
            MaxValueValidator(Decimal("100")),
        ],
    )
    type = models.CharField(
        max_length=10, choices=Type.choices, default=Type.PERCENTAGE
    )
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "name"], name="uq_organization_tax_rate_name"
            ),
            models.CheckConstraint(
                condition=models.Q(rate__gte=0) & models.Q(rate__lte=100),
                name="tax_rate_between_0_and_100",
            ),
        ]

    def __str__(self):
        if self.type == self.Type.PERCENTAGE:
            return f"{self.name} ({self.rate}%)"
        return f"{self.name} ({self.rate})"

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.items.exists() or self.line_items.exists():
            raise StateConflictError(
                "Cannot delete tax rate that is being used")
        return super().delete(*args, **kwargs)
