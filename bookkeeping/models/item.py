import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from ..exceptions import StateConflictError
from ..managers import TenantManager
from .category import Category
from .organization import Organization
from .tax_rate import TaxRate


# ---------- Items (product/service catalog) ----------
class Item(models.Model):  # Represents something a business sells & purchases

    class Type(models.TextChoices):
        PRODUCT = "product", "Product"  # stock is tracked
        SERVICE = "service", "Service"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Multi-tenant: each item belongs to an organization
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE)

    # Required human-readable name of the item
    name = models.CharField(max_length=100)
    # Stock Keeping Unit, unique per organization
    sku = models.CharField(max_length=50)
    description = models.TextField(blank=True)
    type = models.CharField(
        max_length=10, choices=Type.choices, default=Type.PRODUCT)

    # Selling price
    price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    # Purchase price, used by stock valuation
    cost_price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )

    # Current stock level of the item (products only)
    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=4,  # Allow precise tracking
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    unit = models.CharField(max_length=20, default="pcs")
    # Items at or below this level show up in the low-stock list
    reorder_level = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )

    tax_rate = models.ForeignKey(
        TaxRate,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="items",
    )
    # Harmonized System of Nomenclature code, printed on GST invoices
    hsn_code = models.CharField(max_length=20, blank=True)
    category = models.ForeignKey(
        Category,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="items",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ["-created_at"]
        # for fast lookups
        indexes = [models.Index(fields=["organization", "name"], name="item_org_name_idx")]

        # Ensure each SKU is unique within an organization
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "sku"], name="uq_organization_item_sku"
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name="item_non_negative_quantity",
            ),
        ]

    def __str__(self):
        return f"{self.name} [{self.sku}]"

    @property
    def is_low_stock(self):
        return self.type == self.Type.PRODUCT and self.quantity <= self.reorder_level

    """ Can't create an Item for Organization A
    but point it to a TaxRate or Category from Organization B """

    def clean(self):
        if self.tax_rate_id and self.tax_rate.organization_id != self.organization_id:
            raise ValidationError("Tax rate not found")
        if self.category_id:
            if self.category.organization_id != self.organization_id:
                raise ValidationError("Category not found")
            if self.category.type != Category.Type.ITEM:
                raise ValidationError("Item category must be of type 'item'")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.line_items.exists():
            raise StateConflictError(
                "Cannot delete item that is used in transactions. "
                "Consider deactivating instead."
            )
        return super().delete(*args, **kwargs)
