import uuid

from django.core.exceptions import ValidationError
from django.db import models

from ..exceptions import StateConflictError
from ..managers import TenantManager
from .organization import Organization


class Category(models.Model):  # Groups items, income and expenses

    class Type(models.TextChoices):
        INCOME = "income", "Income"
        EXPENSE = "expense", "Expense"
        ITEM = "item", "Item"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=10, choices=Type.choices)

    # Self-referential FK for category hierarchy
    """ Example:
    Office Expenses (parent) → Stationery (child) """
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        # Cannot delete a parent while children still point to it
        on_delete=models.PROTECT,
        related_name="children",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"
        constraints = [
            # A name may repeat across types, never within one
            models.UniqueConstraint(
                fields=["organization", "type", "name"],
                name="uq_organization_category_type_name",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.type})"

    def clean(self):
        if not self.parent_id:
            return
        if self.pk and self.parent_id == self.pk:
            raise ValidationError("Category cannot be its own parent")
        if self.parent.organization_id != self.organization_id:
            raise ValidationError("Parent category not found")
        if self.parent.type != self.type:
            raise ValidationError("Parent category must be of the same type")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.children.exists():
            raise StateConflictError(
                "Cannot delete category with subcategories")
        if self.items.exists():
            raise StateConflictError(
                "Cannot delete category with associated items")
        return super().delete(*args, **kwargs)
