from django.conf import settings  # To access global project settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from ..managers import TenantManager
from .organization import Organization


# ---------- Audit / Event log ----------
class AuditLog(
    models.Model
):  # Gives accountability and traceability across whole system
    # Associate log entry with a tenant
    organization = models.ForeignKey(
        Organization,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # Which user performed the action
    # (Nullable in case the action was automated
    # (e.g., background job, management command))
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # Type of event being logged
    action = models.CharField(
        max_length=50
    )  # Common choices: create, update, delete, status, adjust_stock
    # What kind of object was affected
    object_type = models.CharField(
        max_length=100
    )  # (e.g., "Invoice", "Payment", "Item")
    object_id = models.CharField(max_length=100)
    # Before/after details of what changed; Decimals and dates serialize as text
    changes = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["organization", "user"], name="auditlog_org_user_idx"),
            models.Index(fields=["organization", "created_at"], name="auditlog_org_created_idx"),
        ]

    def __str__(self):
        time = self.created_at
        return (
            f"[{time:%Y-%m-%d %H:%M}] {self.user} {self.action} "
            f"{self.object_type}({self.object_id})"
        )

    def clean(self):
        # Ensure the user is a member of the organization being logged
        if self.user and self.organization:
            if not self.user.memberships.filter(
                organization=self.organization, is_active=True
            ).exists():
                raise ValidationError(
                    "AuditLog.user must be a member of AuditLog.organization"
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
