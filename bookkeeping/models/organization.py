import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager, UserManager


# ---------- Tenant / Organization ----------
class Organization(models.Model):

    """Tenant boundary: every other record carries an organization"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Store organization's full display name
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True  # no two organizations can have the same slug
    )

    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.TextField(blank=True)
    gstin = models.CharField(max_length=15, blank=True)

    # Default currency for documents raised by this organization
    currency_code = models.CharField(max_length=10, default="INR")

    # Link to a user account (creator of the organization)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        # if user is deleted, organization stays but owner is set to NULL
        on_delete=models.SET_NULL,
        related_name="owned_organizations",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


# ---------- Custom User ----------
class User(AbstractUser):
    """
    AUTH_USER_MODEL = "bookkeeping.User" must be set
    before the very first migrate
    """
    # Organization used when the session has not picked one
    default_organization = models.ForeignKey(
        "Organization",
        # Nullable, user might exist before being assigned an organization
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="default_users",
    )

    phone = models.CharField(max_length=32, blank=True)

    objects = UserManager()

    class Meta:
        indexes = [models.Index(fields=["default_organization"], name="user_default_org_idx")]

    def __str__(self):
        return self.get_full_name() or self.username


# ---------- Membership ----------
class Membership(models.Model):  # Join model between User and Organization

    class Role(models.TextChoices):
        OWNER = "owner", "Owner"  # full control
        ADMIN = "admin", "Admin"  # can manage settings & users
        ACCOUNTANT = "accountant", "Accountant"  # can raise and settle documents
        STAFF = "staff", "Staff"
        VIEWER = "viewer", "Viewer"  # read-only access

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        # If user is deleted, their memberships go too
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    organization = models.ForeignKey(
        "Organization", on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.VIEWER,  # safe, read-only
    )
    # Suspend someone's access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        # one user can only have one membership per organization
        constraints = [
            models.UniqueConstraint(
                fields=["user", "organization"], name="uq_user_organization_membership"
            ),
        ]
        indexes = [
            models.Index(fields=["organization", "user"], name="membership_org_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.organization} ({self.role})"

    @property
    def can_write(self):
        return self.is_active and self.role != self.Role.VIEWER

    def clean(self):
        """
        If the user has a default_organization set, the user must actually
        be a member of it. The membership being validated may satisfy that.
        """
        if not self.user_id:
            return
        default_org_id = self.user.default_organization_id
        if default_org_id is None:
            return
        existing = self.user.memberships.all()
        if self.pk:
            existing = existing.exclude(pk=self.pk)
        org_ids = set(existing.values_list("organization_id", flat=True))
        if default_org_id not in org_ids and default_org_id != self.organization_id:
            raise ValidationError(
                "A user's default organization must be one of their memberships."
            )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
