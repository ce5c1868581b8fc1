from django.contrib.auth.base_user import BaseUserManager
from django.db import models

# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to an organization
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_organization(self, organization):
        return self.filter(organization=organization)

    def active(self, organization):
        return self.filter(
                            organization=organization, # enforce tenant scoping
                            is_active=True   # only fetch active records
                        )
    # Enables query:
    # Customer.objects.active(request.organization)


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager):

    def get_queryset(self): # every model gets TenantQuerySet (so .for_organization() is always available)
        return TenantQuerySet(self.model, using=self._db)

    def for_organization(self, organization):
        return self.get_queryset().for_organization(organization)

    def active(self, organization):
        return self.get_queryset().active(organization)


class UserManager(BaseUserManager):
    """ Enforce rules around how users are created """

    use_in_migrations = True # Allow Django to serialize this manager in migrations

    # Private helper used by both `create_user` and `create_superuser`
    def _create_user(self, username, email, password, **extra_fields):
        if not username: # Username is required
            raise ValueError("The given username must be set")
        email = self.normalize_email(email) # lowercases the domain part
        user = self.model(username=username, email=email, **extra_fields)
        user.set_password(password) # Password is hashed
        user.save(using=self._db)
        return user

    def create_user(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(username, email, password, **extra_fields)

    # Used by Django when running `createsuperuser`
    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        # You cannot pass conflicting values
        if extra_fields.get("is_staff") is not True or extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_staff=True and is_superuser=True")
        return self._create_user(username, email, password, **extra_fields)
