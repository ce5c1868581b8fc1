from django.contrib import admin

from ..models import AuditLog
from .mixins import TenantAdminMixin


# Register `AuditLog` model
@admin.register(AuditLog)
class AuditLogAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "organization",
        "user",
        "action",
        "object_type",
        "object_id",
        "created_at",
    )
    search_fields = ("object_type", "object_id", "user__username")
    list_filter = ("action", "object_type", "created_at")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("organization", "user")

    # The trail is append-only
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
