from django.contrib import admin

from ..models import Payment
from ..services.payment import delete_payment
from .mixins import TenantAdminMixin


@admin.register(Payment)
class PaymentAdmin(TenantAdminMixin, admin.ModelAdmin):
    """
    Payments are browse-only here: recording or editing one moves an
    invoice/bill balance, which only the API does. Deleting reverses it.
    """

    list_display = ("payment_number", "organization", "direction", "date",
                    "amount", "payment_method", "customer", "vendor",
                    "invoice", "bill")
    list_filter = ("direction", "payment_method", "date")
    search_fields = ("payment_number", "reference_number", "customer__name",
                     "vendor__name")
    date_hierarchy = "date"

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("customer", "vendor", "invoice", "bill")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def delete_model(self, request, obj):
        delete_payment(obj.organization, obj.pk, request.user)

    def delete_queryset(self, request, queryset):
        for obj in queryset:
            self.delete_model(request, obj)
