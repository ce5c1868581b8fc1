from django.contrib import admin

from ..models import LineItem, Payment
from .mixins import TenantAdminMixin

# ---------- Helpful inline admin classes ----------

LINE_FIELDS = (
    "position", "item", "description", "quantity", "price", "tax_rate",
    "tax_amount", "total",
)


class LineItemInline(TenantAdminMixin, admin.TabularInline):
    """
    Line items under a sales order, invoice or bill page. Read-only:
    totals and balances are recomputed by the API when lines change.
    """

    model = LineItem
    extra = 0
    fields = LINE_FIELDS
    readonly_fields = LINE_FIELDS
    ordering = ("position",)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("item", "tax_rate")

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class PaymentInline(TenantAdminMixin, admin.TabularInline):
    """Payments recorded against an invoice or bill."""

    model = Payment
    extra = 0
    fields = ("payment_number", "date", "amount", "payment_method",
              "reference_number")
    readonly_fields = fields
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
