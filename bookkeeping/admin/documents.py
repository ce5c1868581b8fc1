from django.contrib import admin

from ..models import Bill, Invoice, SalesOrder
from ..services.documents import delete_document
from .actions import (cancel_documents, mark_bill_received, mark_invoice_sent,
                      mark_order_confirmed)
from .inlines import LineItemInline, PaymentInline
from .mixins import TenantAdminMixin

# Amounts follow the lines and payments; never typed in by hand
COMPUTED_FIELDS = ("subtotal", "tax_total", "total", "created_by",
                   "created_at", "updated_at")


class DocumentAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_filter = ("status", "date")
    date_hierarchy = "date"
    inlines = [LineItemInline]
    readonly_fields = COMPUTED_FIELDS

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("organization", self.model.COUNTERPARTY_FIELD)

    def get_readonly_fields(self, request, obj=None):
        # Status moves through the actions so transition rules apply
        fields = list(self.readonly_fields) + ["status", self.model.NUMBER_FIELD]
        if obj is not None and getattr(obj, "is_paid", False):
            # A paid document is frozen
            return [f.name for f in self.model._meta.fields]
        return fields

    def has_add_permission(self, request):
        # Documents are numbered and totalled by the API
        return False

    def has_delete_permission(self, request, obj=None):
        if obj is not None and getattr(obj, "is_paid", False):
            return False
        return super().has_delete_permission(request, obj)

    def delete_model(self, request, obj):
        delete_document(self.model, obj.organization, obj.pk, request.user)

    def delete_queryset(self, request, queryset):
        for obj in queryset:
            self.delete_model(request, obj)


@admin.register(SalesOrder)
class SalesOrderAdmin(DocumentAdmin):
    list_display = ("order_number", "organization", "customer", "date",
                    "expected_delivery_date", "status", "total")
    search_fields = ("order_number", "customer__name")
    actions = [mark_order_confirmed, cancel_documents]


@admin.register(Invoice)
class InvoiceAdmin(DocumentAdmin):
    list_display = ("invoice_number", "organization", "customer", "date",
                    "due_date", "status", "total", "balance_due")
    search_fields = ("invoice_number", "customer__name")
    actions = [mark_invoice_sent, cancel_documents]
    inlines = [LineItemInline, PaymentInline]
    readonly_fields = COMPUTED_FIELDS + ("balance_due",)


@admin.register(Bill)
class BillAdmin(DocumentAdmin):
    list_display = ("bill_number", "organization", "vendor", "reference_number",
                    "date", "due_date", "status", "total", "balance_due")
    search_fields = ("bill_number", "reference_number", "vendor__name")
    actions = [mark_bill_received, cancel_documents]
    inlines = [LineItemInline, PaymentInline]
    readonly_fields = COMPUTED_FIELDS + ("balance_due",)
