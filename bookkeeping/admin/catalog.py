from django.contrib import admin

from ..models import Category, Customer, Item, TaxRate, Vendor
from .mixins import TenantAdminMixin


@admin.register(Customer)
class CustomerAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "organization", "email", "company_name", "gstin",
                    "payment_terms", "credit_limit", "is_active")
    search_fields = ("name", "email", "company_name", "gstin")
    list_filter = ("is_active",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("organization")


@admin.register(Vendor)
class VendorAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "organization", "email", "company_name", "gstin",
                    "payment_terms", "is_active")
    search_fields = ("name", "email", "company_name", "gstin")
    list_filter = ("is_active",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("organization")


@admin.register(Category)
class CategoryAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "organization", "type", "parent", "is_active")
    search_fields = ("name",)
    list_filter = ("type", "is_active")


@admin.register(TaxRate)
class TaxRateAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "organization", "type", "rate", "is_active")
    search_fields = ("name",)
    list_filter = ("type", "is_active")


@admin.register(Item)
class ItemAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("sku", "name", "organization", "type", "price", "quantity",
                    "reorder_level", "low_stock", "is_active")
    search_fields = ("sku", "name")
    list_filter = ("type", "is_active", "category")
    # Stock moves through adjustments and deliveries
    readonly_fields = ("quantity",)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("organization", "category", "tax_rate")

    @admin.display(boolean=True, description="Low stock")
    def low_stock(self, obj):
        return obj.is_low_stock
