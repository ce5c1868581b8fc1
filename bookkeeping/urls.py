from django.urls import path

from .views import (auth, categories, customers, dashboard, documents, items,
                    payments, tax_rates, vendors)

app_name = "bookkeeping"

urlpatterns = [
    # ---------- Auth ----------
    path("auth/csrf/", auth.csrf, name="csrf"),
    path("auth/register/", auth.register, name="register"),
    path("auth/login/", auth.login_view, name="login"),
    path("auth/logout/", auth.logout_view, name="logout"),
    path("auth/me/", auth.me, name="me"),
    path("auth/switch-organization/", auth.switch_organization,
         name="switch-organization"),
    path("auth/change-password/", auth.change_password,
         name="change-password"),

    # ---------- Counterparties ----------
    path("customers/", customers.customer_collection, name="customer-list"),
    path("customers/<str:pk>/", customers.customer_detail, name="customer-detail"),
    path("customers/<str:pk>/stats/", customers.customer_stats_view,
         name="customer-stats"),
    path("vendors/", vendors.vendor_collection, name="vendor-list"),
    path("vendors/<str:pk>/", vendors.vendor_detail, name="vendor-detail"),
    path("vendors/<str:pk>/stats/", vendors.vendor_stats_view, name="vendor-stats"),

    # ---------- Catalog ----------
    path("items/", items.item_collection, name="item-list"),
    path("items/low-stock/", items.item_low_stock, name="item-low-stock"),
    path("items/<str:pk>/", items.item_detail, name="item-detail"),
    path("items/<str:pk>/quantity/", items.item_quantity, name="item-quantity"),
    path("items/<str:pk>/stats/", items.item_stats_view, name="item-stats"),
    path("categories/", categories.category_collection, name="category-list"),
    path("categories/tree/<str:category_type>/", categories.category_tree_view,
         name="category-tree"),
    path("categories/<str:pk>/", categories.category_detail, name="category-detail"),
    path("categories/<str:pk>/stats/", categories.category_stats_view,
         name="category-stats"),
    path("tax-rates/", tax_rates.tax_rate_collection, name="tax-rate-list"),
    path("tax-rates/calculate/", tax_rates.tax_rate_calculate,
         name="tax-rate-calculate"),
    path("tax-rates/summary/", tax_rates.tax_rate_summary, name="tax-rate-summary"),
    path("tax-rates/<str:pk>/", tax_rates.tax_rate_detail, name="tax-rate-detail"),

    # ---------- Documents ----------
    path("sales-orders/", documents.sales_order_collection,
         name="sales-order-list"),
    path("sales-orders/stats/summary/", documents.sales_order_summary,
         name="sales-order-summary"),
    path("sales-orders/<str:pk>/", documents.sales_order_detail,
         name="sales-order-detail"),
    path("sales-orders/<str:pk>/status/", documents.sales_order_status,
         name="sales-order-status"),
    path("invoices/", documents.invoice_collection, name="invoice-list"),
    path("invoices/stats/summary/", documents.invoice_summary,
         name="invoice-summary"),
    path("invoices/<str:pk>/", documents.invoice_detail, name="invoice-detail"),
    path("invoices/<str:pk>/status/", documents.invoice_status,
         name="invoice-status"),
    path("bills/", documents.bill_collection, name="bill-list"),
    path("bills/stats/summary/", documents.bill_summary, name="bill-summary"),
    path("bills/<str:pk>/", documents.bill_detail, name="bill-detail"),
    path("bills/<str:pk>/status/", documents.bill_status, name="bill-status"),

    # ---------- Payments ----------
    path("payments/", payments.payment_collection, name="payment-list"),
    path("payments/stats/summary/", payments.payment_summary_view,
         name="payment-summary"),
    path("payments/<str:pk>/", payments.payment_detail, name="payment-detail"),

    # ---------- Dashboard ----------
    path("dashboard/stats/", dashboard.stats, name="dashboard-stats"),
    path("dashboard/revenue-trends/", dashboard.revenue_trends,
         name="dashboard-revenue-trends"),
    path("dashboard/cash-flow/", dashboard.cash_flow, name="dashboard-cash-flow"),
    path("dashboard/expense-breakdown/", dashboard.expense_breakdown,
         name="dashboard-expense-breakdown"),
]
