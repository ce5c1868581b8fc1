from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from ..exceptions import BookkeepingError
from ..services.documents import set_status

# ---------- Admin actions ----------


def _set_status(modeladmin, request, queryset, status):
    """
    Run set_status() for each selected document so admins go through the
    same transition rules as the API instead of bypassing them.
    """
    success = 0
    for document in queryset:
        try:
            set_status(queryset.model, document.organization, document.pk,
                       status, user=request.user)
            success += 1
        except (ValidationError, BookkeepingError) as exc:
            modeladmin.message_user(
                request, f"{document}: {exc}", level=messages.ERROR)
    modeladmin.message_user(
        request,
        f"Changed {success} of {len(queryset)} to {status}.",
        level=messages.SUCCESS if success == len(queryset) else messages.WARNING,
    )


@admin.action(description="Mark selected sales orders as Confirmed")
def mark_order_confirmed(modeladmin, request, queryset):
    _set_status(modeladmin, request, queryset, "confirmed")


@admin.action(description="Mark selected invoices as Sent")
def mark_invoice_sent(modeladmin, request, queryset):
    _set_status(modeladmin, request, queryset, "sent")


@admin.action(description="Mark selected bills as Received")
def mark_bill_received(modeladmin, request, queryset):
    _set_status(modeladmin, request, queryset, "received")


@admin.action(description="Cancel selected documents")
def cancel_documents(modeladmin, request, queryset):
    _set_status(modeladmin, request, queryset, "cancelled")
