from django.http import JsonResponse

from ..models import Customer
from ..serializers import customer_to_dict
from ..services.dashboard import customer_stats
from ..services.validation import fetch
from .base import api_view, model_views

CUSTOMER_FIELDS = (
    "name", "email", "phone", "company_name", "gstin", "pan_number",
    "billing_address", "shipping_address", "credit_limit", "payment_terms",
    "currency_code", "is_active",
)


def normalize_tax_ids(data):
    # GSTIN and PAN are printed upper-case; accept any case on input
    for key in ("gstin", "pan_number"):
        if isinstance(data.get(key), str):
            data[key] = data[key].strip().upper()
    if isinstance(data.get("email"), str):
        data["email"] = data["email"].strip().lower()


customer_collection, customer_detail = model_views(
    Customer,
    fields=CUSTOMER_FIELDS,
    to_dict=customer_to_dict,
    search_fields=("name", "email", "company_name", "phone"),
    normalize=normalize_tax_ids,
    required=("name", "email"),
)


@api_view(["GET"])
def customer_stats_view(request, pk):
    customer = fetch(Customer, request.organization, pk)
    return JsonResponse(customer_stats(customer))
