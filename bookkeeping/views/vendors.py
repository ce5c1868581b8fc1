from django.http import JsonResponse

from ..models import Vendor
from ..serializers import vendor_to_dict
from ..services.dashboard import vendor_stats
from ..services.validation import fetch
from .base import api_view, model_views
from .customers import normalize_tax_ids

VENDOR_FIELDS = (
    "name", "email", "phone", "company_name", "gstin", "pan_number",
    "billing_address", "shipping_address", "payment_terms", "currency_code",
    "is_active",
)

vendor_collection, vendor_detail = model_views(
    Vendor,
    fields=VENDOR_FIELDS,
    to_dict=vendor_to_dict,
    search_fields=("name", "email", "company_name", "phone"),
    normalize=normalize_tax_ids,
    required=("name", "email"),
)


@api_view(["GET"])
def vendor_stats_view(request, pk):
    vendor = fetch(Vendor, request.organization, pk)
    return JsonResponse(vendor_stats(vendor))
