from django.http import JsonResponse

from ..models import TaxRate
from ..serializers import tax_rate_to_dict
from ..services.catalog import calculate_tax, tax_summary
from .base import api_view, model_views, parse_body

TAX_RATE_FIELDS = ("name", "rate", "type", "description", "is_active")

tax_rate_collection, tax_rate_detail = model_views(
    TaxRate,
    fields=TAX_RATE_FIELDS,
    to_dict=tax_rate_to_dict,
    search_fields=("name", "description"),
    required=("name", "rate"),
)


@api_view(["POST"])
def tax_rate_calculate(request):
    data = parse_body(request)
    return JsonResponse(
        calculate_tax(request.organization, data.get("amount"),
                      data.get("tax_rate_id")))


@api_view(["GET"])
def tax_rate_summary(request):
    rows = tax_summary(
        request.organization,
        request.GET.get("date_from"),
        request.GET.get("date_to"),
    )
    return JsonResponse({"data": rows})
