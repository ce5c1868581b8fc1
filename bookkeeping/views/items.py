from django.http import JsonResponse

from ..models import Category, Item, TaxRate
from ..serializers import item_to_dict
from ..services.dashboard import item_stats
from ..services.inventory import adjust_quantity, low_stock_items
from ..services.validation import fetch, get_owned, require
from .base import api_view, model_views, parse_body

ITEM_FIELDS = (
    "name", "sku", "description", "type", "price", "cost_price", "quantity",
    "unit", "reorder_level", "hsn_code", "is_active",
)


def resolve_item_links(request, data):
    links = {}
    if "category_id" in data:
        links["category"] = data["category_id"] and get_owned(
            Category, request.organization, data["category_id"], "Category")
    if "tax_rate_id" in data:
        links["tax_rate"] = data["tax_rate_id"] and get_owned(
            TaxRate, request.organization, data["tax_rate_id"], "Tax rate")
    # "" / null clears the link
    return {k: (v or None) for k, v in links.items()}


def normalize_item(data):
    if isinstance(data.get("sku"), str):
        data["sku"] = data["sku"].strip()


item_collection, item_detail = model_views(
    Item,
    fields=ITEM_FIELDS,
    to_dict=item_to_dict,
    search_fields=("name", "sku", "description"),
    resolve=resolve_item_links,
    normalize=normalize_item,
    required=("name", "sku", "type"),
)


@api_view(["PATCH", "POST"])
def item_quantity(request, pk):
    """Stock adjustment: {adjustment_type: add|subtract|set, quantity, reason}."""
    data = parse_body(request)
    require(data, "adjustment_type", "quantity")
    item = adjust_quantity(
        request.organization,
        pk,
        data["adjustment_type"],
        data["quantity"],
        reason=data.get("reason", ""),
        user=request.user,
    )
    return JsonResponse(item_to_dict(item))


@api_view(["GET"])
def item_low_stock(request):
    items = low_stock_items(request.organization)
    return JsonResponse({"data": [item_to_dict(i) for i in items]})


@api_view(["GET"])
def item_stats_view(request, pk):
    item = fetch(Item, request.organization, pk)
    return JsonResponse(item_stats(item))
