from django.http import JsonResponse

from ..models import Category
from ..serializers import category_to_dict
from ..services.catalog import category_tree
from ..services.dashboard import category_stats
from ..services.validation import fetch, get_owned
from .base import api_view, model_views

CATEGORY_FIELDS = ("name", "description", "type", "is_active")


def resolve_parent(request, data):
    if "parent_id" not in data:
        return {}
    if not data["parent_id"]:
        return {"parent": None}
    return {
        "parent": get_owned(
            Category, request.organization, data["parent_id"], "Parent category")
    }


category_collection, category_detail = model_views(
    Category,
    fields=CATEGORY_FIELDS,
    to_dict=category_to_dict,
    search_fields=("name", "description"),
    resolve=resolve_parent,
    required=("name", "type"),
)


@api_view(["GET"])
def category_tree_view(request, category_type):
    return JsonResponse(
        {"data": category_tree(request.organization, category_type)})


@api_view(["GET"])
def category_stats_view(request, pk):
    category = fetch(Category, request.organization, pk)
    return JsonResponse(category_stats(category))
