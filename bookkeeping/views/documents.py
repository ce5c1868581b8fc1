"""
Sales orders, invoices and bills share one set of endpoints; document_views
builds them per model.
"""
import logging

from django.http import JsonResponse

from ..models import Bill, Invoice, SalesOrder
from ..serializers import document_to_dict
from ..services.dashboard import document_summary
from ..services.documents import (create_document, delete_document,
                                  set_status, update_document)
from ..services.validation import fetch, parse_date
from .base import api_view, paginate, parse_body, search_filter

logger = logging.getLogger(__name__)


def _filter_documents(model, request, queryset):
    params = request.GET
    counterparty = model.COUNTERPARTY_FIELD
    if params.get("status"):
        queryset = queryset.filter(status=params["status"])
    if params.get(f"{counterparty}_id"):
        queryset = queryset.filter(
            **{f"{counterparty}_id": params[f"{counterparty}_id"]})
    date_from = parse_date(params.get("date_from"), "date_from", required=False)
    date_to = parse_date(params.get("date_to"), "date_to", required=False)
    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)
    return search_filter(
        queryset, request,
        (model.NUMBER_FIELD, f"{counterparty}__name", "notes"))


def document_views(model):
    """Return (collection, detail, status, summary) views for model."""

    @api_view(["GET", "POST"])
    def collection(request):
        if request.method == "POST":
            document = create_document(
                model, request.organization, parse_body(request), request.user)
            return JsonResponse(document_to_dict(document, detail=True), status=201)
        qs = (
            model.objects.for_organization(request.organization)
            .select_related(model.COUNTERPARTY_FIELD)
        )
        return paginate(request, _filter_documents(model, request, qs),
                        document_to_dict)

    @api_view(["GET", "PUT", "PATCH", "DELETE"])
    def detail(request, pk):
        org = request.organization
        if request.method == "GET":
            document = fetch(model, org, pk)
            return JsonResponse(document_to_dict(document, detail=True))
        if request.method == "DELETE":
            delete_document(model, org, pk, request.user)
            return JsonResponse(
                {"detail": f"{model._meta.verbose_name.capitalize()} deleted"})
        document = update_document(model, org, pk, parse_body(request), request.user)
        return JsonResponse(document_to_dict(document, detail=True))

    @api_view(["PATCH", "POST"])
    def status(request, pk):
        data = parse_body(request)
        document = set_status(
            model, request.organization, pk, data.get("status"),
            reason=data.get("reason"), user=request.user)
        return JsonResponse(document_to_dict(document))

    @api_view(["GET"])
    def summary(request):
        return JsonResponse(document_summary(
            model, request.organization, request.GET.get("period", "month")))

    name = model._meta.model_name
    for view, suffix in ((collection, "collection"), (detail, "detail"),
                         (status, "status"), (summary, "summary")):
        view.__name__ = f"{name}_{suffix}"
    return collection, detail, status, summary


(sales_order_collection, sales_order_detail,
 sales_order_status, sales_order_summary) = document_views(SalesOrder)
(invoice_collection, invoice_detail,
 invoice_status, invoice_summary) = document_views(Invoice)
bill_collection, bill_detail, bill_status, bill_summary = document_views(Bill)
