from django.http import JsonResponse

from ..models import Payment
from ..serializers import payment_to_dict
from ..services.dashboard import payment_summary
from ..services.payment import create_payment, delete_payment, update_payment
from ..services.validation import fetch, parse_date
from .base import api_view, paginate, parse_body, search_filter


@api_view(["GET", "POST"])
def payment_collection(request):
    org = request.organization
    if request.method == "POST":
        payment = create_payment(org, parse_body(request), request.user)
        return JsonResponse(payment_to_dict(payment), status=201)

    params = request.GET
    qs = Payment.objects.for_organization(org)
    if params.get("direction"):
        qs = qs.filter(direction=params["direction"])
    for key in ("customer_id", "vendor_id", "invoice_id", "bill_id"):
        if params.get(key):
            qs = qs.filter(**{key: params[key]})
    date_from = parse_date(params.get("date_from"), "date_from", required=False)
    date_to = parse_date(params.get("date_to"), "date_to", required=False)
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)
    qs = search_filter(qs, request, ("payment_number", "reference_number", "notes"))
    return paginate(request, qs, payment_to_dict)


@api_view(["GET", "PUT", "PATCH", "DELETE"])
def payment_detail(request, pk):
    org = request.organization
    if request.method == "GET":
        return JsonResponse(payment_to_dict(fetch(Payment, org, pk)))
    if request.method == "DELETE":
        delete_payment(org, pk, request.user)
        return JsonResponse({"detail": "Payment deleted"})
    payment = update_payment(org, pk, parse_body(request), request.user)
    return JsonResponse(payment_to_dict(payment))


@api_view(["GET"])
def payment_summary_view(request):
    return JsonResponse(payment_summary(
        request.organization, request.GET.get("period", "month")))
