from django.http import JsonResponse

from ..services import dashboard
from .base import api_view


@api_view(["GET"])
def stats(request):
    return JsonResponse(dashboard.dashboard_stats(request.organization))


@api_view(["GET"])
def revenue_trends(request):
    rows = dashboard.revenue_trends(
        request.organization, request.GET.get("period", "monthly"))
    return JsonResponse({"data": rows})


@api_view(["GET"])
def cash_flow(request):
    return JsonResponse(dashboard.cash_flow(request.organization))


@api_view(["GET"])
def expense_breakdown(request):
    return JsonResponse(
        {"data": dashboard.expense_breakdown(request.organization)})
