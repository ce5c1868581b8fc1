import json
import logging
import math
from functools import wraps

from django.conf import settings
from django.core.exceptions import (ObjectDoesNotExist, PermissionDenied,
                                    ValidationError)
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError, Q
from django.http import JsonResponse

from ..exceptions import (DocumentNumberError, ReferentialError,
                          StateConflictError)
from ..services.audit_helper import log_action
from ..services.validation import fetch, parse_bool, require

logger = logging.getLogger(__name__)

SAFE_METHODS = ("GET", "HEAD", "OPTIONS")


def error_response(message, status, **extra):
    return JsonResponse({"error": message, **extra}, status=status)


def _validation_response(exc: ValidationError):
    if hasattr(exc, "error_dict"):
        details = exc.message_dict
        first = next(iter(details.items()))
        # "__all__" holds errors that are not tied to one field
        if first[0] == "__all__":
            message = first[1][0]
        else:
            message = f"{first[0]}: {first[1][0]}"
        return error_response(message, 400, details=details)
    return error_response(" ".join(exc.messages), 400)


def parse_body(request) -> dict:
    """JSON request body as a dict (empty body -> {})."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def api_view(methods, *, login_required=True, organization_required=True):
    """
    Wrap a JSON endpoint: method check, authentication, organization
    context, viewer read-only rule, and error -> status mapping.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if request.method not in methods:
                return error_response("Method not allowed", 405)
            if login_required and not request.user.is_authenticated:
                return error_response("Authentication required", 401)
            if organization_required:
                if getattr(request, "organization", None) is None:
                    return error_response("No active organization", 403)
                if (
                    request.method not in SAFE_METHODS
                    and not request.membership.can_write
                ):
                    return error_response(
                        "Your role does not allow changes", 403)
            try:
                return view(request, *args, **kwargs)
            except ValidationError as exc:
                return _validation_response(exc)
            except ReferentialError as exc:
                return error_response(str(exc), 400)
            except ObjectDoesNotExist:
                return error_response("Not found", 404)
            except (StateConflictError, ProtectedError) as exc:
                message = exc.args[0] if exc.args else str(exc)
                return error_response(str(message), 409)
            except PermissionDenied as exc:
                return error_response(str(exc) or "Forbidden", 403)
            except (IntegrityError, DocumentNumberError):
                # Not retried; the client decides whether to try again
                logger.exception(
                    "Persistence failure on %s %s", request.method, request.path)
                return error_response("Internal error, the change was not saved", 500)

        return wrapper

    return decorator


def paginate(request, queryset, to_dict):
    """
    Slice queryset by ?page=&limit= and wrap as
    {data, page, totalPages, total}.
    """
    try:
        page = max(1, int(request.GET.get("page", 1)))
    except ValueError:
        page = 1
    try:
        limit = int(request.GET.get("limit", settings.BOOKS_PAGE_SIZE))
    except ValueError:
        limit = settings.BOOKS_PAGE_SIZE
    limit = min(max(1, limit), settings.BOOKS_MAX_PAGE_SIZE)

    total = queryset.count()
    offset = (page - 1) * limit
    rows = queryset[offset:offset + limit]
    return JsonResponse(
        {
            "data": [to_dict(row) for row in rows],
            "page": page,
            "totalPages": math.ceil(total / limit),
            "total": total,
        }
    )


def apply_fields(instance, data, fields):
    """Copy the whitelisted keys present in data onto instance."""
    for name in fields:
        if name in data:
            value = data[name]
            setattr(instance, name, "" if value is None and _is_text(instance, name) else value)
    return instance


def _is_text(instance, name):
    field = instance._meta.get_field(name)
    return field.get_internal_type() in ("CharField", "TextField", "SlugField")


def search_filter(queryset, request, fields):
    """?search= matched case-insensitively against any of fields."""
    term = (request.GET.get("search") or "").strip()
    if not term:
        return queryset
    query = Q()
    for name in fields:
        query |= Q(**{f"{name}__icontains": term})
    return queryset.filter(query)


def model_views(model, *, fields, to_dict, search_fields, resolve=None,
                normalize=None, required=()):
    """
    Build the (collection, detail) pair of views for a tenant-owned
    catalog model. resolve(request, data) returns extra field values
    (resolved foreign keys); normalize(data) cleans raw input in place.
    Model.save() runs full_clean, so field rules live on the model.
    """
    label = model.__name__

    def _write(request, instance, data, action):
        if normalize:
            normalize(data)
        apply_fields(instance, data, fields)
        if resolve:
            for name, value in resolve(request, data).items():
                setattr(instance, name, value)
        with transaction.atomic():
            instance.save()
            log_action(action=action, instance=instance, user=request.user,
                       changes={k: data[k] for k in fields if k in data})
        logger.info("%s %s %s", action, label, instance.pk)
        return instance

    @api_view(["GET", "POST"])
    def collection(request):
        if request.method == "POST":
            data = parse_body(request)
            require(data, *required)
            instance = model(organization=request.organization)
            _write(request, instance, data, "create")
            return JsonResponse(to_dict(instance), status=201)

        qs = model.objects.for_organization(request.organization)
        if "is_active" in request.GET:
            qs = qs.filter(is_active=parse_bool(request.GET["is_active"]))
        if "type" in request.GET and "type" in fields:
            qs = qs.filter(type=request.GET["type"])
        qs = search_filter(qs, request, search_fields)
        return paginate(request, qs, to_dict)

    @api_view(["GET", "PUT", "PATCH", "DELETE"])
    def detail(request, pk):
        instance = fetch(model, request.organization, pk)
        if request.method == "GET":
            return JsonResponse(to_dict(instance))
        if request.method == "DELETE":
            with transaction.atomic():
                log_action(action="delete", instance=instance, user=request.user)
                instance.delete()
            logger.info("delete %s %s", label, pk)
            return JsonResponse({"detail": f"{label} deleted"})
        _write(request, instance, parse_body(request), "update")
        return JsonResponse(to_dict(instance))

    collection.__name__ = f"{model._meta.model_name}_collection"
    detail.__name__ = f"{model._meta.model_name}_detail"
    return collection, detail
