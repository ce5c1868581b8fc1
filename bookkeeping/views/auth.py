import logging

from django.conf import settings
from django.contrib.auth import (authenticate, get_user_model, login, logout,
                                 update_session_auth_hash)
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction
from django.http import JsonResponse
from django.utils.text import slugify
from django.views.decorators.csrf import ensure_csrf_cookie

from ..middleware import ACTIVE_ORGANIZATION_SESSION_KEY
from ..models import Membership, Organization
from ..serializers import user_to_dict
from ..services.validation import require
from .base import api_view, error_response, parse_body

logger = logging.getLogger(__name__)


def _unique_slug(name):
    base = slugify(name)[:70] or "organization"
    slug, n = base, 1
    while Organization.objects.filter(slug=slug).exists():
        n += 1
        slug = f"{base}-{n}"
    return slug


@ensure_csrf_cookie
@api_view(["GET"], login_required=False, organization_required=False)
def csrf(request):
    return JsonResponse({"detail": "CSRF cookie set"})


@api_view(["POST"], login_required=False, organization_required=False)
def register(request):
    """Create a user, their organization and an owner membership, then log in."""
    data = parse_body(request)
    require(data, "username", "email", "password", "organization_name")
    User = get_user_model()
    if User.objects.filter(username=data["username"]).exists():
        raise ValidationError({"username": ["Username is already taken."]})
    validate_password(data["password"])

    with transaction.atomic():
        user = User.objects.create_user(
            username=data["username"],
            email=data["email"],
            password=data["password"],
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
        )
        organization = Organization.objects.create(
            name=data["organization_name"],
            slug=_unique_slug(data["organization_name"]),
            email=data["email"],
            currency_code=data.get("currency_code")
            or settings.BOOKS_DEFAULT_CURRENCY,
            owner=user,
        )
        membership = Membership.objects.create(
            user=user, organization=organization, role=Membership.Role.OWNER)
        user.default_organization = organization
        user.save(update_fields=["default_organization"])

    login(request, user)
    logger.info("Registered %s with organization %s", user.username, organization.slug)
    return JsonResponse(user_to_dict(user, membership), status=201)


@api_view(["POST"], login_required=False, organization_required=False)
def login_view(request):
    data = parse_body(request)
    require(data, "username", "password")
    user = authenticate(
        request, username=data["username"], password=data["password"])
    if user is None:
        logger.warning("Failed login for %s", data["username"])
        return error_response("Invalid credentials", 401)
    login(request, user)
    membership = (
        Membership.objects.filter(user=user, is_active=True)
        .select_related("organization")
        .order_by("created_at")
    )
    preferred = membership.filter(
        organization_id=user.default_organization_id).first()
    return JsonResponse(user_to_dict(user, preferred or membership.first()))


@api_view(["POST"], organization_required=False)
def logout_view(request):
    logout(request)
    return JsonResponse({"detail": "Logged out"})


@api_view(["GET"], organization_required=False)
def me(request):
    return JsonResponse(user_to_dict(request.user, request.membership))


@api_view(["POST"], organization_required=False)
def switch_organization(request):
    """Make another organization the user belongs to active for this session."""
    data = parse_body(request)
    require(data, "organization_id")
    membership = (
        Membership.objects.filter(
            user=request.user, is_active=True,
            organization_id=data["organization_id"])
        .select_related("organization")
        .first()
    )
    if membership is None:
        return error_response("Not a member of that organization", 403)
    request.session[ACTIVE_ORGANIZATION_SESSION_KEY] = str(membership.organization_id)
    return JsonResponse(user_to_dict(request.user, membership))


@api_view(["POST"], organization_required=False)
def change_password(request):
    data = parse_body(request)
    require(data, "current_password", "new_password")
    user = request.user
    if not user.check_password(data["current_password"]):
        raise ValidationError(
            {"current_password": ["Current password is incorrect."]})
    try:
        validate_password(data["new_password"], user)
    except ValidationError as exc:
        raise ValidationError({"new_password": exc.messages})
    user.set_password(data["new_password"])
    user.save(update_fields=["password"])
    # Keep this session logged in; other sessions are invalidated
    update_session_auth_hash(request, user)
    logger.info("Password changed for %s", user.username)
    return JsonResponse({"detail": "Password updated"})
