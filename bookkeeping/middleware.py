from django.utils.deprecation import MiddlewareMixin

from .models import Membership

# Session key holding the organization a user switched to
ACTIVE_ORGANIZATION_SESSION_KEY = "active_organization_id"


class CurrentOrganizationMiddleware(MiddlewareMixin):
    # Run on every request and
    # attach .organization and .membership, based on the logged-in user
    def process_request(self, request):
        request.organization = None
        request.membership = None
        if not request.user.is_authenticated:
            # Unauthenticated users
            return

        memberships = Membership.objects.filter(
            user=request.user, is_active=True
        ).select_related("organization")

        # If user switched organizations, the choice is stored in the session
        organization_id = request.session.get(ACTIVE_ORGANIZATION_SESSION_KEY)
        # Default organization fallback: if the user didn't choose one
        if not organization_id:
            organization_id = request.user.default_organization_id

        membership = None
        if organization_id:
            # user must be a member of that organization, a tampered
            # session cannot "jump" into another tenant
            membership = memberships.filter(
                organization_id=organization_id).first()
        if membership is None:
            membership = memberships.order_by("created_at").first()

        if membership is not None:
            request.membership = membership
            request.organization = membership.organization
