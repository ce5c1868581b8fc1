import logging
from typing import Optional

from ..models import AuditLog, Organization

logger = logging.getLogger(__name__)


def log_action(
    *,
    action: str,
    instance,
    user=None,
    organization: Optional[Organization] = None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Safe to call multiple times (caller ensures idempotency).
    """

    if not organization:
        organization = getattr(instance, "organization", None)

    # Anonymous users and background jobs are recorded without a user
    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    entry = AuditLog.objects.create(
        organization=organization,
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
    logger.debug(
        "audit %s %s(%s) by %s", action, entry.object_type, entry.object_id, user
    )
    return entry
