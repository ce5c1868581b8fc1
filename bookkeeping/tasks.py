import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def mark_overdue_documents():
    """Periodic sweep: sent invoices / received bills past due become overdue."""
    # import services lazily to avoid circular imports at module import time
    from .services.documents import mark_overdue

    changed = mark_overdue()
    logger.info("Overdue sweep finished: %s", changed)
    return changed
