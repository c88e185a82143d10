import logging

from celery import shared_task

from apps.credits.tasks import db_retry
from . import services

logger = logging.getLogger(__name__)


@shared_task
@db_retry
def complete_expired_campaigns():
    """Move active and paused campaigns past their end date to completed."""
    completed = services.complete_expired_campaigns()
    logger.info(f"[Celery] Completed {completed} expired campaigns")
    return {'completed_campaigns': completed}
