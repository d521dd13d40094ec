# donors/tasks.py
"""
Celery tasks for response token housekeeping
"""
import logging

from celery import shared_task

from donors.models import ResponseToken

logger = logging.getLogger(__name__)


@shared_task
def purge_expired_tokens():
    """
    Delete unused tokens past their time-to-live.
    They already fail every lookup; this only keeps the table small.
    """
    deleted, _ = ResponseToken.objects.expired().delete()
    if deleted:
        logger.info(f"Purged {deleted} expired response tokens")
    return deleted
