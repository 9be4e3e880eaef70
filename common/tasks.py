"""Celery tasks for the common app."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    name="common.tasks.prune_activity_events_task",
    bind=True,
    max_retries=2,
    default_retry_delay=60,
)
def prune_activity_events_task(self):
    """Delete activity events older than ACTIVITY_RETENTION_DAYS.

    Processes at most CLEANUP_BATCH_SIZE (1000) events per run.

    Returns:
        dict: {"deleted": int, "remaining": int}
    """
    from django.conf import settings

    from common.services.activity import prune_activity

    retention_days = getattr(settings, "ACTIVITY_RETENTION_DAYS", 365)
    result = prune_activity(retention_days=retention_days)
    if result["remaining"] > 0:
        logger.info(
            "Activity pruning left %d events for the next run.",
            result["remaining"],
        )
    return result
