"""Celery tasks for the documents app."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)

BATCH_SIZE = 1000


@shared_task(
    name="documents.tasks.purge_deleted_document_files_task",
    bind=True,
    max_retries=2,
    default_retry_delay=60,
)
def purge_deleted_document_files_task(self):
    """Remove stored objects of soft-deleted documents.

    The rows stay (with ``is_deleted=True``) so history is preserved;
    only the physical file is removed and the ``file`` field cleared.
    Processes at most BATCH_SIZE (1000) documents per run to stay within
    CELERY_TASK_TIME_LIMIT (300s).

    Returns:
        dict: {"purged": int, "remaining": int}
    """
    from documents.models import Document

    pending_qs = Document.all_objects.filter(is_deleted=True).exclude(file="")
    total_pending = pending_qs.count()

    if total_pending == 0:
        logger.info("No deleted document files to purge.")
        return {"purged": 0, "remaining": 0}

    batch = pending_qs.order_by("pk")[:BATCH_SIZE]

    purged = 0
    for document in batch:
        try:
            document.file.delete(save=False)
        except FileNotFoundError:
            pass  # File already gone, still clear the reference
        Document.all_objects.filter(pk=document.pk).update(file="")
        purged += 1

    remaining = max(0, total_pending - purged)
    logger.info(
        "Purged %d deleted document files, %d remaining.",
        purged,
        remaining,
    )
    return {"purged": purged, "remaining": remaining}
