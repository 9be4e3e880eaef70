"""Shared utility functions used across all apps."""

import logging
from contextlib import contextmanager
from datetime import timedelta

from django.utils import timezone


def apply_date_range(queryset, days=None, field="created_at"):
    """
    Keep rows whose ``field`` falls within the last ``days`` days.

    The boundary is inclusive. Rows with a NULL ``field`` never match.

    Usage::

        qs = Document.objects.all()
        qs = apply_date_range(qs, days=7)
    """
    if days is None:
        return queryset
    cutoff = timezone.now() - timedelta(days=days)
    return queryset.filter(**{f"{field}__gte": cutoff})


@contextmanager
def safe_dispatch(operation_name, logger=None):
    """
    Context manager for operations that should never raise.

    Use around activity logging, task dispatch, and other side-effects
    that must not break the main operation.

    Usage::

        with safe_dispatch("record upload activity", logger):
            ActivityEvent.objects.create(...)

        with safe_dispatch("dispatch purge task", logger):
            purge_deleted_document_files_task.delay()
    """
    _logger = logger or logging.getLogger("archivio.dispatch")
    try:
        yield
    except Exception as e:
        _logger.error("Failed to %s: %s", operation_name, e)
