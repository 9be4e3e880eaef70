"""Activity log services: append-only writes and recent-activity reads."""

import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from accounts.models import Role
from common.models import ActivityEvent
from common.utils import safe_dispatch

logger = logging.getLogger(__name__)

CLEANUP_BATCH_SIZE = 1000


def record_activity(
    event_type,
    *,
    actor=None,
    document=None,
    subject_user=None,
    description="",
    payload=None,
):
    """Append one activity event.

    Runs inside its own savepoint and never raises: a failure to log must
    not undo or break the action being logged.

    Args:
        event_type: An ``ActivityEvent.EventType`` value.
        actor: The User who performed the action (or None).
        document: The Document concerned (or None).
        subject_user: The User the action was performed on (or None).
        description: Human-readable summary.
        payload: Dict of extra data (serialized via DjangoJSONEncoder).

    Returns:
        The created ActivityEvent, or None if the write failed.
    """
    event = None
    with safe_dispatch(f"record {event_type} activity", logger):
        with transaction.atomic():
            event = ActivityEvent.objects.create(
                event_type=event_type,
                actor=actor,
                document=document,
                subject_user=subject_user,
                description=description,
                payload=payload if payload is not None else {},
            )
        logger.info(
            "Activity recorded: pk=%s type=%s actor=%s",
            event.pk,
            event_type,
            actor.pk if actor else None,
        )
    return event


def scope_activity(queryset, user):
    """Narrow ``queryset`` to the events ``user`` may read.

    Elevated roles read everything. A USER reads events about documents in
    their department, plus events they performed or were the subject of.
    Anyone else reads nothing.
    """
    role = Role.parse(getattr(user, "role", None)) if user is not None else None
    if role is None or not getattr(user, "is_active", False):
        return queryset.none()
    if role is not Role.USER:
        return queryset
    visible = Q(actor_id=user.pk) | Q(subject_user_id=user.pk)
    if user.department_id is not None:
        visible |= Q(document__department_id=user.department_id)
    return queryset.filter(visible)


def recent_activity(limit=10, user=None):
    """Return the ``limit`` most recent activity events, newest first.

    With ``user`` the events are scoped through ``scope_activity``;
    without it every event is returned (internal callers only).
    """
    queryset = ActivityEvent.objects.select_related(
        "actor", "document", "subject_user"
    )
    if user is not None:
        queryset = scope_activity(queryset, user)
    return list(queryset.order_by("-created_at", "-id")[:limit])


def prune_activity(retention_days=365):
    """Delete activity events older than the retention period.

    Deletes at most CLEANUP_BATCH_SIZE events per call.

    Args:
        retention_days: Days to retain events (default 365).

    Returns:
        dict: {"deleted": int, "remaining": int}
    """
    cutoff = timezone.now() - timedelta(days=retention_days)
    expired_qs = ActivityEvent.objects.filter(created_at__lt=cutoff)
    total_expired = expired_qs.count()

    if total_expired == 0:
        return {"deleted": 0, "remaining": 0}

    batch_pks = list(
        expired_qs.order_by("pk").values_list("pk", flat=True)[:CLEANUP_BATCH_SIZE]
    )
    deleted_count, _ = ActivityEvent.objects.filter(pk__in=batch_pks).delete()
    remaining = max(0, total_expired - deleted_count)

    logger.info(
        "Pruned %d activity events, %d remaining.",
        deleted_count,
        remaining,
    )
    return {"deleted": deleted_count, "remaining": remaining}
