"""Department management services."""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.db.models import Count, Q

from accounts.models import Department
from accounts.services import policy
from common.models import ActivityEvent
from common.services.activity import record_activity

logger = logging.getLogger(__name__)


def _require_department_manager(actor):
    if not policy.can_manage_departments(actor):
        raise PermissionDenied("Only administrators can manage departments.")


def list_departments():
    """Return all departments annotated with ``user_count`` and ``file_count``.

    ``file_count`` ignores soft-deleted files.
    """
    return list(
        Department.objects.annotate(
            user_count=Count("users", distinct=True),
            file_count=Count(
                "documents",
                filter=Q(documents__is_deleted=False),
                distinct=True,
            ),
        ).order_by("name")
    )


def get_department_by_name(name):
    """Return the Department called ``name`` (case-insensitive) or None."""
    if not name:
        return None
    return Department.objects.filter(name__iexact=name.strip()).first()


def require_department(name):
    """Return the Department called ``name`` or raise ValidationError."""
    department = get_department_by_name(name)
    if department is None:
        raise ValidationError(
            f"Unknown department '{name}'.", code="unknown_department"
        )
    return department


def _check_unique_name(name, exclude_pk=None):
    queryset = Department.objects.filter(name__iexact=name)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if queryset.exists():
        raise ValidationError(
            f"Department '{name}' already exists.", code="duplicate_department"
        )


@transaction.atomic
def create_department(actor, name, description=""):
    """Create a department.

    Raises:
        PermissionDenied: If ``actor`` cannot manage departments.
        ValidationError: If the name is blank or already used.
    """
    _require_department_manager(actor)
    name = (name or "").strip()
    if not name:
        raise ValidationError("Department name is required.", code="required")
    _check_unique_name(name)

    department = Department.objects.create(name=name, description=description or "")
    record_activity(
        ActivityEvent.EventType.DEPARTMENT_CREATE,
        actor=actor,
        description=f"Department {department.name} created",
        payload={"department_id": department.pk},
    )
    logger.info("Department created: pk=%s name=%s", department.pk, department.name)
    return department


def update_department(actor, department, name=None, description=None):
    """Rename and/or re-describe a department."""
    _require_department_manager(actor)
    update_fields = []
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Department name is required.", code="required")
        _check_unique_name(name, exclude_pk=department.pk)
        department.name = name
        update_fields.append("name")
    if description is not None:
        department.description = description
        update_fields.append("description")
    if update_fields:
        department.save(update_fields=update_fields)
        logger.info(
            "Department updated: pk=%s fields=%s", department.pk, update_fields
        )
    return department


def delete_department(actor, department):
    """Delete a department that nothing references any more.

    Soft-deleted files still count as references, so their history
    keeps a department.

    Raises:
        PermissionDenied: If ``actor`` cannot manage departments.
        ValidationError: If users or files still belong to it.
    """
    from documents.models import Document

    _require_department_manager(actor)
    user_count = department.users.count()
    file_count = Document.all_objects.filter(department=department).count()
    if user_count or file_count:
        raise ValidationError(
            f"Department '{department.name}' is still used by {user_count} "
            f"user(s) and {file_count} file(s).",
            code="department_in_use",
        )

    department_pk = department.pk
    name = department.name
    with transaction.atomic():
        department.delete()
        record_activity(
            ActivityEvent.EventType.DEPARTMENT_DELETE,
            actor=actor,
            description=f"Department {name} deleted",
            payload={"department_id": department_pk},
        )
    logger.info("Department deleted: pk=%s name=%s", department_pk, name)
