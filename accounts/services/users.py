"""User management services."""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction

from accounts.models import Role, User
from accounts.services import policy
from common.models import ActivityEvent
from common.services.activity import record_activity

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "email",
    "first_name",
    "last_name",
    "role",
    "department",
    "is_active",
)


def _require_user_manager(actor):
    if not policy.can_access_user_management(actor):
        raise PermissionDenied("Only administrators can manage users.")


def _clean_role(role):
    parsed = Role.parse(role)
    if parsed is None:
        raise ValidationError(
            f"Unknown role '{role}'. Expected one of: "
            f"{', '.join(Role.values)}.",
            code="invalid_role",
        )
    return parsed


def list_users(page=1, limit=10):
    """Return one page of users ordered by id.

    Returns:
        dict: {"data": [User], "total", "page", "limit", "totalPages"}
    """
    from documents.services.query import paginate

    queryset = User.objects.select_related("department").order_by("pk")
    return paginate(queryset, page, limit)


@transaction.atomic
def create_user(actor, *, username, email, password, role=Role.USER, department=None,
                first_name="", last_name=""):
    """Create a user on behalf of an administrator.

    The password is hashed with Django's configured hasher. Username and
    email must be unique.

    Raises:
        PermissionDenied: If ``actor`` cannot manage users.
        ValidationError: On duplicate username/email or an unknown role.
    """
    _require_user_manager(actor)
    role = _clean_role(role)

    if User.objects.filter(username__iexact=username).exists():
        raise ValidationError(
            f"Username '{username}' is already taken.", code="duplicate_username"
        )
    if email and User.objects.filter(email__iexact=email).exists():
        raise ValidationError(
            f"Email '{email}' is already registered.", code="duplicate_email"
        )

    user = User.objects.create_user(
        username=username,
        email=email,
        password=password,
        role=role,
        department=department,
        first_name=first_name,
        last_name=last_name,
    )
    record_activity(
        ActivityEvent.EventType.USER_CREATE,
        actor=actor,
        subject_user=user,
        description=f"New user {user.display_name}",
    )
    logger.info(
        "User created: pk=%s role=%s by=%s", user.pk, user.role, actor.pk
    )
    return user


def update_user(actor, user, changes, password=None):
    """Apply administrative edits to ``user``.

    Args:
        actor: The administrator performing the edit.
        user: The User to change.
        changes: Dict restricted to EDITABLE_FIELDS.
        password: Optional new raw password.

    Raises:
        PermissionDenied: If ``actor`` cannot manage users.
        ValidationError: On an unknown field or role, or a duplicate email.
    """
    _require_user_manager(actor)
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            f"Cannot update field(s): {', '.join(sorted(unknown))}.",
            code="invalid_field",
        )
    if "role" in changes:
        changes = {**changes, "role": _clean_role(changes["role"])}
    email = changes.get("email")
    if email and User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
        raise ValidationError(
            f"Email '{email}' is already registered.", code="duplicate_email"
        )

    for field, value in changes.items():
        setattr(user, field, value)
    update_fields = list(changes)
    if password:
        user.set_password(password)
        update_fields.append("password")
    if update_fields:
        user.save(update_fields=update_fields)
    logger.info("User updated: pk=%s fields=%s by=%s", user.pk, update_fields, actor.pk)
    return user


def delete_user(actor, user):
    """Delete ``user``. Their files stay, with no uploader.

    Raises:
        PermissionDenied: If ``actor`` cannot manage users.
        ValidationError: If ``actor`` tries to delete themselves.
    """
    _require_user_manager(actor)
    if actor.pk == user.pk:
        raise ValidationError(
            "You cannot delete your own account.", code="self_delete"
        )
    user_pk = user.pk
    display_name = user.display_name
    with transaction.atomic():
        user.delete()
        record_activity(
            ActivityEvent.EventType.USER_DELETE,
            actor=actor,
            description=f"User {display_name} deleted",
            payload={"user_id": user_pk},
        )
    logger.info("User deleted: pk=%s by=%s", user_pk, actor.pk)
