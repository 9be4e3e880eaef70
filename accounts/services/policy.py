"""Access policy predicates.

Every predicate is total: it returns a bool for any input, including a
missing, anonymous, or inactive user, and never touches the database
beyond attributes already loaded on the objects passed in.

Roles are compared through ``Role.parse`` only, so stored or token
values in any letter case evaluate the same way.
"""

from accounts.models import Role

ELEVATED_ROLES = frozenset({Role.SUPERUSER, Role.ADMIN})


def _role(user):
    """Return the caller's Role, or None if the caller cannot act at all."""
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    if not getattr(user, "is_active", False):
        return None
    return Role.parse(getattr(user, "role", None))


def _is_elevated(user):
    return _role(user) in ELEVATED_ROLES


def _owns(user, document):
    owner_id = getattr(document, "uploaded_by_id", None)
    return owner_id is not None and owner_id == user.pk


def has_access(user, allowed_roles):
    """True iff the user's role is one of ``allowed_roles`` (any case)."""
    role = _role(user)
    if role is None:
        return False
    allowed = {Role.parse(r) for r in allowed_roles}
    return role in allowed


def can_upload_files(user):
    """Any active, authenticated user may upload, whatever their role."""
    return _role(user) is not None


def can_delete_file(user, document):
    """Elevated roles may delete anything; a USER only what they uploaded."""
    role = _role(user)
    if role is None or document is None:
        return False
    if role in ELEVATED_ROLES:
        return True
    return _owns(user, document)


def can_edit_file(user, document):
    """Metadata edits follow the delete contract."""
    return can_delete_file(user, document)


def can_access_file(user, document):
    """Elevated roles see everything; a USER sees own and same-department files."""
    role = _role(user)
    if role is None or document is None:
        return False
    if role in ELEVATED_ROLES:
        return True
    if _owns(user, document):
        return True
    department_id = getattr(document, "department_id", None)
    return department_id is not None and department_id == user.department_id


def can_manage_departments(user):
    return _is_elevated(user)


def can_access_user_management(user):
    return _is_elevated(user)


def can_approve_files(user):
    return _is_elevated(user)


def can_view_user_files(user, owner_id):
    """Self or an elevated role."""
    role = _role(user)
    if role is None:
        return False
    return role in ELEVATED_ROLES or user.pk == owner_id
