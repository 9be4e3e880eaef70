"""Document services: upload validation, creation, review, edits, and deletion."""

import contextlib
import logging
import mimetypes
import posixpath

from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone

from accounts.models import Role
from accounts.services import policy
from accounts.services.departments import get_department_by_name
from common.models import ActivityEvent
from common.services.activity import record_activity
from common.utils import safe_dispatch
from documents.models import Document

logger = logging.getLogger(__name__)

# Office formats that mimetypes does not know on every platform.
MIME_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
}

EDITABLE_FIELDS = ("original_name", "category", "description", "department")


def extension_of(filename):
    """Lower-case extension without the dot, or "" if there is none."""
    _, ext = posixpath.splitext(filename or "")
    return ext[1:].lower()


def mime_type_for(filename):
    """Infer a MIME type from ``filename``'s extension."""
    ext = extension_of(filename)
    if ext in MIME_TYPES:
        return MIME_TYPES[ext]
    content_type, _ = mimetypes.guess_type(filename or "")
    return content_type or "application/octet-stream"


def validate_upload(file, max_size=None, allowed_extensions=None):
    """Validate an uploaded file's size and extension.

    Args:
        file: A Django UploadedFile instance.
        max_size: Maximum file size in bytes. Defaults to
            ``settings.FILE_UPLOAD_MAX_SIZE`` (10 MiB).
        allowed_extensions: Iterable of lower-case extensions. Defaults to
            ``settings.FILE_UPLOAD_ALLOWED_EXTENSIONS``.

    Returns:
        A tuple of (file_type, size_bytes).

    Raises:
        ValidationError: If the file is empty, too large, or has a
            disallowed extension.
    """
    max_size = max_size or settings.FILE_UPLOAD_MAX_SIZE
    if allowed_extensions is None:
        allowed_extensions = settings.FILE_UPLOAD_ALLOWED_EXTENSIONS
    size_bytes = file.size
    file_type = extension_of(file.name)

    if file_type not in allowed_extensions:
        shown = f".{file_type}" if file_type else "(none)"
        raise ValidationError(
            f"File type {shown} is not allowed. Allowed types: "
            f"{', '.join('.' + ext for ext in allowed_extensions)}.",
            code="file_type_not_allowed",
        )

    if size_bytes > max_size:
        raise ValidationError(
            f"File size {size_bytes} bytes exceeds the maximum of "
            f"{max_size} bytes ({max_size // 1_048_576} MB).",
            code="file_too_large",
        )

    if size_bytes <= 0:
        raise ValidationError("File is empty.", code="file_empty")

    return file_type, size_bytes


def resolve_upload_department(user, department_name):
    """Pick the department a new upload belongs to.

    A USER always uploads into their own department, whatever was sent.
    Other roles must name an existing department.

    Raises:
        ValidationError: If no department can be resolved.
    """
    if Role.parse(user.role) is Role.USER:
        if user.department_id is None:
            raise ValidationError(
                "Your account has no department; ask an administrator.",
                code="department_required",
            )
        return user.department

    if not department_name:
        raise ValidationError("Department is required.", code="department_required")
    department = get_department_by_name(department_name)
    if department is None:
        raise ValidationError(
            f"Unknown department '{department_name}'.", code="unknown_department"
        )
    return department


def create_document(user, file, department_name=None, category="", description=""):
    """Validate and store an uploaded file as a new Document.

    The physical file is written before the row is inserted. If the
    insert fails the stored file is removed again, so no orphaned object
    is left behind.

    Args:
        user: The uploading User.
        file: A Django UploadedFile instance.
        department_name: Target department name (ignored for USER role).
        category: Optional category label.
        description: Optional free text.

    Returns:
        The created Document.

    Raises:
        PermissionDenied: If ``user`` may not upload.
        ValidationError: If the file or metadata is invalid.
    """
    if not policy.can_upload_files(user):
        raise PermissionDenied("Your account cannot upload files.")

    file_type, size_bytes = validate_upload(file)
    department = resolve_upload_department(user, department_name)
    status = (
        Document.Status.PENDING
        if settings.DOCUMENT_REQUIRE_APPROVAL
        else Document.Status.APPROVED
    )

    document = Document(
        original_name=posixpath.basename(file.name),
        file_type=file_type,
        file_size=size_bytes,
        uploaded_by=user,
        department=department,
        category=(category or "").strip(),
        description=(description or "").strip(),
        status=status,
    )
    document.file.save(file.name, file, save=False)
    try:
        with transaction.atomic():
            document.save()
    except Exception:
        logger.exception(
            "Document insert failed, removing stored file: path=%s",
            document.file.name,
        )
        with contextlib.suppress(FileNotFoundError):
            document.file.delete(save=False)
        raise

    record_activity(
        ActivityEvent.EventType.UPLOAD,
        actor=user,
        document=document,
        description=f"File {document.original_name} added by {user.display_name}",
        payload={"file_type": file_type, "file_size": size_bytes},
    )
    logger.info(
        "Document created: pk=%s user=%s file=%s size=%d status=%s",
        document.pk,
        user.pk,
        document.original_name,
        size_bytes,
        status,
    )
    return document


def update_document_metadata(user, document, changes):
    """Edit a document's display name, category, description, or department.

    Raises:
        PermissionDenied: If ``user`` may not edit ``document``, or a USER
            tries to move it to another department.
        ValidationError: On an unknown field or department.
    """
    if not policy.can_edit_file(user, document):
        raise PermissionDenied("You cannot edit this file.")
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            f"Cannot update field(s): {', '.join(sorted(unknown))}.",
            code="invalid_field",
        )

    changes = dict(changes)
    if "department" in changes:
        requested = (changes["department"] or "").strip().lower()
        own = user.department.name.lower() if user.department_id else ""
        if Role.parse(user.role) is Role.USER and requested != own:
            raise PermissionDenied(
                "Only administrators can move files between departments."
            )
        changes["department"] = resolve_upload_department(user, changes["department"])
    if "original_name" in changes:
        name = (changes["original_name"] or "").strip()
        if not name:
            raise ValidationError("File name cannot be empty.", code="required")
        changes["original_name"] = name

    for field, value in changes.items():
        setattr(document, field, value)
    if changes:
        document.save(update_fields=[*changes, "updated_at"])
    logger.info("Document updated: pk=%s fields=%s", document.pk, sorted(changes))
    return document


def _review(user, document, new_status, event_type):
    if not policy.can_approve_files(user):
        raise PermissionDenied("Only administrators can review files.")

    updated = Document.objects.filter(
        pk=document.pk,
        status=Document.Status.PENDING,
    ).update(status=new_status, updated_at=timezone.now())

    if updated == 0:
        raise ValidationError(
            f"Cannot review file {document.pk}: status is '{document.status}', "
            f"expected 'pending'.",
            code="invalid_status",
        )

    document.refresh_from_db()
    record_activity(
        event_type,
        actor=user,
        document=document,
        description=(
            f"File {document.original_name} {new_status} by {user.display_name}"
        ),
    )
    logger.info("Document reviewed: pk=%s status=%s", document.pk, new_status)
    return document


def approve_document(user, document):
    """Transition a document from PENDING to APPROVED.

    Uses an atomic UPDATE with a WHERE clause on status to prevent
    race conditions.

    Raises:
        PermissionDenied: If ``user`` may not review files.
        ValidationError: If the document is not PENDING.
    """
    return _review(
        user, document, Document.Status.APPROVED, ActivityEvent.EventType.APPROVAL
    )


def reject_document(user, document):
    """Transition a document from PENDING to REJECTED."""
    return _review(
        user, document, Document.Status.REJECTED, ActivityEvent.EventType.REJECTION
    )


def soft_delete_document(user, document):
    """Hide a document from every listing and schedule removal of its file.

    The row stays for history; the stored object is purged by
    ``purge_deleted_document_files_task`` once the transaction commits.

    Raises:
        PermissionDenied: If ``user`` may not delete ``document``.
    """
    if not policy.can_delete_file(user, document):
        raise PermissionDenied("You cannot delete this file.")

    with transaction.atomic():
        Document.all_objects.filter(pk=document.pk).update(
            is_deleted=True,
            deleted_at=timezone.now(),
            updated_at=timezone.now(),
        )
        document.refresh_from_db()
        record_activity(
            ActivityEvent.EventType.FILE_DELETE,
            actor=user,
            document=document,
            description=f"File {document.original_name} deleted by {user.display_name}",
        )

        def _dispatch():
            with safe_dispatch("dispatch document file purge", logger):
                from documents.tasks import purge_deleted_document_files_task

                purge_deleted_document_files_task.delay()

        transaction.on_commit(_dispatch)

    logger.info("Document soft-deleted: pk=%s by=%s", document.pk, user.pk)
    return document
