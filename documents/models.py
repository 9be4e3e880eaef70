"""Document model: one archived file and its metadata."""

import posixpath
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel


def document_upload_to(instance, filename):
    """Store under ``documents/YYYY/MM/`` with a random name, keeping the extension."""
    _, ext = posixpath.splitext(filename)
    return timezone.now().strftime(f"documents/%Y/%m/{uuid.uuid4().hex}{ext.lower()}")


class LiveDocumentManager(models.Manager):
    """Excludes soft-deleted rows. Used as the default manager."""

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


class Document(TimeStampedModel):
    """Archived file with department, category, and review status.

    Status lifecycle:
        pending → approved
        pending → rejected

    Uploads start ``approved`` unless ``DOCUMENT_REQUIRE_APPROVAL`` is set.
    Deletion is soft: ``is_deleted`` hides the row from ``objects`` and the
    stored file is purged later by a Celery task.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    file = models.FileField(upload_to=document_upload_to, max_length=255)
    original_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=20, help_text="Lower-case extension")
    file_size = models.PositiveBigIntegerField(help_text="File size in bytes")
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="documents",
    )
    department = models.ForeignKey(
        "accounts.Department",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="documents",
    )
    category = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = LiveDocumentManager()
    all_objects = models.Manager()

    class Meta:
        db_table = "document"
        verbose_name = "document"
        verbose_name_plural = "documents"
        ordering = ["-created_at", "id"]
        base_manager_name = "all_objects"
        indexes = [
            models.Index(
                fields=["is_deleted", "department"], name="idx_document_live_dept"
            ),
            models.Index(
                fields=["uploaded_by", "-created_at"], name="idx_document_owner_created"
            ),
            models.Index(fields=["file_type"], name="idx_document_file_type"),
            models.Index(fields=["status"], name="idx_document_status"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(file_size__gt=0),
                name="document_file_size_positive",
            ),
        ]

    def __str__(self):
        return f"{self.original_name} ({self.get_status_display()})"

    @property
    def filename(self):
        """Storage basename of the stored object."""
        return posixpath.basename(self.file.name) if self.file else ""

    @property
    def file_path(self):
        """Storage locator of the stored object."""
        return self.file.name if self.file else ""
