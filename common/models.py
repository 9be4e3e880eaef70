"""Shared abstract base models and the activity log."""

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base providing consistent created_at/updated_at timestamps."""

    created_at = models.DateTimeField(auto_now_add=True, verbose_name="created at")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="updated at")

    class Meta:
        abstract = True


class ActivityEvent(models.Model):
    """Append-only record of a significant action.

    Rows are written once by ``common.services.activity.record_activity``
    and never updated. Old rows are pruned by the retention task.
    """

    class EventType(models.TextChoices):
        UPLOAD = "upload", "Upload"
        USER_CREATE = "user_create", "User created"
        USER_DELETE = "user_delete", "User deleted"
        APPROVAL = "approval", "Approval"
        REJECTION = "rejection", "Rejection"
        FILE_DELETE = "file_delete", "File deleted"
        DEPARTMENT_CREATE = "department_create", "Department created"
        DEPARTMENT_DELETE = "department_delete", "Department deleted"

    event_type = models.CharField(max_length=40, choices=EventType.choices)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activity_events",
    )
    document = models.ForeignKey(
        "documents.Document",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activity_events",
    )
    subject_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="subject_activity_events",
    )
    description = models.TextField(blank=True)
    payload = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="created at")

    class Meta:
        db_table = "activity_event"
        verbose_name = "activity event"
        verbose_name_plural = "activity events"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["-created_at"], name="idx_activity_created"),
            models.Index(fields=["event_type"], name="idx_activity_type"),
        ]

    def __str__(self):
        return f"{self.get_event_type_display()} ({self.created_at:%Y-%m-%d %H:%M})"
