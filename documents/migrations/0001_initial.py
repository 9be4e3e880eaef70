import django.db.models.deletion
import django.db.models.manager
from django.conf import settings
from django.db import migrations, models

import documents.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Document",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="created at"),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, verbose_name="updated at"),
                ),
                (
                    "file",
                    models.FileField(
                        max_length=255,
                        upload_to=documents.models.document_upload_to,
                    ),
                ),
                ("original_name", models.CharField(max_length=255)),
                (
                    "file_type",
                    models.CharField(help_text="Lower-case extension", max_length=20),
                ),
                (
                    "file_size",
                    models.PositiveBigIntegerField(help_text="File size in bytes"),
                ),
                ("category", models.CharField(blank=True, max_length=100)),
                ("description", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("is_deleted", models.BooleanField(default=False)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="documents",
                        to="accounts.department",
                    ),
                ),
                (
                    "uploaded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="documents",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "document",
                "verbose_name_plural": "documents",
                "db_table": "document",
                "ordering": ["-created_at", "id"],
                "base_manager_name": "all_objects",
                "indexes": [
                    models.Index(
                        fields=["is_deleted", "department"],
                        name="idx_document_live_dept",
                    ),
                    models.Index(
                        fields=["uploaded_by", "-created_at"],
                        name="idx_document_owner_created",
                    ),
                    models.Index(fields=["file_type"], name="idx_document_file_type"),
                    models.Index(fields=["status"], name="idx_document_status"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("file_size__gt", 0)),
                        name="document_file_size_positive",
                    ),
                ],
            },
            managers=[
                ("objects", django.db.models.manager.Manager()),
                ("all_objects", django.db.models.manager.Manager()),
            ],
        ),
    ]
