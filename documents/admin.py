"""Admin configuration for document models."""

from django.contrib import admin

from documents.models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    """Admin interface for documents, including soft-deleted ones."""

    list_display = (
        "original_name",
        "file_type",
        "file_size",
        "department",
        "uploaded_by",
        "status",
        "is_deleted",
        "created_at",
    )
    list_filter = ("status", "is_deleted", "file_type", "department", "created_at")
    search_fields = ("original_name", "description", "uploaded_by__username")
    readonly_fields = (
        "pk",
        "file_type",
        "file_size",
        "deleted_at",
        "created_at",
        "updated_at",
    )
    list_select_related = ("uploaded_by", "department")
    date_hierarchy = "created_at"

    def get_queryset(self, request):
        return Document.all_objects.select_related("uploaded_by", "department")
