"""Admin configuration for common app models."""

from django.contrib import admin

from common.models import ActivityEvent


@admin.register(ActivityEvent)
class ActivityEventAdmin(admin.ModelAdmin):
    """Read-only admin interface for the activity log."""

    list_display = (
        "event_type",
        "actor",
        "document",
        "subject_user",
        "created_at",
    )
    list_filter = ("event_type", "created_at")
    search_fields = ("description", "actor__username", "document__original_name")
    readonly_fields = (
        "pk",
        "event_type",
        "actor",
        "document",
        "subject_user",
        "description",
        "payload",
        "created_at",
    )
    list_select_related = ("actor", "document", "subject_user")
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
