"""Admin configuration for user and department models."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from accounts.models import Department, User


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    """Admin interface for departments."""

    list_display = ("name", "description", "created_at")
    search_fields = ("name",)
    readonly_fields = ("pk", "created_at")


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """User admin with Archivio's role and department fields."""

    list_display = (
        "username",
        "email",
        "role",
        "department",
        "is_active",
        "last_login",
    )
    list_filter = ("role", "department", "is_active")
    list_select_related = ("department",)
    fieldsets = DjangoUserAdmin.fieldsets + (
        ("Archivio", {"fields": ("role", "department")}),
    )
    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        ("Archivio", {"fields": ("role", "department")}),
    )
