"""User and department models for Archivio."""

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class Role(models.TextChoices):
    """Access role. Stored upper-case; parse incoming values with ``Role.parse``."""

    SUPERUSER = "SUPERUSER", "Superuser"
    ADMIN = "ADMIN", "Admin"
    USER = "USER", "User"

    @classmethod
    def parse(cls, value):
        """Return the Role for ``value`` ignoring case, or None if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None

    @property
    def is_elevated(self):
        return self in (Role.SUPERUSER, Role.ADMIN)


class Department(models.Model):
    """Organisational unit that files and users belong to.

    ``user_count`` and ``file_count`` are never stored; see
    ``accounts.services.departments.list_departments``.
    """

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="created at")

    class Meta:
        db_table = "department"
        verbose_name = "department"
        verbose_name_plural = "departments"
        ordering = ["name"]

    def __str__(self):
        return self.name


class ArchivioUserManager(UserManager):
    """Keeps ``createsuperuser`` in step with the role field."""

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", Role.SUPERUSER)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """Archivio user with a role and an optional department."""

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.USER)
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="users",
    )

    objects = ArchivioUserManager()

    class Meta:
        db_table = "user"
        verbose_name = "user"
        verbose_name_plural = "users"

    def __str__(self):
        return self.email or self.username

    def save(self, *args, **kwargs):
        role = Role.parse(self.role)
        if role is not None:
            self.role = role
        super().save(*args, **kwargs)

    @property
    def role_enum(self):
        return Role.parse(self.role)

    @property
    def display_name(self):
        """Full name, falling back to username, email, then the id."""
        full_name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        if full_name:
            return full_name
        return self.username or self.email or f"ID {self.pk}"
