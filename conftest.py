"""Shared pytest fixtures for Archivio."""

import pytest


@pytest.fixture(autouse=True)
def _media_root(tmp_path, settings):
    """Store uploaded files in a temporary directory."""
    settings.MEDIA_ROOT = tmp_path


@pytest.fixture
def make_department(db):
    """Factory fixture to create Department instances."""
    from accounts.models import Department

    def _make(name, description=""):
        return Department.objects.create(name=name, description=description)

    return _make


@pytest.fixture
def hr(make_department):
    return make_department("HR")


@pytest.fixture
def it(make_department):
    return make_department("IT")


@pytest.fixture
def make_user(db):
    """Factory fixture to create users with a role and department."""
    from accounts.models import Role, User

    def _make(
        username, role=Role.USER, department=None, password="testpass123", **extra
    ):
        return User.objects.create_user(
            username=username,
            email=extra.pop("email", f"{username}@example.com"),
            password=password,
            role=role,
            department=department,
            **extra,
        )

    return _make


@pytest.fixture
def user(make_user, hr):
    """A USER in the HR department."""
    return make_user("testuser", department=hr)


@pytest.fixture
def admin(make_user):
    """An ADMIN without a department."""
    from accounts.models import Role

    return make_user("admin", role=Role.ADMIN)


@pytest.fixture
def superuser(make_user):
    from accounts.models import Role

    return make_user("root", role=Role.SUPERUSER)


@pytest.fixture
def make_document(db):
    """Factory fixture to create Document instances with a stored file."""
    from django.core.files.uploadedfile import SimpleUploadedFile

    from documents.models import Document

    def _make(
        owner=None,
        department=None,
        name="report.pdf",
        content=b"fake pdf content",
        status=Document.Status.APPROVED,
        **fields,
    ):
        if department is None and owner is not None:
            department = owner.department
        return Document.objects.create(
            file=SimpleUploadedFile(name, content),
            original_name=name,
            file_type=name.rsplit(".", 1)[-1].lower(),
            file_size=len(content),
            uploaded_by=owner,
            department=department,
            status=status,
            **fields,
        )

    return _make
