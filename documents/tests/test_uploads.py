"""Unit tests for document upload, review, edit, and delete services."""

import pytest
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError

from common.models import ActivityEvent
from documents.models import Document
from documents.services.uploads import (
    approve_document,
    create_document,
    extension_of,
    mime_type_for,
    reject_document,
    resolve_upload_department,
    soft_delete_document,
    update_document_metadata,
    validate_upload,
)


class TestValidateUpload:
    """Tests for validate_upload service."""

    def test_valid_file(self):
        """Valid file returns (file_type, size_bytes)."""
        file = SimpleUploadedFile("Report.PDF", b"fake pdf content")
        assert validate_upload(file) == ("pdf", 16)

    def test_file_exceeds_max_size(self):
        """An 11 MiB file is rejected with a message naming the limit."""
        file = SimpleUploadedFile("big.pdf", b"x" * (11 * 1024 * 1024))
        with pytest.raises(ValidationError) as exc_info:
            validate_upload(file)
        assert exc_info.value.code == "file_too_large"
        assert "10 MB" in exc_info.value.messages[0]

    def test_exactly_max_size_accepted(self):
        """A file of exactly the maximum size is accepted."""
        file = SimpleUploadedFile("edge.pdf", b"x" * 50)
        assert validate_upload(file, max_size=50) == ("pdf", 50)

    @pytest.mark.parametrize("name", ["script.exe", "archive.tar.gz", "README"])
    def test_disallowed_extension(self, name):
        """Unknown and missing extensions are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_upload(SimpleUploadedFile(name, b"data"))
        assert exc_info.value.code == "file_type_not_allowed"

    def test_empty_file(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_upload(SimpleUploadedFile("empty.pdf", b""))
        assert exc_info.value.code == "file_empty"

    def test_custom_allowed_extensions(self):
        file = SimpleUploadedFile("notes.txt", b"text")
        assert validate_upload(file, allowed_extensions=["txt"]) == ("txt", 4)


class TestMimeTypes:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("a.pdf", "application/pdf"),
            ("a.DOCX", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
            ("a.xls", "application/vnd.ms-excel"),
            ("a.jpeg", "image/jpeg"),
            ("a.unknownext", "application/octet-stream"),
        ],
    )
    def test_mime_type_for(self, name, expected):
        assert mime_type_for(name) == expected

    def test_extension_of(self):
        assert extension_of("x.Tar.GZ") == "gz"
        assert extension_of("noext") == ""


@pytest.mark.django_db
class TestResolveUploadDepartment:
    def test_user_gets_own_department(self, user, it):
        """A USER's requested department is ignored in favour of their own."""
        assert resolve_upload_department(user, "IT") == user.department

    def test_user_without_department(self, make_user):
        with pytest.raises(ValidationError) as exc_info:
            resolve_upload_department(make_user("loner"), "HR")
        assert exc_info.value.code == "department_required"

    def test_admin_must_name_department(self, admin):
        with pytest.raises(ValidationError) as exc_info:
            resolve_upload_department(admin, "")
        assert exc_info.value.code == "department_required"

    def test_admin_unknown_department(self, admin):
        with pytest.raises(ValidationError) as exc_info:
            resolve_upload_department(admin, "Nowhere")
        assert exc_info.value.code == "unknown_department"

    def test_admin_named_department(self, admin, it):
        """Admins name the department in any letter case."""
        assert resolve_upload_department(admin, "it") == it


@pytest.mark.django_db
class TestCreateDocument:
    """Tests for create_document service."""

    def test_creates_approved_by_default(self, user, tmp_path):
        file = SimpleUploadedFile("report.pdf", b"fake pdf content")
        document = create_document(user, file, category="Reports", description=" Q3 ")

        assert document.status == Document.Status.APPROVED
        assert document.original_name == "report.pdf"
        assert document.file_type == "pdf"
        assert document.file_size == 16
        assert document.uploaded_by == user
        assert document.department == user.department
        assert document.description == "Q3"
        assert document.file_path.startswith("documents/")
        assert (tmp_path / document.file_path).exists()

    def test_pending_when_approval_required(self, user, settings):
        """With DOCUMENT_REQUIRE_APPROVAL new documents start pending."""
        settings.DOCUMENT_REQUIRE_APPROVAL = True
        document = create_document(user, SimpleUploadedFile("a.pdf", b"x"))
        assert document.status == Document.Status.PENDING

    def test_user_department_substituted(self, user, it):
        document = create_document(user, SimpleUploadedFile("a.pdf", b"x"), "IT")
        assert document.department == user.department

    def test_admin_chooses_department(self, admin, it):
        document = create_document(admin, SimpleUploadedFile("a.pdf", b"x"), "IT")
        assert document.department == it

    def test_records_activity(self, user):
        document = create_document(user, SimpleUploadedFile("a.pdf", b"x"))
        event = ActivityEvent.objects.get(event_type=ActivityEvent.EventType.UPLOAD)
        assert event.document == document
        assert event.actor == user

    def test_invalid_file_not_stored(self, user, tmp_path):
        """A rejected file leaves neither a row nor a stored object."""
        with pytest.raises(ValidationError):
            create_document(user, SimpleUploadedFile("a.exe", b"x"))
        assert Document.all_objects.count() == 0
        assert not any(tmp_path.rglob("*.exe"))

    def test_failed_insert_removes_stored_file(self, user, tmp_path, monkeypatch):
        """A failed row insert leaves no orphaned object in storage."""

        def failing_save(self, *args, **kwargs):
            raise DatabaseError("insert failed")

        monkeypatch.setattr(Document, "save", failing_save)

        with pytest.raises(DatabaseError):
            create_document(user, SimpleUploadedFile("a.pdf", b"content"))

        assert not any(path.is_file() for path in tmp_path.rglob("*"))

    def test_inactive_user_cannot_upload(self, user):
        user.is_active = False
        with pytest.raises(PermissionDenied):
            create_document(user, SimpleUploadedFile("a.pdf", b"x"))


@pytest.mark.django_db
class TestReview:
    def test_approve_pending(self, admin, hr, make_document):
        document = make_document(department=hr, status=Document.Status.PENDING)
        approve_document(admin, document)
        assert document.status == Document.Status.APPROVED
        assert ActivityEvent.objects.filter(
            event_type=ActivityEvent.EventType.APPROVAL, document=document
        ).exists()

    def test_reject_pending(self, superuser, hr, make_document):
        document = make_document(department=hr, status=Document.Status.PENDING)
        reject_document(superuser, document)
        document.refresh_from_db()
        assert document.status == Document.Status.REJECTED

    def test_review_non_pending(self, admin, hr, make_document):
        """Reviewing an already reviewed document changes nothing."""
        document = make_document(department=hr, status=Document.Status.APPROVED)
        with pytest.raises(ValidationError) as exc_info:
            reject_document(admin, document)
        assert exc_info.value.code == "invalid_status"
        document.refresh_from_db()
        assert document.status == Document.Status.APPROVED

    def test_user_cannot_review(self, user, make_document):
        document = make_document(owner=user, status=Document.Status.PENDING)
        with pytest.raises(PermissionDenied):
            approve_document(user, document)


@pytest.mark.django_db
class TestUpdateDocumentMetadata:
    def test_owner_edits(self, user, make_document):
        document = make_document(owner=user)
        update_document_metadata(
            user, document, {"original_name": " Renamed.pdf ", "category": "Legal"}
        )
        document.refresh_from_db()
        assert document.original_name == "Renamed.pdf"
        assert document.category == "Legal"

    def test_colleague_cannot_edit(self, user, make_user, hr, make_document):
        document = make_document(owner=make_user("colleague", department=hr))
        with pytest.raises(PermissionDenied):
            update_document_metadata(user, document, {"category": "x"})

    def test_user_cannot_move_department(self, user, it, make_document):
        """A USER cannot move a file to another department."""
        document = make_document(owner=user)
        with pytest.raises(PermissionDenied):
            update_document_metadata(user, document, {"department": "IT"})

    def test_user_may_resend_own_department(self, user, make_document):
        """Resubmitting one's own department is allowed."""
        document = make_document(owner=user)
        update_document_metadata(user, document, {"department": "hr"})
        assert document.department == user.department

    def test_admin_moves_department(self, admin, user, it, make_document):
        document = make_document(owner=user)
        update_document_metadata(admin, document, {"department": "IT"})
        document.refresh_from_db()
        assert document.department == it

    def test_unknown_field(self, admin, make_document):
        with pytest.raises(ValidationError) as exc_info:
            update_document_metadata(admin, make_document(), {"file_size": 1})
        assert exc_info.value.code == "invalid_field"

    def test_blank_name(self, admin, make_document):
        with pytest.raises(ValidationError):
            update_document_metadata(admin, make_document(), {"original_name": "  "})


@pytest.mark.django_db
class TestSoftDeleteDocument:
    def test_owner_deletes(self, user, make_document):
        document = make_document(owner=user)
        soft_delete_document(user, document)

        assert document.is_deleted
        assert document.deleted_at is not None
        assert not Document.objects.filter(pk=document.pk).exists()
        assert Document.all_objects.filter(pk=document.pk).exists()
        assert ActivityEvent.objects.filter(
            event_type=ActivityEvent.EventType.FILE_DELETE
        ).exists()

    def test_colleague_cannot_delete(self, user, make_user, hr, make_document):
        """Colleagues in the same department cannot delete each other's files."""
        document = make_document(owner=make_user("colleague", department=hr))
        with pytest.raises(PermissionDenied):
            soft_delete_document(user, document)
        assert Document.objects.filter(pk=document.pk).exists()

    def test_admin_deletes_any(self, admin, user, make_document):
        document = make_document(owner=user)
        soft_delete_document(admin, document)
        assert not Document.objects.filter(pk=document.pk).exists()

    def test_purge_dispatched_on_commit(
        self, user, make_document, tmp_path, django_capture_on_commit_callbacks
    ):
        """After commit, the purge task removes the stored file."""
        document = make_document(owner=user)
        stored = tmp_path / document.file.name
        assert stored.exists()

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            soft_delete_document(user, document)

        assert len(callbacks) == 1
        assert not stored.exists()
        document.refresh_from_db()
        assert document.file.name == ""
