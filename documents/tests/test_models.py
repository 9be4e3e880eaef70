"""Unit tests for the Document model."""

import pytest
from django.db import IntegrityError

from documents.models import Document, document_upload_to


class TestDocumentUploadTo:
    def test_random_name_keeps_extension(self):
        """Stored names are random but keep the lowercased extension."""
        path = document_upload_to(None, "Quarterly Report.PDF")
        assert path.startswith("documents/")
        assert path.endswith(".pdf")
        assert "Quarterly" not in path

    def test_unique(self):
        assert document_upload_to(None, "a.pdf") != document_upload_to(None, "a.pdf")


@pytest.mark.django_db
class TestDocument:
    def test_default_manager_hides_deleted(self, make_document):
        """Document.objects never returns soft-deleted rows."""
        live = make_document()
        make_document(is_deleted=True)
        assert list(Document.objects.all()) == [live]
        assert Document.all_objects.count() == 2

    def test_filename_and_path(self, make_document):
        document = make_document(name="report.pdf")
        assert document.file_path.startswith("documents/")
        assert document.filename == document.file_path.rsplit("/", 1)[-1]

    def test_str(self, make_document):
        assert str(make_document(name="a.pdf")) == "a.pdf (Approved)"

    def test_file_size_must_be_positive(self, make_document):
        """The database refuses a non-positive file size."""
        document = make_document()
        with pytest.raises(IntegrityError):
            Document.all_objects.filter(pk=document.pk).update(file_size=0)
