"""Unit tests for dashboard statistics."""

import pytest
from django.core.exceptions import PermissionDenied

from documents.services.stats import collect_stats, type_percentages


class TestTypePercentages:
    def test_zero_denominator(self):
        """A zero total gives zero percentages, not a division error."""
        assert type_percentages({"pdf": 0, "png": 0}) == {"pdf": 0, "png": 0}

    def test_empty(self):
        assert type_percentages({}) == {}

    def test_rounded_shares(self):
        assert type_percentages({"pdf": 2, "png": 1}) == {"pdf": 67, "png": 33}


@pytest.mark.django_db
class TestCollectStats:
    def test_admin_sees_everything(self, admin, user, hr, it, make_document):
        """Admins get archive-wide figures, excluding deleted files."""
        make_document(owner=user, name="a.pdf", content=b"x" * 10)
        make_document(department=it, name="b.pdf", content=b"x" * 20)
        make_document(department=it, name="c.png", content=b"x" * 30)
        make_document(department=it, name="d.png", content=b"x" * 40, is_deleted=True)

        stats = collect_stats(admin)

        assert stats["totalFiles"] == 3
        assert stats["totalSize"] == 60
        assert stats["fileTypes"] == {"pdf": 2, "png": 1}
        assert stats["fileTypePercentages"] == {"pdf": 67, "png": 33}
        assert stats["totalDepartments"] == 2
        assert stats["totalUsers"] == 2
        assert stats["activeUsers"] == 2
        assert stats["userFiles"] == 0

    def test_user_scoped_to_department(self, user, it, make_document):
        """A USER's figures cover their department only."""
        make_document(owner=user, content=b"x" * 10)
        make_document(department=it, content=b"x" * 20)

        stats = collect_stats(user)

        assert stats["totalFiles"] == 1
        assert stats["totalSize"] == 10
        assert stats["userFiles"] == 1

    def test_empty(self, user):
        stats = collect_stats(user)
        assert stats["totalFiles"] == 0
        assert stats["totalSize"] == 0
        assert stats["fileTypes"] == {}
        assert stats["fileTypePercentages"] == {}

    def test_inactive_users_counted_separately(self, admin, make_user):
        make_user("gone", is_active=False)
        stats = collect_stats(admin)
        assert stats["totalUsers"] == 2
        assert stats["activeUsers"] == 1

    def test_admin_subject(self, admin, user, make_document):
        make_document(owner=user)
        assert collect_stats(admin, subject_id=user.pk)["userFiles"] == 1

    def test_user_cannot_view_other_subject(self, user, admin):
        """A USER cannot read another user's file count."""
        with pytest.raises(PermissionDenied):
            collect_stats(user, subject_id=admin.pk)
