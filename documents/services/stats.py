"""Statistics over the caller's visible files and the user base."""

from django.core.exceptions import PermissionDenied
from django.db.models import Count, Sum

from accounts.models import Department, User
from accounts.services import policy
from documents.models import Document
from documents.services.query import scope_to_caller


def type_percentages(counts):
    """Map each file type to its rounded share of ``counts``.

    Every share is 0 when the counts sum to 0.
    """
    denominator = sum(counts.values())
    if denominator == 0:
        return {file_type: 0 for file_type in counts}
    return {
        file_type: round(100 * count / denominator)
        for file_type, count in counts.items()
    }


def collect_stats(user, subject_id=None):
    """Aggregate counts for the dashboard.

    File figures cover only the files ``user`` may list (a USER sees their
    department). ``userFiles`` counts the live files uploaded by
    ``subject_id``, which defaults to the caller.

    Raises:
        PermissionDenied: If ``subject_id`` is someone else and ``user`` is
            not an administrator.
    """
    if subject_id is None:
        subject_id = user.pk
    if not policy.can_view_user_files(user, subject_id):
        raise PermissionDenied("You can only view your own statistics.")

    visible = scope_to_caller(Document.objects.all(), user)
    totals = visible.aggregate(total_files=Count("id"), total_size=Sum("file_size"))
    file_types = dict(
        visible.order_by()
        .values("file_type")
        .annotate(count=Count("id"))
        .values_list("file_type", "count")
    )

    return {
        "totalFiles": totals["total_files"],
        "totalSize": totals["total_size"] or 0,
        "activeUsers": User.objects.filter(is_active=True).count(),
        "totalDepartments": Department.objects.count(),
        "fileTypes": file_types,
        "fileTypePercentages": type_percentages(file_types),
        "userFiles": Document.objects.filter(uploaded_by_id=subject_id).count(),
        "totalUsers": User.objects.count(),
    }
