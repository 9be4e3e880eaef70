"""File query engine: role scope, filters, stable sort, and pagination."""

import logging
import math

from django.core.exceptions import PermissionDenied, ValidationError
from django.db.models import Q

from accounts.models import Role
from accounts.services import policy
from common.utils import apply_date_range
from documents.models import Document

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100
UNKNOWN_UPLOADER = "Unknown"
NO_CONSTRAINT = ("", "all")

SORT_FIELDS = {
    "name": "original_name",
    "size": "file_size",
    "date": "created_at",
    "type": "file_type",
}
SORT_ORDERS = ("asc", "desc")


def _positive_int(value, name, minimum=1):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"'{name}' must be an integer, got {value!r}.", code="invalid_type"
        )
    if value < minimum:
        raise ValidationError(
            f"'{name}' must be at least {minimum}, got {value}.", code="out_of_range"
        )
    return value


class DocumentQuery:
    """Validated filter, sort, and page parameters.

    Raises ``ValidationError`` for malformed values. Values that are
    well-formed but match nothing (an unknown department, a page past
    the end) are accepted and simply produce an empty page.
    """

    def __init__(
        self,
        search="",
        department="",
        file_type="",
        date_range_days=None,
        status="",
        page=1,
        limit=DEFAULT_PAGE_SIZE,
        sort_by="date",
        sort_order="desc",
    ):
        self.search = (search or "").strip()
        self.department = "" if department in NO_CONSTRAINT else (department or "")
        file_type = (file_type or "").strip().lower().lstrip(".")
        self.file_type = "" if file_type in NO_CONSTRAINT else file_type
        self.date_range_days = (
            None
            if date_range_days is None
            else _positive_int(date_range_days, "date", minimum=0)
        )
        status = (status or "").strip().lower()
        if status and status not in Document.Status.values and status != "all":
            raise ValidationError(f"Unknown status '{status}'.", code="invalid_choice")
        self.status = "" if status in NO_CONSTRAINT else status
        self.page = _positive_int(page, "page")
        self.limit = min(_positive_int(limit, "limit"), MAX_PAGE_SIZE)
        if sort_by not in SORT_FIELDS:
            raise ValidationError(
                f"Unknown sortBy '{sort_by}'. Expected one of: "
                f"{', '.join(SORT_FIELDS)}.",
                code="invalid_choice",
            )
        if sort_order not in SORT_ORDERS:
            raise ValidationError(
                f"Unknown sortOrder '{sort_order}'. Expected 'asc' or 'desc'.",
                code="invalid_choice",
            )
        self.sort_by = sort_by
        self.sort_order = sort_order

    def __repr__(self):
        return (
            f"DocumentQuery(search={self.search!r}, department={self.department!r}, "
            f"file_type={self.file_type!r}, date={self.date_range_days!r}, "
            f"status={self.status!r}, page={self.page}, limit={self.limit}, "
            f"sort={self.sort_by}:{self.sort_order})"
        )

    def ordering(self):
        field = SORT_FIELDS[self.sort_by]
        prefix = "-" if self.sort_order == "desc" else ""
        return (f"{prefix}{field}", "id")


def scope_to_caller(queryset, user):
    """Narrow ``queryset`` to the rows ``user`` may list.

    Elevated roles see everything; a USER only their department, and
    nothing at all without one. Anyone else sees nothing.
    """
    role = Role.parse(getattr(user, "role", None)) if user is not None else None
    if role is None or not getattr(user, "is_active", False):
        return queryset.none()
    if role is Role.USER:
        if user.department_id is None:
            return queryset.none()
        return queryset.filter(department_id=user.department_id)
    return queryset


def apply_filters(queryset, query):
    if query.search:
        queryset = queryset.filter(
            Q(original_name__icontains=query.search)
            | Q(description__icontains=query.search)
        )
    if query.department:
        queryset = queryset.filter(department__name=query.department)
    if query.file_type:
        queryset = queryset.filter(file_type=query.file_type)
    if query.status:
        queryset = queryset.filter(status=query.status)
    return apply_date_range(queryset, days=query.date_range_days)


def paginate(queryset, page, limit):
    """Slice an ordered queryset into one page.

    Returns:
        dict: {"data", "total", "page", "limit", "totalPages",
        "hasNextPage", "hasPrevPage"}. ``data`` is empty past the last page.
    """
    total = queryset.count()
    total_pages = math.ceil(total / limit) if total else 0
    if page > total_pages:
        data = []
    else:
        offset = (page - 1) * limit
        data = list(queryset[offset : offset + limit])
    return {
        "data": data,
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def uploader_name(document):
    """Display name of whoever uploaded ``document``, or UNKNOWN_UPLOADER."""
    uploader = document.uploaded_by
    if uploader is None:
        return UNKNOWN_UPLOADER
    return uploader.display_name


def _run(queryset, query):
    queryset = apply_filters(queryset, query).order_by(*query.ordering())
    result = paginate(queryset, query.page, query.limit)
    for document in result["data"]:
        document.uploader_name = uploader_name(document)
    return result


def _base_queryset():
    return Document.objects.select_related("uploaded_by", "department")


def query_documents(user, query):
    """Return one page of the files ``user`` may see, matching ``query``.

    Args:
        user: The authenticated caller.
        query: A DocumentQuery.

    Returns:
        The ``paginate`` dict; each Document carries ``uploader_name``.
    """
    queryset = scope_to_caller(_base_queryset(), user)
    result = _run(queryset, query)
    logger.info(
        "Documents queried: user=%s %r total=%d",
        getattr(user, "pk", None),
        query,
        result["total"],
    )
    return result


def query_user_documents(user, owner_id, query):
    """Return one page of the files uploaded by ``owner_id``.

    Raises:
        PermissionDenied: Unless ``user`` is the owner or an administrator.
    """
    if not policy.can_view_user_files(user, owner_id):
        raise PermissionDenied("You can only list your own files.")
    queryset = _base_queryset().filter(uploaded_by_id=owner_id)
    return _run(queryset, query)


def get_document_for(user, pk):
    """Return the live document ``pk`` if ``user`` may access it.

    Raises:
        Document.DoesNotExist: If there is no live document ``pk``.
        PermissionDenied: If ``user`` may not access it.
    """
    document = _base_queryset().get(pk=pk)
    if not policy.can_access_file(user, document):
        raise PermissionDenied("You do not have access to this file.")
    document.uploader_name = uploader_name(document)
    return document
