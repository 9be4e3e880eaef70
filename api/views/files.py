"""File views: listing, upload, detail, review, download, and deletion."""

import logging

from django.core.exceptions import ValidationError
from django.http import FileResponse, Http404, JsonResponse

from accounts.models import Role
from api.decorators import api_view, role_required, token_required
from api.forms import (
    DocumentQueryForm,
    DocumentUpdateForm,
    UploadMetadataForm,
    json_data,
    provided,
    validated,
)
from api.serializers import document_to_dict, page_to_dict
from documents.models import Document
from documents.services.presentation import presentation_hints
from documents.services.query import (
    get_document_for,
    query_documents,
    query_user_documents,
)
from documents.services.uploads import (
    approve_document,
    create_document,
    mime_type_for,
    reject_document,
    soft_delete_document,
    update_document_metadata,
)

logger = logging.getLogger(__name__)


def _listing(result, view):
    body = page_to_dict(result, document_to_dict)
    body["presentation"] = presentation_hints(result["total"], view)
    return JsonResponse(body)


@api_view("GET", "POST")
@token_required
def file_list_view(request):
    """GET lists visible files; POST uploads one multipart ``file``."""
    if request.method == "GET":
        query = DocumentQueryForm(request.GET).to_query()
        result = query_documents(request.user, query)
        return _listing(result, request.GET.get("view"))

    upload = request.FILES.get("file")
    if upload is None:
        raise ValidationError("No file provided.", code="file_required")
    metadata = validated(UploadMetadataForm(request.POST))
    document = create_document(
        request.user,
        upload,
        department_name=metadata["department"],
        category=metadata["category"],
        description=metadata["description"],
    )
    return JsonResponse(document_to_dict(document), status=201)


@api_view("GET", "PATCH", "DELETE")
@token_required
def file_detail_view(request, pk):
    document = get_document_for(request.user, pk)

    if request.method == "GET":
        return JsonResponse(document_to_dict(document))

    if request.method == "PATCH":
        data = json_data(request)
        changes = provided(
            DocumentUpdateForm(data), data, DocumentUpdateForm.FIELD_MAP
        )
        document = update_document_metadata(request.user, document, changes)
        return JsonResponse(document_to_dict(document))

    soft_delete_document(request.user, document)
    return JsonResponse({"message": "File deleted."})


@api_view("GET")
@token_required
def file_download_view(request, pk):
    """Stream the stored file as an attachment under its original name."""
    document = get_document_for(request.user, pk)
    if not document.file:
        raise Http404("The stored file is no longer available.")
    try:
        handle = document.file.open("rb")
    except FileNotFoundError as exc:
        logger.warning(
            "Stored file missing: pk=%s path=%s", document.pk, document.file.name
        )
        raise Http404("The stored file is no longer available.") from exc
    return FileResponse(
        handle,
        as_attachment=True,
        filename=document.original_name,
        content_type=mime_type_for(document.file.name),
    )


@api_view("PATCH")
@token_required
@role_required(Role.SUPERUSER, Role.ADMIN)
def file_approve_view(request, pk):
    document = approve_document(request.user, Document.objects.get(pk=pk))
    return JsonResponse(document_to_dict(document))


@api_view("PATCH")
@token_required
@role_required(Role.SUPERUSER, Role.ADMIN)
def file_reject_view(request, pk):
    document = reject_document(request.user, Document.objects.get(pk=pk))
    return JsonResponse(document_to_dict(document))


@api_view("GET")
@token_required
def user_files_view(request, user_id):
    """Files uploaded by ``user_id``; the owner or an administrator only."""
    query = DocumentQueryForm(request.GET).to_query()
    result = query_user_documents(request.user, user_id, query)
    return _listing(result, request.GET.get("view"))
