"""Plain-dict representations of models for JSON responses (camelCase keys)."""

from documents.services.query import uploader_name
from documents.services.uploads import mime_type_for


def _iso(value):
    return value.isoformat() if value else None


def department_to_dict(department):
    data = {
        "id": department.pk,
        "name": department.name,
        "description": department.description,
        "createdAt": _iso(department.created_at),
    }
    # Present only on rows from list_departments().
    if hasattr(department, "user_count"):
        data["userCount"] = department.user_count
        data["fileCount"] = department.file_count
    return data


def user_to_dict(user):
    return {
        "id": user.pk,
        "username": user.username,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "displayName": user.display_name,
        "role": user.role,
        "department": user.department.name if user.department_id else None,
        "departmentId": user.department_id,
        "isActive": user.is_active,
        "createdAt": _iso(user.date_joined),
        "lastLogin": _iso(user.last_login),
    }


def document_to_dict(document):
    name = getattr(document, "uploader_name", None) or uploader_name(document)
    return {
        "id": document.pk,
        "filename": document.filename,
        "originalName": document.original_name,
        "fileType": document.file_type,
        "mimeType": mime_type_for(document.file_path or document.original_name),
        "fileSize": document.file_size,
        "filePath": document.file_path,
        "uploadedBy": document.uploaded_by_id,
        "uploaderName": name,
        "department": document.department.name if document.department_id else None,
        "category": document.category,
        "description": document.description,
        "status": document.status,
        "createdAt": _iso(document.created_at),
        "updatedAt": _iso(document.updated_at),
        "isDeleted": document.is_deleted,
    }


def activity_to_dict(event):
    return {
        "id": event.pk,
        "type": event.event_type,
        "description": event.description,
        "actorId": event.actor_id,
        "actorName": event.actor.display_name if event.actor_id else None,
        "documentId": event.document_id,
        "subjectUserId": event.subject_user_id,
        "payload": event.payload,
        "createdAt": _iso(event.created_at),
    }


def page_to_dict(result, serializer):
    """Serialize a ``paginate`` result, converting each row with ``serializer``."""
    return {**result, "data": [serializer(row) for row in result["data"]]}
