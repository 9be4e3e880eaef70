"""
Input forms for the API.

Forms validate request shapes only; business rules live in the
services. ``validated`` turns form errors into the same
ValidationError the services raise, so views report both uniformly.
"""

import json

from django import forms
from django.core.exceptions import NON_FIELD_ERRORS, ValidationError

from documents.services.query import (
    DEFAULT_PAGE_SIZE,
    SORT_FIELDS,
    SORT_ORDERS,
    DocumentQuery,
)


def json_data(request):
    """Decode the request body as a JSON object ({} when empty)."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ValidationError(
            "Request body is not valid JSON.", code="invalid_json"
        ) from exc
    if not isinstance(data, dict):
        raise ValidationError(
            "Request body must be a JSON object.", code="invalid_json"
        )
    return data


def validated(form):
    """Return ``form.cleaned_data`` or raise the first error as ValidationError."""
    if form.is_valid():
        return form.cleaned_data
    errors = form.errors.as_data()
    field, field_errors = next(iter(errors.items()))
    error = field_errors[0]
    message = " ".join(error.messages)
    if field != NON_FIELD_ERRORS:
        message = f"{field}: {message}"
    raise ValidationError(message, code=error.code or "invalid")


def provided(form, data, field_map):
    """Map the submitted keys of a partial update onto model field names."""
    cleaned = validated(form)
    return {field_map[key]: cleaned[key] for key in field_map if key in data}


class LoginForm(forms.Form):
    username = forms.CharField(max_length=150)
    password = forms.CharField(strip=False)


class DocumentQueryForm(forms.Form):
    """Query-string parameters of the file listings."""

    search = forms.CharField(required=False)
    department = forms.CharField(required=False)
    type = forms.CharField(required=False)
    date = forms.IntegerField(required=False, min_value=0)
    status = forms.CharField(required=False)
    page = forms.IntegerField(required=False, min_value=1)
    limit = forms.IntegerField(required=False, min_value=1)
    sortBy = forms.ChoiceField(required=False, choices=[(k, k) for k in SORT_FIELDS])
    sortOrder = forms.ChoiceField(required=False, choices=[(o, o) for o in SORT_ORDERS])

    def to_query(self):
        """Build a DocumentQuery, applying defaults for omitted parameters."""
        data = validated(self)
        return DocumentQuery(
            search=data["search"],
            department=data["department"],
            file_type=data["type"],
            date_range_days=data["date"],
            status=data["status"],
            page=data["page"] or 1,
            limit=data["limit"] or DEFAULT_PAGE_SIZE,
            sort_by=data["sortBy"] or "date",
            sort_order=data["sortOrder"] or "desc",
        )


class UploadMetadataForm(forms.Form):
    department = forms.CharField(required=False, max_length=100)
    category = forms.CharField(required=False, max_length=100)
    description = forms.CharField(required=False)


class DocumentUpdateForm(forms.Form):
    FIELD_MAP = {
        "originalName": "original_name",
        "category": "category",
        "description": "description",
        "department": "department",
    }

    originalName = forms.CharField(required=False, max_length=255, strip=False)
    category = forms.CharField(required=False, max_length=100)
    description = forms.CharField(required=False)
    department = forms.CharField(required=False, max_length=100)


class PageForm(forms.Form):
    page = forms.IntegerField(required=False, min_value=1)
    limit = forms.IntegerField(required=False, min_value=1, max_value=100)


class UserCreateForm(forms.Form):
    username = forms.CharField(max_length=150)
    email = forms.EmailField(required=False)
    password = forms.CharField(strip=False, min_length=6)
    role = forms.CharField(required=False, max_length=20)
    department = forms.CharField(required=False, max_length=100)
    firstName = forms.CharField(required=False, max_length=150)
    lastName = forms.CharField(required=False, max_length=150)


class UserUpdateForm(forms.Form):
    FIELD_MAP = {
        "email": "email",
        "firstName": "first_name",
        "lastName": "last_name",
        "role": "role",
        "department": "department",
        "isActive": "is_active",
    }

    email = forms.EmailField(required=False)
    password = forms.CharField(required=False, strip=False, min_length=6)
    role = forms.CharField(required=False, max_length=20)
    department = forms.CharField(required=False, max_length=100)
    firstName = forms.CharField(required=False, max_length=150)
    lastName = forms.CharField(required=False, max_length=150)
    isActive = forms.BooleanField(required=False)


class DepartmentForm(forms.Form):
    name = forms.CharField(max_length=100)
    description = forms.CharField(required=False)


class StatsForm(forms.Form):
    userId = forms.IntegerField(required=False, min_value=1)


class ActivityForm(forms.Form):
    limit = forms.IntegerField(required=False, min_value=1, max_value=100)
