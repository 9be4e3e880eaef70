"""
API view decorators for bearer authentication, roles, and error mapping.
"""

import logging
from functools import wraps

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError
from django.db import DatabaseError
from django.http import Http404, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from accounts.services import policy
from accounts.services.tokens import InvalidToken, resolve_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def error_response(message, code, status):
    """JSON error body shared by every API failure: {"message", "code"}."""
    return JsonResponse({"message": message, "code": code}, status=status)


def _validation_code(exc):
    code = getattr(exc, "code", None)
    if code:
        return code
    for error in getattr(exc, "error_list", []):
        if getattr(error, "code", None):
            return error.code
    return "invalid"


def api_view(*methods):
    """
    Mark a function as a JSON API endpoint.

    Restricts the HTTP methods, exempts the view from CSRF (callers
    authenticate with a bearer token, not a cookie), and turns the
    exceptions raised by services into JSON error responses:

    - ValidationError -> 400
    - InvalidToken -> 401
    - PermissionDenied -> 403
    - ObjectDoesNotExist / Http404 -> 404
    - DatabaseError -> 500
    """

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if request.method not in methods:
                return error_response(
                    f"Method {request.method} not allowed.",
                    "method_not_allowed",
                    405,
                )
            try:
                return view_func(request, *args, **kwargs)
            except ValidationError as exc:
                return error_response(
                    " ".join(exc.messages), _validation_code(exc), 400
                )
            except InvalidToken as exc:
                return error_response(
                    str(exc) or "Authentication required.", "unauthorized", 401
                )
            except PermissionDenied as exc:
                logger.warning(
                    "Access denied: path=%s user=%s reason=%s",
                    request.path,
                    getattr(request.user, "pk", None),
                    exc,
                )
                return error_response(str(exc) or "Access denied.", "forbidden", 403)
            except (ObjectDoesNotExist, Http404) as exc:
                return error_response(str(exc) or "Not found.", "not_found", 404)
            except DatabaseError:
                logger.exception("Storage failure: path=%s", request.path)
                return error_response(
                    "The request could not be completed. Please try again.",
                    "storage_error",
                    500,
                )

        return csrf_exempt(wrapper)

    return decorator


def token_required(view_func):
    """
    Authenticate the request from its ``Authorization: Bearer`` header.

    Sets ``request.user`` to the token's active user. Must sit below
    ``api_view`` so that InvalidToken becomes a 401.
    """

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header.lower().startswith(BEARER_PREFIX):
            raise InvalidToken("Authentication required.")
        request.user = resolve_token(header[len(BEARER_PREFIX):].strip())
        return view_func(request, *args, **kwargs)

    return wrapper


def role_required(*roles):
    """Reject callers whose role is not one of ``roles`` (any case)."""

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if not policy.has_access(request.user, roles):
                raise PermissionDenied("Your role does not allow this action.")
            return view_func(request, *args, **kwargs)

        return wrapper

    return decorator
