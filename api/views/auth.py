"""Authentication views: token login, logout, and validation."""

import logging

from django.http import JsonResponse

from accounts.services.tokens import (
    InvalidToken,
    authenticate_credentials,
    issue_token,
)
from api.decorators import api_view, token_required
from api.forms import LoginForm, json_data, validated
from api.serializers import user_to_dict

logger = logging.getLogger(__name__)


@api_view("POST")
def login_view(request):
    """Exchange username and password for a bearer token."""
    data = validated(LoginForm(json_data(request)))
    user = authenticate_credentials(data["username"], data["password"])
    if user is None:
        raise InvalidToken("Invalid username or password.")
    return JsonResponse({"token": issue_token(user), "user": user_to_dict(user)})


@api_view("POST")
@token_required
def logout_view(request):
    """Tokens are stateless; the client discards its copy."""
    logger.info("Logout: user=%s", request.user.pk)
    return JsonResponse({"message": "Logged out."})


@api_view("GET")
@token_required
def validate_view(request):
    """Return the user the presented token belongs to."""
    return JsonResponse({"user": user_to_dict(request.user)})
