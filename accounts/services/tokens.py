"""Bearer token issue and resolution (PyJWT, HS256).

Tokens carry ``sub`` (user id), ``role`` and ``department``. The claims
are informational only: ``resolve_token`` reloads the user so role and
department changes take effect immediately and deactivated users are
locked out before their token expires.
"""

import logging
from datetime import timedelta

import jwt
from django.conf import settings
from django.contrib.auth import authenticate
from django.core.exceptions import PermissionDenied
from django.utils import timezone

from accounts.models import User

logger = logging.getLogger(__name__)


class InvalidToken(PermissionDenied):
    """The bearer token is missing, malformed, expired, or revoked."""


def issue_token(user):
    """Return a signed bearer token for ``user``."""
    now = timezone.now()
    claims = {
        "sub": str(user.pk),
        "role": user.role,
        "department": user.department.name if user.department_id else None,
        "iat": now,
        "exp": now + timedelta(days=settings.JWT_EXPIRATION_DAYS),
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def resolve_token(token):
    """Decode ``token`` and return the active User it belongs to.

    Raises:
        InvalidToken: If the signature, expiry, or subject is invalid, or
            the user no longer exists or is inactive.
    """
    if not token:
        raise InvalidToken("Missing bearer token.")
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidToken("Token has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidToken("Invalid token.") from exc

    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError) as exc:
        raise InvalidToken("Invalid token subject.") from exc

    user = (
        User.objects.select_related("department")
        .filter(pk=user_id, is_active=True)
        .first()
    )
    if user is None:
        logger.warning("Token rejected: user=%s missing or inactive", user_id)
        raise InvalidToken("Invalid token.")
    return user


def authenticate_credentials(username, password):
    """Check credentials and stamp ``last_login``.

    Returns:
        The authenticated User, or None for unknown users, wrong
        passwords, and inactive accounts alike.
    """
    user = authenticate(username=username, password=password)
    if user is None or not user.is_active:
        logger.warning("Login failed: username=%s", username)
        return None
    user.last_login = timezone.now()
    user.save(update_fields=["last_login"])
    logger.info("Login succeeded: pk=%s", user.pk)
    return user
