"""Client-side error taxonomy, mirroring the API's JSON error responses.

``retryable`` tells callers whether re-invoking the same operation can
succeed without changing anything (network failures and 5xx responses).
"""


class ClientError(Exception):
    """Base class for every error raised by the client."""

    retryable = False

    def __init__(self, message, code=None, status_code=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class ValidationFailed(ClientError):
    """The request was rejected as malformed (HTTP 400)."""


class AccessDenied(ClientError):
    """Missing or invalid token (401) or a forbidden operation (403)."""


class NotFound(ClientError):
    """The referenced file, user, or department does not exist (404)."""


class TransportError(ClientError):
    """Network failure or server-side error; safe to retry."""

    retryable = True


class UploadCancelled(ClientError):
    """The upload was aborted through its cancel event."""

    def __init__(self, message="upload cancelled"):
        super().__init__(message, code="cancelled")


STATUS_ERRORS = {
    400: ValidationFailed,
    401: AccessDenied,
    403: AccessDenied,
    404: NotFound,
}


def error_from_response(response):
    """Build the ClientError matching an httpx error ``response``."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or (
        f"HTTP {response.status_code}: {response.text[:200]}"
    )
    code = body.get("code")

    if response.status_code in STATUS_ERRORS:
        error_class = STATUS_ERRORS[response.status_code]
    elif response.status_code >= 500 or response.status_code == 429:
        error_class = TransportError
    else:
        error_class = ClientError
    return error_class(message, code=code, status_code=response.status_code)
