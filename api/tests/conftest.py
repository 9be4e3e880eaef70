"""Shared fixtures for API tests."""

import pytest


@pytest.fixture
def bearer():
    """Return Django test client kwargs carrying a bearer token for a user."""
    from accounts.services.tokens import issue_token

    def _headers(user):
        return {"HTTP_AUTHORIZATION": f"Bearer {issue_token(user)}"}

    return _headers
