"""Shared fixtures for client tests (no server; httpx.MockTransport)."""

import httpx
import pytest

from client.api import ArchivioClient
from client.tests.fakes import FakeServer


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def make_client(server):
    """Factory for clients talking to ``server``, optionally with a known user."""

    def _make(user=None):
        client = ArchivioClient(
            "http://archivio.test",
            token="token",
            transport=httpx.MockTransport(server),
        )
        client.user = user
        return client

    return _make


@pytest.fixture
def api(make_client):
    """Client logged in as an ADMIN."""
    return make_client({"id": 1, "role": "ADMIN", "department": None})
