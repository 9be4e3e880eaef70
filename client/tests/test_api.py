"""Unit tests for ArchivioClient."""

import io
import threading

import httpx
import pytest

from client.api import ProgressReader
from client.exceptions import (
    AccessDenied,
    ClientError,
    NotFound,
    TransportError,
    UploadCancelled,
    ValidationFailed,
)
from client.tests.fakes import document_for, json_response


class TestLogin:
    def test_stores_token_and_user(self, server, make_client):
        """A successful login keeps the token and the user on the client."""
        server.route(
            "POST",
            "/api/auth/login/",
            lambda request: json_response(
                {"token": "abc", "user": {"id": 7, "role": "USER", "department": "HR"}}
            ),
        )
        server.route(
            "GET",
            "/api/auth/validate/",
            lambda request: json_response(
                {"user": {"id": 7, "auth": request.headers["Authorization"]}}
            ),
        )
        client = make_client()

        user = client.login("alice", "secret")

        assert user["id"] == 7
        assert client.token == "abc"
        assert client.validate()["auth"] == "Bearer abc"

    def test_bad_credentials(self, server, make_client):
        server.route(
            "POST",
            "/api/auth/login/",
            lambda request: json_response(
                {"message": "Invalid username or password.", "code": "unauthorized"}, 401
            ),
        )
        with pytest.raises(AccessDenied) as exc_info:
            make_client().login("alice", "wrong")
        assert exc_info.value.message == "Invalid username or password."
        assert not exc_info.value.retryable

    def test_logout_clears_session(self, server, api):
        """Logging out forgets the token, the user and the cache."""
        server.route("POST", "/api/auth/logout/", lambda r: json_response({}))
        api.logout()
        assert api.token is None
        assert api.user is None


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("status", "error_class", "retryable"),
        [
            (400, ValidationFailed, False),
            (401, AccessDenied, False),
            (403, AccessDenied, False),
            (404, NotFound, False),
            (409, ClientError, False),
            (500, TransportError, True),
            (503, TransportError, True),
        ],
    )
    def test_status_codes(self, server, api, status, error_class, retryable):
        """Each HTTP error status maps onto its client exception."""
        server.route(
            "GET",
            "/api/files/1/",
            lambda request: json_response({"message": "nope", "code": "x"}, status),
        )
        with pytest.raises(error_class) as exc_info:
            api.get_file(1)
        assert type(exc_info.value) is error_class
        assert exc_info.value.retryable is retryable
        assert exc_info.value.status_code == status
        assert exc_info.value.code == "x"

    def test_non_json_error_body(self, server, api):
        """A non-JSON error body still yields a readable message."""
        server.route(
            "GET", "/api/files/1/", lambda request: httpx.Response(502, text="Bad gateway")
        )
        with pytest.raises(TransportError, match="HTTP 502"):
            api.get_file(1)

    def test_network_failure(self, server, api):
        """Connection failures surface as a retryable TransportError."""
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        server.route("GET", "/api/files/", unreachable)
        with pytest.raises(TransportError) as exc_info:
            api.list_files()
        assert exc_info.value.retryable


class TestCache:
    def test_listing_cached_per_parameters(self, server, api):
        """Identical listings hit the server once; other parameters do not."""
        server.route("GET", "/api/files/", lambda r: json_response({"data": []}))

        api.list_files(page=1)
        api.list_files(page=1)
        api.list_files(page=2, sort_by="name")

        assert server.count("GET", "/api/files/") == 2
        assert server.requests[-1].url.params["sortBy"] == "name"

    def test_mutation_invalidates(self, server, api):
        server.route("GET", "/api/files/", lambda r: json_response({"data": []}))
        server.route("GET", "/api/stats/", lambda r: json_response({"totalFiles": 1}))
        server.route("DELETE", "/api/files/5/", lambda r: json_response({}))

        api.list_files()
        api.stats()
        api.delete_file(5)
        api.list_files()
        api.stats()

        assert server.count("GET", "/api/files/") == 2
        assert server.count("GET", "/api/stats/") == 2

    def test_failed_mutation_still_invalidates(self, server, api):
        """The cache is dropped even when the mutation fails."""
        server.route("GET", "/api/files/", lambda r: json_response({"data": []}))
        server.route(
            "DELETE",
            "/api/files/5/",
            lambda r: json_response({"message": "No.", "code": "forbidden"}, 403),
        )

        api.list_files()
        with pytest.raises(AccessDenied):
            api.delete_file(5)
        api.list_files()

        assert server.count("GET", "/api/files/") == 2

    def test_stats_user_id(self, server, api):
        server.route("GET", "/api/stats/", lambda r: json_response({"userFiles": 3}))
        assert api.stats(user_id=4) == {"userFiles": 3}
        assert server.requests[-1].url.params["userId"] == "4"


class TestUploadFile:
    def test_multipart_with_progress(self, server, api):
        """Progress starts at 0, ends at 100 and never repeats or decreases."""
        server.route("POST", "/api/files/", lambda r: json_response(document_for(r), 201))
        progress = []

        document = api.upload_file(
            io.BytesIO(b"x" * 200_000),
            department="HR",
            filename="report.pdf",
            on_progress=progress.append,
        )

        assert document["originalName"] == "report.pdf"
        request = server.requests[-1]
        assert b'name="department"' in request.content
        assert b"application/pdf" in request.content
        assert progress[0] == 0
        assert progress[-1] == 100
        assert progress == sorted(progress)
        assert len(set(progress)) == len(progress)

    def test_from_path(self, server, api, tmp_path):
        server.route("POST", "/api/files/", lambda r: json_response(document_for(r), 201))
        path = tmp_path / "scan.png"
        path.write_bytes(b"png-bytes")

        assert api.upload_file(path, department="HR")["originalName"] == "scan.png"

    def test_cancel_mid_stream(self, server, api):
        """Setting the cancel event mid-stream aborts before the server answers."""
        server.route("POST", "/api/files/", lambda r: json_response(document_for(r), 201))
        cancel = threading.Event()

        def on_progress(percent):
            if percent > 0:
                cancel.set()

        with pytest.raises(UploadCancelled):
            api.upload_file(
                io.BytesIO(b"x" * 500_000),
                filename="big.pdf",
                on_progress=on_progress,
                cancel_event=cancel,
            )
        assert server.count("POST", "/api/files/") == 0

    def test_cancelled_before_start(self, server, api):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(UploadCancelled):
            api.upload_file(io.BytesIO(b"x"), filename="a.pdf", cancel_event=cancel)
        assert server.requests == []

    def test_partly_read_stream_sends_only_the_rest(self, server, api):
        """Bytes consumed before the call are not uploaded."""
        server.route("POST", "/api/files/", lambda r: json_response(document_for(r), 201))
        source = io.BytesIO(b"HEADER--payload")
        source.read(8)
        progress = []

        api.upload_file(
            source, department="HR", filename="a.pdf", on_progress=progress.append
        )

        content = server.requests[-1].content
        assert b"\r\n\r\npayload\r\n" in content
        assert b"HEADER" not in content
        assert progress[-1] == 100


class TestProgressReader:
    def test_positions_relative_to_wrap_point(self):
        source = io.BytesIO(b"0123456789")
        source.seek(4)
        reader = ProgressReader(source, total=6)

        assert reader.tell() == 0
        assert reader.seek(0, io.SEEK_END) == 6
        assert reader.seek(0) == 0
        assert reader.read() == b"456789"

    def test_cannot_seek_before_wrap_point(self):
        """Seeking before the wrap point clamps to it."""
        source = io.BytesIO(b"0123456789")
        source.seek(4)
        reader = ProgressReader(source, total=6)

        assert reader.seek(-2, io.SEEK_CUR) == 0
        assert reader.read(2) == b"45"

    def test_progress_reported_from_wrap_point(self):
        """Half of the remaining bytes is 50%, not the absolute offset."""
        source = io.BytesIO(b"x" * 20)
        source.seek(10)
        progress = []
        reader = ProgressReader(source, total=10, on_progress=progress.append)

        reader.read(5)

        assert progress == [50]


class TestDownloadFile:
    def test_writes_server_filename(self, server, api, tmp_path):
        """The file is saved under the name the server sends."""
        server.route(
            "GET",
            "/api/files/3/download/",
            lambda r: httpx.Response(
                200,
                content=b"sheet-bytes",
                headers={"Content-Disposition": 'attachment; filename="Budget.xlsx"'},
            ),
        )
        path = api.download_file(3, tmp_path)
        assert path == tmp_path / "Budget.xlsx"
        assert path.read_bytes() == b"sheet-bytes"

    def test_missing_file(self, server, api, tmp_path):
        with pytest.raises(NotFound):
            api.download_file(3, tmp_path)
        assert list(tmp_path.iterdir()) == []

    def test_path_components_stripped(self, server, api, tmp_path):
        """Directory parts of the server's filename are dropped."""
        server.route(
            "GET",
            "/api/files/3/download/",
            lambda r: httpx.Response(
                200,
                content=b"x",
                headers={"Content-Disposition": 'attachment; filename="../../evil.pdf"'},
            ),
        )
        assert api.download_file(3, tmp_path) == tmp_path / "evil.pdf"
