"""Synchronous HTTP client for the Archivio API (httpx).

The client is an explicit session object: the bearer token and the
response cache live on the instance, never in module globals. Listing
and statistics responses are cached per parameter set and dropped after
every create, update, or delete issued through the same client.
"""

import io
import logging
import mimetypes
import os
import re
import threading
from pathlib import Path
from urllib.parse import unquote

import httpx

from client.exceptions import TransportError, UploadCancelled, error_from_response

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)
UPLOAD_CHUNK_SIZE = 64 * 1024
DOWNLOAD_CHUNK_SIZE = 64 * 1024

# Python keyword arguments -> query-string names of the file listings.
LISTING_PARAMS = {
    "search": "search",
    "department": "department",
    "file_type": "type",
    "date": "date",
    "status": "status",
    "page": "page",
    "limit": "limit",
    "sort_by": "sortBy",
    "sort_order": "sortOrder",
    "view": "view",
}

DOCUMENT_FIELDS = {
    "original_name": "originalName",
    "category": "category",
    "description": "description",
    "department": "department",
}


class ProgressReader(io.RawIOBase):
    """Read-only file wrapper that reports upload progress and honours cancellation.

    The wrapped stream appears to start at its position when wrapped, so a
    transport that rewinds to 0 never re-sends bytes the caller already
    consumed. ``on_progress`` receives integer percentages that never decrease,
    even if the transport rewinds the stream. Reading after
    ``cancel_event`` is set raises UploadCancelled, which aborts the
    request in flight.
    """

    def __init__(self, fileobj, total, on_progress=None, cancel_event=None):
        super().__init__()
        self._file = fileobj
        self._total = total
        self._on_progress = on_progress
        self._cancel_event = cancel_event
        self._reported = -1
        self._start = fileobj.tell()

    def readable(self):
        return True

    def seekable(self):
        return True

    def seek(self, offset, whence=os.SEEK_SET):
        if whence == os.SEEK_SET:
            offset += self._start
        position = self._file.seek(offset, whence)
        if position < self._start:
            position = self._file.seek(self._start)
        return position - self._start

    def tell(self):
        return self._file.tell() - self._start

    def read(self, size=-1):
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise UploadCancelled()
        chunk = self._file.read(size)
        if self._total:
            self.report(min(100, self.tell() * 100 // self._total))
        return chunk

    def readinto(self, buffer):
        chunk = self.read(len(buffer))
        buffer[: len(chunk)] = chunk
        return len(chunk)

    def report(self, percent):
        if percent > self._reported:
            self._reported = percent
            if self._on_progress is not None:
                self._on_progress(percent)


def _listing_query(params):
    return {
        LISTING_PARAMS[key]: value for key, value in params.items() if value is not None
    }


def _attachment_filename(response, default):
    disposition = response.headers.get("content-disposition", "")
    match = re.search(r"filename\*=(?:UTF-8'')?([^;]+)", disposition, re.IGNORECASE)
    if match:
        return unquote(match.group(1).strip().strip('"'))
    match = re.search(r'filename="?([^";]+)"?', disposition, re.IGNORECASE)
    if match:
        return match.group(1)
    return default


class ArchivioClient:
    """Session against one Archivio server.

    Usage::

        with ArchivioClient("https://archivio.example.com") as client:
            client.login("alice", "secret")
            page = client.list_files(department="HR", sort_by="name")
    """

    def __init__(self, base_url, token=None, timeout=DEFAULT_TIMEOUT, transport=None):
        self._http = httpx.Client(
            base_url=base_url, timeout=timeout, transport=transport
        )
        self.token = token
        self.user = None
        self._cache = {}
        self._cache_lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        self._http.close()

    # -- plumbing -----------------------------------------------------------

    def _headers(self):
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method, path, **kwargs):
        try:
            response = self._http.request(
                method, path, headers=self._headers(), **kwargs
            )
        except httpx.RequestError as exc:
            logger.warning("Request failed: %s %s error=%s", method, path, exc)
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        if response.is_error:
            error = error_from_response(response)
            logger.warning(
                "Request rejected: %s %s status=%d code=%s",
                method,
                path,
                response.status_code,
                error.code,
            )
            raise error
        return response

    def _cached(self, key, fetch):
        with self._cache_lock:
            if key in self._cache:
                return self._cache[key]
        value = fetch()
        with self._cache_lock:
            self._cache[key] = value
        return value

    def invalidate(self):
        """Drop every cached listing and statistics response."""
        with self._cache_lock:
            self._cache.clear()

    # -- auth ---------------------------------------------------------------

    def login(self, username, password):
        """Obtain a bearer token; returns the user dict."""
        credentials = {"username": username, "password": password}
        body = self._request("POST", "/api/auth/login/", json=credentials).json()
        self.token = body["token"]
        self.user = body["user"]
        self.invalidate()
        return self.user

    def logout(self):
        if self.token:
            self._request("POST", "/api/auth/logout/")
        self.token = None
        self.user = None
        self.invalidate()

    def validate(self):
        """Refresh and return the current user from the server."""
        self.user = self._request("GET", "/api/auth/validate/").json()["user"]
        return self.user

    # -- files --------------------------------------------------------------

    def list_files(self, **params):
        """One page of visible files. See LISTING_PARAMS for keyword names."""
        query = _listing_query(params)
        key = ("files", tuple(sorted(query.items())))
        return self._cached(
            key, lambda: self._request("GET", "/api/files/", params=query).json()
        )

    def user_files(self, user_id, **params):
        query = _listing_query(params)
        key = ("user_files", user_id, tuple(sorted(query.items())))
        return self._cached(
            key,
            lambda: self._request(
                "GET", f"/api/files/user/{user_id}/", params=query
            ).json(),
        )

    def get_file(self, file_id):
        return self._request("GET", f"/api/files/{file_id}/").json()

    def stats(self, user_id=None):
        params = {"userId": user_id} if user_id is not None else {}
        return self._cached(
            ("stats", user_id),
            lambda: self._request("GET", "/api/stats/", params=params).json(),
        )

    def activities(self, limit=10):
        response = self._request("GET", "/api/activities/", params={"limit": limit})
        return response.json()["data"]

    def upload_file(
        self,
        source,
        department=None,
        category="",
        description="",
        filename=None,
        on_progress=None,
        cancel_event=None,
    ):
        """Upload one file as multipart ``file``; returns the created document.

        Args:
            source: A path or a binary file object opened for reading.
            department: Department name (ignored by the server for USERs).
            category: Optional category label.
            description: Optional free text.
            filename: Name sent to the server. Defaults to the path's name.
            on_progress: Callable receiving non-decreasing percentages.
            cancel_event: A threading.Event; setting it aborts the upload.

        Raises:
            UploadCancelled: If ``cancel_event`` was set.
            ClientError: Subclasses for every rejected or failed request.
        """
        if isinstance(source, (str, os.PathLike)):
            path = Path(source)
            with path.open("rb") as fileobj:
                return self.upload_file(
                    fileobj,
                    department=department,
                    category=category,
                    description=description,
                    filename=filename or path.name,
                    on_progress=on_progress,
                    cancel_event=cancel_event,
                )

        name = filename or Path(getattr(source, "name", "upload")).name
        start = source.tell()
        total = source.seek(0, os.SEEK_END) - start
        source.seek(start)
        reader = ProgressReader(source, total, on_progress, cancel_event)
        reader.report(0)
        if cancel_event is not None and cancel_event.is_set():
            raise UploadCancelled()

        content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        data = {"category": category or "", "description": description or ""}
        if department:
            data["department"] = department
        try:
            response = self._request(
                "POST",
                "/api/files/",
                data=data,
                files={"file": (name, reader, content_type)},
            )
        finally:
            self.invalidate()
        reader.report(100)
        logger.info("Uploaded %s (%d bytes)", name, total)
        return response.json()

    def update_file(self, file_id, **changes):
        body = {DOCUMENT_FIELDS[key]: value for key, value in changes.items()}
        try:
            return self._request("PATCH", f"/api/files/{file_id}/", json=body).json()
        finally:
            self.invalidate()

    def approve_file(self, file_id):
        try:
            return self._request("PATCH", f"/api/files/{file_id}/approve/").json()
        finally:
            self.invalidate()

    def reject_file(self, file_id):
        try:
            return self._request("PATCH", f"/api/files/{file_id}/reject/").json()
        finally:
            self.invalidate()

    def delete_file(self, file_id):
        try:
            self._request("DELETE", f"/api/files/{file_id}/")
        finally:
            self.invalidate()

    def download_file(self, file_id, directory):
        """Stream a file into ``directory`` under the server's filename.

        Returns:
            The Path written.
        """
        directory = Path(directory)
        url = f"/api/files/{file_id}/download/"
        try:
            with self._http.stream("GET", url, headers=self._headers()) as response:
                if response.is_error:
                    response.read()
                    raise error_from_response(response)
                name = Path(_attachment_filename(response, f"file-{file_id}")).name
                target = directory / name
                with target.open("wb") as out:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        out.write(chunk)
        except httpx.RequestError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        logger.info("Downloaded file %s to %s", file_id, target)
        return target

    # -- administration -----------------------------------------------------

    def departments(self):
        return self._request("GET", "/api/departments/").json()["data"]

    def create_department(self, name, description=""):
        try:
            body = {"name": name, "description": description}
            return self._request("POST", "/api/departments/", json=body).json()
        finally:
            self.invalidate()

    def delete_department(self, department_id):
        try:
            self._request("DELETE", f"/api/departments/{department_id}/")
        finally:
            self.invalidate()

    def users(self, page=1, limit=10):
        return self._request(
            "GET", "/api/users/", params={"page": page, "limit": limit}
        ).json()

    def create_user(self, username, password, **fields):
        """Create a user. ``fields``: email, role, department, firstName, lastName."""
        try:
            return self._request(
                "POST",
                "/api/users/",
                json={"username": username, "password": password, **fields},
            ).json()
        finally:
            self.invalidate()

    def update_user(self, user_id, **fields):
        try:
            return self._request("PATCH", f"/api/users/{user_id}/", json=fields).json()
        finally:
            self.invalidate()

    def delete_user(self, user_id):
        try:
            self._request("DELETE", f"/api/users/{user_id}/")
        finally:
            self.invalidate()
