"""Python client for the Archivio HTTP API."""

from client.api import ArchivioClient
from client.exceptions import (
    AccessDenied,
    ClientError,
    NotFound,
    TransportError,
    UploadCancelled,
    ValidationFailed,
)
from client.orchestrator import (
    BatchOutcome,
    BatchReport,
    UploadOrchestrator,
    UploadStatus,
)

__all__ = [
    "AccessDenied",
    "ArchivioClient",
    "BatchOutcome",
    "BatchReport",
    "ClientError",
    "NotFound",
    "TransportError",
    "UploadCancelled",
    "UploadOrchestrator",
    "UploadStatus",
    "ValidationFailed",
]
