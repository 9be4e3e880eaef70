"""Client-side upload orchestration.

Each selected file becomes an UploadTask with its own state machine::

    pending -> uploading -> done
    pending -> uploading -> error
    pending -> error            (invalid selection or cancelled before start)

``done`` and ``error`` are final. Every task owns its progress cell and
cancel event; nothing is shared between tasks, so one file's failure or
cancellation never changes a sibling's state.
"""

import enum
import itertools
import logging
import os
import posixpath
import threading
from concurrent.futures import ThreadPoolExecutor

from client.exceptions import ClientError, UploadCancelled, ValidationFailed

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10 MiB, same limit as the server
ALLOWED_EXTENSIONS = ("pdf", "doc", "docx", "xls", "xlsx", "png", "jpg", "jpeg", "gif")
CANCELLED_MESSAGE = "upload cancelled"

_task_ids = itertools.count(1)


class UploadStatus(str, enum.Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    DONE = "done"
    ERROR = "error"


class BatchOutcome(str, enum.Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


class BatchReport:
    """Counts of one submitted batch.

    Outcome:
    - SUCCESS: at least one file uploaded and none failed
    - PARTIAL: some uploaded, some failed
    - FAILURE: nothing uploaded
    """

    def __init__(self, success_count, error_count):
        self.success_count = success_count
        self.error_count = error_count

    @property
    def outcome(self):
        if self.success_count == 0:
            return BatchOutcome.FAILURE
        if self.error_count == 0:
            return BatchOutcome.SUCCESS
        return BatchOutcome.PARTIAL

    def __repr__(self):
        return (
            f"BatchReport(success_count={self.success_count}, "
            f"error_count={self.error_count}, outcome={self.outcome.value})"
        )


def validate_selection(
    name, size, max_size=MAX_UPLOAD_SIZE, allowed_extensions=ALLOWED_EXTENSIONS
):
    """Return an error message for an unacceptable file, or None."""
    _, ext = posixpath.splitext(name or "")
    ext = ext[1:].lower()
    if ext not in allowed_extensions:
        shown = f".{ext}" if ext else "(none)"
        return (
            f"File type {shown} is not allowed. Allowed types: "
            f"{', '.join('.' + e for e in allowed_extensions)}."
        )
    if size > max_size:
        return (
            f"File size {size} bytes exceeds the maximum upload size of "
            f"{max_size // 1_048_576} MB."
        )
    if size <= 0:
        return "File is empty."
    return None


class UploadTask:
    """One selected file and its upload state."""

    def __init__(self, source, name, size):
        self.id = next(_task_ids)
        self.source = source
        self.name = name
        self.size = size
        self.status = UploadStatus.PENDING
        self.error_message = None
        self.document = None
        self.cancel_event = threading.Event()
        self._progress = 0
        self._lock = threading.Lock()

    def __repr__(self):
        return (
            f"UploadTask(id={self.id}, name={self.name!r}, "
            f"status={self.status.value})"
        )

    @property
    def progress(self):
        with self._lock:
            return self._progress

    def set_progress(self, percent):
        """Record transport progress; values below the current one are ignored."""
        with self._lock:
            if self.status is UploadStatus.UPLOADING and percent > self._progress:
                self._progress = min(100, int(percent))

    def start(self):
        with self._lock:
            if self.status is not UploadStatus.PENDING:
                return False
            self.status = UploadStatus.UPLOADING
            return True

    def complete(self, document):
        with self._lock:
            if self.status is not UploadStatus.UPLOADING:
                return False
            self.status = UploadStatus.DONE
            self._progress = 100
            self.document = document
            return True

    def fail(self, message):
        with self._lock:
            if self.status in (UploadStatus.DONE, UploadStatus.ERROR):
                return False
            self.status = UploadStatus.ERROR
            self.error_message = message
            return True


class UploadOrchestrator:
    """Collects files, validates them, and uploads them as one batch.

    Usage::

        orchestrator = UploadOrchestrator(client)
        orchestrator.add("report.pdf")
        if orchestrator.can_submit:
            report = orchestrator.submit(department="HR")
    """

    def __init__(
        self,
        client,
        max_size=MAX_UPLOAD_SIZE,
        allowed_extensions=ALLOWED_EXTENSIONS,
        max_workers=1,
    ):
        self.client = client
        self.max_size = max_size
        self.allowed_extensions = allowed_extensions
        self.max_workers = max_workers
        self.tasks = []
        self.notices = []
        self._submitting = False
        self._lock = threading.Lock()

    @property
    def submitting(self):
        with self._lock:
            return self._submitting

    @property
    def can_submit(self):
        """True when a pending file exists and no batch is running."""
        with self._lock:
            if self._submitting:
                return False
            return any(task.status is UploadStatus.PENDING for task in self.tasks)

    def add(self, source, name=None, size=None):
        """Select one file (a path or a binary file object).

        Invalid files are kept with status ERROR so the reason stays
        visible. A file matching an existing selection by name and size
        is dropped with a notice.

        Returns:
            The new UploadTask, or None for a duplicate.
        """
        if isinstance(source, (str, os.PathLike)):
            name = name or os.path.basename(os.fspath(source))
            if size is None:
                size = os.path.getsize(source)
        else:
            name = name or os.path.basename(getattr(source, "name", "") or "upload")
            if size is None:
                position = source.tell()
                size = source.seek(0, os.SEEK_END) - position
                source.seek(position)

        with self._lock:
            if any(t.name == name and t.size == size for t in self.tasks):
                notice = f"{name} is already selected."
                self.notices.append(notice)
                logger.info("Duplicate selection dropped: %s", name)
                return None
            task = UploadTask(source, name, size)
            error = validate_selection(
                name, size, self.max_size, self.allowed_extensions
            )
            if error:
                task.fail(error)
            self.tasks.append(task)
        return task

    def remove(self, task):
        """Drop ``task`` from the selection.

        Raises:
            ClientError: While a batch is being submitted (use ``cancel``),
                or if ``task`` is not part of the selection.
        """
        with self._lock:
            if self._submitting:
                raise ClientError(
                    "Files cannot be removed while uploading; cancel them instead.",
                    code="batch_in_progress",
                )
            if task not in self.tasks:
                raise ClientError(
                    "That file is not part of the selection.",
                    code="not_selected",
                )
            self.tasks.remove(task)

    def cancel(self, task):
        """Abort ``task`` if it has not finished; siblings are untouched.

        Returns:
            True if the task was pending or uploading and is now cancelled.
        """
        task.cancel_event.set()
        cancelled = task.fail(CANCELLED_MESSAGE)
        if cancelled:
            logger.info("Upload cancelled: task=%s name=%s", task.id, task.name)
        return cancelled

    def cancel_all(self):
        """Cancel every pending or uploading task, e.g. when the dialog closes.

        Returns:
            The number of tasks cancelled.
        """
        with self._lock:
            tasks = list(self.tasks)
        return sum(1 for task in tasks if self.cancel(task))

    def _resolve_metadata(self, department, category, description):
        user = self.client.user or {}
        if str(user.get("role", "")).upper() == "USER":
            department = user.get("department")
            if not department:
                raise ValidationFailed(
                    "Your account has no department; ask an administrator.",
                    code="department_required",
                )
        elif not department:
            raise ValidationFailed(
                "Department is required.", code="department_required"
            )
        return {
            "department": department,
            "category": category or "",
            "description": description or "",
        }

    def _upload(self, task, metadata):
        if not task.start():
            return False
        try:
            document = self.client.upload_file(
                task.source,
                filename=task.name,
                on_progress=task.set_progress,
                cancel_event=task.cancel_event,
                **metadata,
            )
        except UploadCancelled:
            task.fail(CANCELLED_MESSAGE)
            return False
        except (ClientError, OSError) as exc:
            message = getattr(exc, "message", None) or str(exc)
            task.fail(message)
            logger.warning(
                "Upload failed: task=%s name=%s error=%s", task.id, task.name, message
            )
            return False
        if not task.complete(document):
            # Cancelled after the server had already accepted it.
            logger.info("Upload finished after cancel: task=%s", task.id)
            return False
        return True

    def submit(self, department=None, category="", description="", max_workers=None):
        """Upload every pending task and report the outcome.

        Files are uploaded one after another unless ``max_workers`` (or
        the orchestrator's default) is greater than 1. The client's
        listing and statistics cache is invalidated whatever happens.

        Raises:
            ValidationFailed: If required metadata is missing or nothing
                is pending. No task changes state in that case.
            ClientError: If a batch is already being submitted.
        """
        metadata = self._resolve_metadata(department, category, description)
        with self._lock:
            if self._submitting:
                raise ClientError(
                    "A batch is already being submitted.", code="batch_in_progress"
                )
            batch = [t for t in self.tasks if t.status is UploadStatus.PENDING]
            if not batch:
                raise ValidationFailed(
                    "No valid files to upload.", code="nothing_to_submit"
                )
            self._submitting = True

        workers = max_workers or self.max_workers
        try:
            if workers > 1:
                with ThreadPoolExecutor(max_workers=workers) as pool:
                    list(pool.map(lambda task: self._upload(task, metadata), batch))
            else:
                for task in batch:
                    self._upload(task, metadata)
        finally:
            with self._lock:
                self._submitting = False
            self.client.invalidate()

        success_count = sum(1 for t in batch if t.status is UploadStatus.DONE)
        report = BatchReport(success_count, len(batch) - success_count)
        logger.info(
            "Upload batch finished: %d uploaded, %d failed, outcome=%s",
            report.success_count,
            report.error_count,
            report.outcome.value,
        )
        return report
