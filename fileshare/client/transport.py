import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Callable, Dict, List, Optional

import httpx

from fileshare.client.batch import FileBatch, PendingFile
from fileshare.client.notify import Notice, NoticeLevel, Notifier, log_notifier
from fileshare.core.security import CSRF_FORM_FIELD, CSRF_HEADER_NAME

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/upload"
CHUNK_SIZE = 64 * 1024

_CSRF_META = re.compile(r'<meta\s+name="csrf-token"\s+content="([^"]+)"', re.IGNORECASE)


class UploadState(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


_ALLOWED_TRANSITIONS = {
    UploadState.PENDING: {UploadState.UPLOADING, UploadState.FAILED},
    UploadState.UPLOADING: {UploadState.COMPLETED, UploadState.FAILED},
    UploadState.COMPLETED: set(),
    UploadState.FAILED: set(),
}


@dataclass
class UploadTask:
    key: str
    file_name: str
    progress: int = 0
    state: UploadState = UploadState.PENDING
    error: Optional[str] = None
    file_url: Optional[str] = None
    shareable_url: Optional[str] = None
    unique_filename: Optional[str] = None

    def _move_to(self, state: UploadState) -> None:
        if state not in _ALLOWED_TRANSITIONS[self.state]:
            raise ValueError(f"Cannot move upload task from {self.state.value} to {state.value}")
        self.state = state

    def start(self) -> None:
        self._move_to(UploadState.UPLOADING)

    def complete(self, payload: Optional[dict]) -> None:
        self._move_to(UploadState.COMPLETED)
        self.progress = 100
        if payload:
            self.file_url = payload.get("fileUrl")
            self.shareable_url = payload.get("shareableUrl")
            self.unique_filename = payload.get("uniqueFilename")

    def fail(self, reason: str) -> None:
        self._move_to(UploadState.FAILED)
        self.error = reason


ProgressListener = Callable[[UploadTask], None]


async def fetch_csrf_token(client: httpx.AsyncClient, base_url: str = "") -> str:
    """Read the per-page token the home page embeds in its markup."""
    response = await client.get(f"{base_url}/")
    response.raise_for_status()
    match = _CSRF_META.search(response.text)
    if not match:
        raise ValueError("Home page did not contain a CSRF token")
    return match.group(1)


class UploadTransport:
    """Sends one file per request and reports fractional progress."""

    def __init__(self, client: httpx.AsyncClient, base_url: str = "", chunk_size: int = CHUNK_SIZE):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.chunk_size = chunk_size

    async def send(
        self,
        pending: PendingFile,
        task: UploadTask,
        csrf_token: str,
        on_progress: Optional[ProgressListener] = None,
    ) -> UploadTask:
        url = f"{self.base_url}{UPLOAD_PATH}"
        # Let httpx encode the multipart body, then stream it ourselves to observe progress
        encoded = self.client.build_request(
            "POST",
            url,
            data={CSRF_FORM_FIELD: csrf_token},
            files={"file": (pending.name, pending.data, pending.content_type)},
        )
        body = encoded.read()
        headers = {
            "Content-Type": encoded.headers["Content-Type"],
            "Content-Length": str(len(body)),
            CSRF_HEADER_NAME: csrf_token,
        }

        task.start()
        try:
            response = await self.client.post(
                url,
                content=self._stream(body, task, on_progress),
                headers=headers,
            )
        except httpx.TransportError as e:
            logger.warning("Upload of %s failed: %s", pending.name, e)
            task.fail("Network error")
            return task

        if not response.is_success:
            logger.warning("Upload of %s failed with status %d", pending.name, response.status_code)
            task.fail(f"Upload failed ({response.status_code})")
            return task

        try:
            payload = response.json()
        except ValueError:
            logger.error("No file URL in response for %s: %r", pending.name, response.text[:200])
            payload = None
        task.complete(payload)
        if on_progress:
            on_progress(task)
        return task

    async def _stream(
        self,
        body: bytes,
        task: UploadTask,
        on_progress: Optional[ProgressListener],
    ) -> AsyncIterator[bytes]:
        total = len(body)
        sent = 0
        for start in range(0, total, self.chunk_size):
            chunk = body[start:start + self.chunk_size]
            yield chunk
            sent += len(chunk)
            percent = round(sent / total * 100)
            if percent != task.progress:
                task.progress = percent
                if on_progress:
                    on_progress(task)


class FileUploader:
    """Runs one upload per pending file, concurrently, and tracks results."""

    def __init__(
        self,
        transport: UploadTransport,
        batch: FileBatch,
        csrf_token: str,
        notify: Notifier = log_notifier,
        on_progress: Optional[ProgressListener] = None,
    ):
        self.transport = transport
        self.batch = batch
        self.csrf_token = csrf_token
        self.notify = notify
        self.on_progress = on_progress
        self.tasks: Dict[str, UploadTask] = {}
        self.is_uploading = False

    @property
    def shareable_urls(self) -> Dict[str, str]:
        return {key: task.shareable_url for key, task in self.tasks.items() if task.shareable_url}

    async def upload(self) -> List[UploadTask]:
        files = self.batch.files
        if not files:
            self.notify(Notice(NoticeLevel.ERROR, "Please select at least one file to upload"))
            return []

        self.is_uploading = True
        self.tasks = {pending.id: UploadTask(key=pending.id, file_name=pending.name) for pending in files}
        try:
            results = await asyncio.gather(
                *(self._upload_one(pending) for pending in files),
                return_exceptions=True,
            )
        finally:
            self.is_uploading = False

        for pending, result in zip(files, results):
            if isinstance(result, Exception):
                logger.error("Upload of %s raised %r", pending.name, result)
                task = self.tasks[pending.id]
                if task.state not in (UploadState.COMPLETED, UploadState.FAILED):
                    task.fail("Upload failed")

        tasks = [self.tasks[pending.id] for pending in files]
        if all(task.state is UploadState.COMPLETED for task in tasks):
            noun = "file" if len(tasks) == 1 else "files"
            self.notify(Notice(NoticeLevel.SUCCESS, f"Successfully uploaded {len(tasks)} {noun}"))
        return tasks

    async def _upload_one(self, pending: PendingFile) -> UploadTask:
        task = await self.transport.send(pending, self.tasks[pending.id], self.csrf_token, self.on_progress)
        if task.state is UploadState.COMPLETED and task.shareable_url:
            self.notify(Notice(NoticeLevel.SUCCESS, "File uploaded successfully", link=task.shareable_url))
        return task
