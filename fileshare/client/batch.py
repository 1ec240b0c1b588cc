"""Client-side batch of files waiting to be uploaded.

``prefilter_files`` is the advisory type/size check a drop surface runs
before handing files to ``FileBatch.add``; the server repeats both checks
authoritatively.
"""

import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from fileshare.client.notify import Notice, NoticeLevel, Notifier, log_notifier
from fileshare.client.preview import PreviewHandle, create_preview
from fileshare.core.filetypes import ACCEPTED_FILE_TYPES, MAX_FILE_SIZE, MAX_FILES, size_label

logger = logging.getLogger(__name__)


@dataclass
class PendingFile:
    name: str
    content_type: str
    data: bytes = field(repr=False)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    preview: Optional[PreviewHandle] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


class RejectionReason(str, Enum):
    TOO_LARGE = "too-large"
    INVALID_TYPE = "invalid-type"
    OTHER = "other"


@dataclass(frozen=True)
class FileRejection:
    name: str
    reason: RejectionReason
    detail: str = ""
    max_size: int = MAX_FILE_SIZE

    @property
    def message(self) -> str:
        if self.reason is RejectionReason.TOO_LARGE:
            return f'"{self.name}" is too large (max: {size_label(self.max_size)})'
        if self.reason is RejectionReason.INVALID_TYPE:
            return f'"{self.name}" is not an accepted file type (jpg, png, pdf)'
        return f'"{self.name}": {self.detail}'


def declared_type(name: str) -> str:
    return mimetypes.guess_type(name)[0] or "application/octet-stream"


def load_pending_file(path: str) -> PendingFile:
    """Read a local file; the declared type is guessed from its name."""
    with open(path, "rb") as f:
        data = f.read()
    name = os.path.basename(path)
    return PendingFile(name=name, content_type=declared_type(name), data=data)


def prefilter_files(
    paths: Iterable[str],
    max_size: int = MAX_FILE_SIZE,
    accepted_types: Sequence[str] = tuple(ACCEPTED_FILE_TYPES),
    notify: Notifier = log_notifier,
) -> Tuple[List[PendingFile], List[FileRejection]]:
    accepted: List[PendingFile] = []
    rejections: List[FileRejection] = []

    for path in paths:
        name = os.path.basename(path)
        # Type and size come from the name and a stat; only accepted files are read
        try:
            if declared_type(name) not in accepted_types:
                rejection = FileRejection(name, RejectionReason.INVALID_TYPE)
            elif os.path.getsize(path) > max_size:
                rejection = FileRejection(name, RejectionReason.TOO_LARGE, max_size=max_size)
            else:
                accepted.append(load_pending_file(path))
                continue
        except OSError as e:
            rejection = FileRejection(name, RejectionReason.OTHER, f"file-unreadable: {e.strerror or e}")

        rejections.append(rejection)
        notify(Notice(NoticeLevel.ERROR, rejection.message))

    return accepted, rejections


class FileBatch:
    """Ordered pending files; owns their preview handles."""

    def __init__(self, max_files: int = MAX_FILES, notify: Notifier = log_notifier):
        self.max_files = max_files
        self.notify = notify
        self._files: List[PendingFile] = []

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self):
        return iter(list(self._files))

    def __getitem__(self, index: int) -> PendingFile:
        return self._files[index]

    @property
    def files(self) -> List[PendingFile]:
        return list(self._files)

    def add(self, files: Sequence[PendingFile]) -> List[PendingFile]:
        """Append files, or add none at all if the batch would overflow."""
        if len(self._files) + len(files) > self.max_files:
            self.notify(Notice(NoticeLevel.WARNING, f"You can only upload a maximum of {self.max_files} files"))
            return []

        added = []
        for pending in files:
            if pending.is_image and pending.preview is None:
                pending.preview = create_preview(pending.data)
            self._files.append(pending)
            added.append(pending)
        logger.debug("Added %d file(s); batch size %d", len(added), len(self._files))
        return added

    def remove(self, index: int) -> PendingFile:
        pending = self._files.pop(index)
        self._release(pending)
        return pending

    def remove_by_id(self, file_id: str) -> PendingFile:
        for index, pending in enumerate(self._files):
            if pending.id == file_id:
                return self.remove(index)
        raise KeyError(file_id)

    def clear(self) -> None:
        for pending in self._files:
            self._release(pending)
        self._files = []

    close = clear

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @staticmethod
    def _release(pending: PendingFile) -> None:
        if pending.preview is not None:
            pending.preview.release()
            pending.preview = None
