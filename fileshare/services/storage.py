import logging
import os
import uuid
from typing import Optional

from fastapi import Depends

from fileshare.core.config import Settings, get_settings
from fileshare.core.filetypes import extension_of
from fileshare.models.file import StoredFile

logger = logging.getLogger(__name__)


class StorageService:
    """Flat local directory of ``{uuid}{.ext}`` files; append-only."""

    def __init__(self, directory: str):
        self.directory = directory

    def ensure_directory(self) -> str:
        # Not atomic across requests; makedirs with exist_ok is a no-op when present
        if not os.path.isdir(self.directory):
            os.makedirs(self.directory, exist_ok=True)
            logger.info("Created upload directory %s", self.directory)
        return self.directory

    def generate_object_name(self, original_filename: Optional[str]) -> str:
        return f"{uuid.uuid4()}{extension_of(original_filename)}"

    def object_path(self, object_name: str) -> Optional[str]:
        # Only bare names inside the directory are addressable
        if (
            not object_name
            or object_name.startswith(".")
            or "/" in object_name
            or "\\" in object_name
            or "\x00" in object_name
        ):
            return None
        return os.path.join(self.directory, object_name)

    def put_object(self, object_name: str, data: bytes, content_type: str) -> StoredFile:
        self.ensure_directory()
        path = os.path.join(self.directory, object_name)
        # Plain "wb": identifiers are random, so no exclusive create
        with open(path, "wb") as f:
            f.write(data)
        return StoredFile(
            unique_filename=object_name,
            size=len(data),
            content_type=content_type,
        )

    def check_object_exists(self, object_name: str) -> bool:
        path = self.object_path(object_name)
        return path is not None and os.path.isfile(path)

    def get_object_stats(self, object_name: str) -> Optional[os.stat_result]:
        if not self.check_object_exists(object_name):
            return None
        return os.stat(self.object_path(object_name))


def get_storage_service(settings: Settings = Depends(get_settings)) -> StorageService:
    return StorageService(settings.UPLOAD_DIR)
