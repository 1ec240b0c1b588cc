import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlparse

import httpx

from fileshare.core.filetypes import FileKind, classify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SharedFileView:
    filename: str
    found: bool
    kind: FileKind
    file_url: str
    share_url: str
    error: Optional[str] = None


def filename_from_share(name_or_url: str) -> str:
    """Accept either a stored filename or a full /shared/ (or /uploads/) URL."""
    path = urlparse(name_or_url).path if "://" in name_or_url else name_or_url
    return unquote(path.rstrip("/").rsplit("/", 1)[-1])


class SharedFileViewer:
    def __init__(self, client: httpx.AsyncClient, base_url: str = ""):
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def open(self, name_or_url: str) -> SharedFileView:
        """Probe the direct file URL once; the answer holds for this view."""
        filename = filename_from_share(name_or_url)
        file_url = f"{self.base_url}/uploads/{filename}"
        share_url = f"{self.base_url}/shared/{filename}"

        error = None
        try:
            response = await self.client.head(file_url)
            if not response.is_success:
                error = "File not found"
        except httpx.TransportError as e:
            logger.warning("Probe of %s failed: %s", file_url, e)
            error = "Could not access the file"

        return SharedFileView(
            filename=filename,
            found=error is None,
            kind=classify(filename),
            file_url=file_url,
            share_url=share_url,
            error=error,
        )
