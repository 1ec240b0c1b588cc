import io
import logging
import os
import tempfile
from typing import Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (128, 128)


class PreviewHandle:
    """A thumbnail on disk owned by one pending file; must be released."""

    def __init__(self, path: str):
        self.path = path
        self.released = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"<PreviewHandle {self.path} {state}>"


def create_preview(data: bytes) -> Optional[PreviewHandle]:
    """Render a small PNG thumbnail of image bytes into a temp file."""
    try:
        img = Image.open(io.BytesIO(data))
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA")
        img.thumbnail(THUMBNAIL_SIZE, Image.Resampling.LANCZOS)
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Could not render preview: %s", e)
        return None

    fd, path = tempfile.mkstemp(prefix="fileshare-preview-", suffix=".png")
    with os.fdopen(fd, "wb") as f:
        img.save(f, format="PNG", optimize=True)
    return PreviewHandle(path)
