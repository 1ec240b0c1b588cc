from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from typing import Optional, Tuple
import logging
import mimetypes

from fileshare.schemas.models import ErrorResponse, StoredFileInfo, UploadResponse
from fileshare.services.storage import StorageService, get_storage_service
from fileshare.core.config import Settings, get_settings
from fileshare.core.errors import (
    FileNotFoundInStorageError,
    FileTooLargeError,
    InvalidFileTypeError,
    MissingFileError,
    UploadFailedError,
)
from fileshare.core.filetypes import classify
from fileshare.core.security import verify_csrf

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

_error_responses = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def build_file_urls(request: Request, settings: Settings, object_name: str) -> Tuple[str, str]:
    """Return (direct URL, shareable URL) for a stored file."""
    host = request.headers.get("host") or settings.DEFAULT_HOST
    base = f"{settings.url_scheme}://{host}"
    return f"{base}/uploads/{object_name}", f"{base}/shared/{object_name}"


@router.post("/upload", response_model=UploadResponse, responses=_error_responses)
async def upload_file(
    request: Request,
    csrf_token: str = Depends(verify_csrf),
    file: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    storage: StorageService = Depends(get_storage_service),
):
    # CSRF is checked by the dependency before anything below runs
    if file is None:
        raise MissingFileError()

    if file.content_type not in settings.ALLOWED_CONTENT_TYPES:
        logger.warning("Rejected %r: type %s not allowed", file.filename, file.content_type)
        raise InvalidFileTypeError()

    if file.size is not None and file.size > settings.MAX_FILE_SIZE:
        logger.warning("Rejected %r: %d bytes over limit", file.filename, file.size)
        raise FileTooLargeError(settings.MAX_FILE_SIZE)

    original_name = file.filename or "upload"
    try:
        data = await file.read()
        # Declared size may be unknown for some clients; the body is authoritative
        if len(data) > settings.MAX_FILE_SIZE:
            raise FileTooLargeError(settings.MAX_FILE_SIZE)

        object_name = storage.generate_object_name(original_name)
        stored = await run_in_threadpool(storage.put_object, object_name, data, file.content_type)
        file_url, shareable_url = build_file_urls(request, settings, stored.unique_filename)
    except FileTooLargeError:
        raise
    except Exception as e:
        logger.exception("Upload of %r failed: %s", original_name, e)
        raise UploadFailedError() from e
    finally:
        await file.close()

    logger.info(
        "File uploaded successfully: fileName=%s uniqueFilename=%s fileUrl=%s shareableUrl=%s",
        original_name, stored.unique_filename, file_url, shareable_url,
    )

    return UploadResponse(
        file_name=original_name,
        file_size=stored.size,
        file_type=stored.content_type,
        file_url=file_url,
        shareable_url=shareable_url,
        unique_filename=stored.unique_filename,
    )


@router.get("/files/{filename}", response_model=StoredFileInfo, responses={404: {"model": ErrorResponse}})
async def get_file_info(
    filename: str,
    request: Request,
    settings: Settings = Depends(get_settings),
    storage: StorageService = Depends(get_storage_service),
):
    """Describe a stored file by its generated name."""
    stats = storage.get_object_stats(filename)
    if stats is None:
        raise FileNotFoundInStorageError()

    file_url, shareable_url = build_file_urls(request, settings, filename)
    return StoredFileInfo(
        unique_filename=filename,
        file_size=stats.st_size,
        file_type=mimetypes.guess_type(filename)[0] or "application/octet-stream",
        kind=classify(filename),
        file_url=file_url,
        shareable_url=shareable_url,
    )
