"""Upload/share exception types.

Services and dependencies raise these instead of ``HTTPException`` so the
JSON error shape (``{"error": ...}``) is decided in exactly one place.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fileshare.core.filetypes import MAX_FILE_SIZE, size_label


class FileShareError(Exception):
    """Base error; ``message`` is safe to show to the client."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class CsrfValidationError(FileShareError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Invalid or missing CSRF token"


class InvalidRequestError(FileShareError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class MissingFileError(FileShareError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No file provided"


class InvalidFileTypeError(FileShareError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "File type not allowed. Allowed types: JPEG, PNG, PDF"


class FileTooLargeError(FileShareError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, max_size: int = MAX_FILE_SIZE):
        super().__init__(f"File size exceeds the {size_label(max_size)} limit")


class FileNotFoundInStorageError(FileShareError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "File not found"


class UploadFailedError(FileShareError):
    """Raised for unexpected persistence failures (disk, permissions)."""

    message = "Failed to upload file"


async def file_share_error_handler(request: Request, exc: FileShareError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # A "file" field sent as plain text has no declared type, like any disallowed type
    if any(tuple(err.get("loc", ()))[-1:] == ("file",) for err in exc.errors()):
        error = InvalidFileTypeError()
    else:
        error = InvalidRequestError()
    return await file_share_error_handler(request, error)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FileShareError, file_share_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
