from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates
import os

from fileshare.core.config import Settings, get_settings
from fileshare.core.filetypes import classify, size_label
from fileshare.core.security import generate_csrf_token
from fileshare.services.storage import StorageService, get_storage_service

templates = Jinja2Templates(directory=os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates"))

router = APIRouter(include_in_schema=False)


@router.get("/")
async def home(request: Request, settings: Settings = Depends(get_settings)):
    response = templates.TemplateResponse(
        request,
        "index.html",
        {
            "csrf_token": generate_csrf_token(),
            "max_files": settings.MAX_FILES,
            "max_size": settings.MAX_FILE_SIZE,
            "max_size_label": size_label(settings.MAX_FILE_SIZE),
            "accepted_types": settings.ALLOWED_CONTENT_TYPES,
        },
    )
    # One token per page load
    response.headers["Cache-Control"] = "no-store"
    return response


@router.get("/shared/{filename}")
async def shared_file(
    filename: str,
    request: Request,
    storage: StorageService = Depends(get_storage_service),
):
    if not storage.check_object_exists(filename):
        return templates.TemplateResponse(
            request,
            "not_found.html",
            {"filename": filename, "error": "File not found"},
            status_code=404,
        )

    return templates.TemplateResponse(
        request,
        "shared.html",
        {
            "filename": filename,
            "file_url": f"/uploads/{filename}",
            "kind": classify(filename).value,
        },
    )
