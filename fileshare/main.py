from fastapi import FastAPI, Response
from fastapi.staticfiles import StaticFiles
from typing import Optional
import logging
import os

from fileshare.api.pages import router as pages_router
from fileshare.api.routes import router as api_router
from fileshare.core.config import Settings
from fileshare.core.errors import register_error_handlers
from fileshare.services.storage import StorageService

STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")


class _SkipStaticAccessLogs(logging.Filter):
    """Hide uvicorn access logs for /static/* asset requests."""
    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = record.getMessage()
        except Exception:
            return True
        return "/static/" not in msg


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    access_logger = logging.getLogger("uvicorn.access")
    # Avoid duplicate filters on reload
    if not any(isinstance(f, _SkipStaticAccessLogs) for f in access_logger.filters):
        access_logger.addFilter(_SkipStaticAccessLogs())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Secure File Share")
    app.state.settings = settings

    # StaticFiles refuses to serve from a missing directory
    StorageService(settings.UPLOAD_DIR).ensure_directory()

    register_error_handlers(app)
    app.include_router(api_router, tags=["Upload"])
    app.include_router(pages_router)

    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    return app

