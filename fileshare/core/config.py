from pydantic_settings import BaseSettings
from fastapi import Request
from typing import List

from fileshare.core.filetypes import ACCEPTED_FILE_TYPES, MAX_FILE_SIZE, MAX_FILES

class Settings(BaseSettings):
    UPLOAD_DIR: str = "public/uploads"
    ENVIRONMENT: str = "development"

    MAX_FILE_SIZE: int = MAX_FILE_SIZE
    MAX_FILES: int = MAX_FILES
    ALLOWED_CONTENT_TYPES: List[str] = list(ACCEPTED_FILE_TYPES)

    DEFAULT_HOST: str = "localhost:8000"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def url_scheme(self) -> str:
        return "https" if self.is_production else "http"


def get_settings(request: Request) -> Settings:
    # Built once by create_app and never mutated afterwards
    return request.app.state.settings
