import io
import re

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from fileshare.core.config import Settings
from fileshare.main import create_app

TOKEN = "4f9e2a8c-token"


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir):
    return Settings(UPLOAD_DIR=str(upload_dir), ENVIRONMENT="development")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (32, 24), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


def csrf_from_page(html: str) -> str:
    return re.search(r'<meta name="csrf-token" content="([^"]+)"', html).group(1)


def post_upload(client, name, data, content_type, header_token=TOKEN, form_token=TOKEN):
    headers = {"X-CSRF-Token": header_token} if header_token is not None else {}
    form = {"csrfToken": form_token} if form_token is not None else {}
    files = {"file": (name, data, content_type)} if name is not None else None
    return client.post("/api/upload", headers=headers, data=form, files=files)
