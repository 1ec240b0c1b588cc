from fastapi import Security, Form
from fastapi.security import APIKeyHeader
from typing import Optional
import logging
import uuid

from fileshare.core.errors import CsrfValidationError

logger = logging.getLogger(__name__)

CSRF_HEADER_NAME = "X-CSRF-Token"
CSRF_FORM_FIELD = "csrfToken"

csrf_header = APIKeyHeader(name=CSRF_HEADER_NAME, auto_error=False)


def generate_csrf_token() -> str:
    """Fresh token for one page render.

    Double-submit only: the page embeds the token, the client echoes it as a
    header and as a form field, and the server compares the two. Nothing is
    stored server-side, so the token lives exactly as long as the page.
    """
    return str(uuid.uuid4())


async def verify_csrf(
    header_token: Optional[str] = Security(csrf_header),
    form_token: Optional[str] = Form(None, alias=CSRF_FORM_FIELD),
) -> str:
    if not header_token or not form_token or header_token != form_token:
        logger.warning(
            "CSRF check failed (header present=%s, form present=%s)",
            bool(header_token), bool(form_token),
        )
        raise CsrfValidationError()
    return header_token
