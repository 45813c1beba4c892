import logging
from typing import Optional, Union

from fastapi import HTTPException

from .config import Config


logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {'application/json', 'text/json'}


def validate_body_size(content_length: Union[int, str, None]) -> None:
    if content_length is None or content_length == "":
        return
    try:
        size = int(content_length)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="Invalid Content-Length header")

    if size > Config.MAX_BODY_BYTES:
        logger.warning(f"Rejected body of {size} bytes (limit {Config.MAX_BODY_BYTES})")
        raise HTTPException(status_code=413, detail=f"Body too large. Maximum size is {Config.MAX_BODY_BYTES} bytes")


def validate_content_type(content_type: Optional[str]) -> None:
    if not content_type:
        return

    mime_type = content_type.split(';', 1)[0].strip().lower()
    if mime_type not in ALLOWED_MIME_TYPES and not mime_type.endswith('+json'):
        raise HTTPException(status_code=415, detail=f"Invalid MIME type. Allowed: {', '.join(sorted(ALLOWED_MIME_TYPES))}")
