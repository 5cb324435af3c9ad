import base64
import binascii
import re
from typing import Iterable, Optional

from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import (
    EMPTY_FILE,
    INVALID_CAPTURE,
    INVALID_FILE_TYPE,
    NO_FILE_SELECTED,
    InvalidFile,
)
from app.schemas.state import ImageSource, SelectedImage

WEBCAM_FILENAME = "webcam-capture.jpg"

_DATA_URL = re.compile(r"^data:(?P<content_type>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)
_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]

def format_file_size(size: int) -> str:
    """Human readable size, base 1024: 0 Bytes, 1.5 KB, 10 MB."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    i = 0
    while value >= 1024 and i < len(_SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[i]}"

def file_too_large_message(max_size: int) -> str:
    return f"File size must be less than {format_file_size(max_size)}"

def validate_image(
    image: Optional[SelectedImage],
    max_size: Optional[int] = None,
    allowed_types: Optional[Iterable[str]] = None,
) -> SelectedImage:
    """
    Checks an image before it is accepted or submitted.
    Raises InvalidFile with one message per failed check: type first, then size.
    """
    max_size = settings.MAX_FILE_SIZE if max_size is None else max_size
    allowed = {t.lower() for t in (settings.ALLOWED_TYPES if allowed_types is None else allowed_types)}

    if image is None:
        raise InvalidFile(NO_FILE_SELECTED)

    content_type = image.content_type.split(";")[0].strip().lower()
    if content_type not in allowed:
        raise InvalidFile(INVALID_FILE_TYPE)

    if image.size > max_size:
        raise InvalidFile(file_too_large_message(max_size))

    if image.size == 0:
        raise InvalidFile(EMPTY_FILE)

    return image

async def read_upload(file: Optional[UploadFile], source: ImageSource = "upload") -> SelectedImage:
    """
    Reads an uploaded file into a validated SelectedImage.
    Never reads more than one byte past the size limit.
    """
    if file is None or not file.filename:
        raise InvalidFile(NO_FILE_SELECTED)

    await file.seek(0)
    data = await file.read(settings.MAX_FILE_SIZE + 1)
    size = file.size if file.size is not None else len(data)

    image = SelectedImage(
        name=file.filename,
        content_type=file.content_type or "application/octet-stream",
        size=size,
        source=source,
        data=data,
    )
    return validate_image(image)

def decode_capture(data_url: str) -> SelectedImage:
    """Turns a webcam screenshot (base64 data URL) into a validated SelectedImage."""
    match = _DATA_URL.match(data_url or "")
    if not match:
        raise InvalidFile(INVALID_CAPTURE)

    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        raise InvalidFile(INVALID_CAPTURE) from None

    image = SelectedImage(
        name=WEBCAM_FILENAME,
        content_type=match.group("content_type"),
        size=len(data),
        source="webcam",
        data=data,
    )
    return validate_image(image)
