from __future__ import annotations

import io
import mimetypes
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ..errors import EMPTY_FIELD, INVALID_IMAGE, ValidationError
from ..generation.client import ImageUpload
from ..logging import get_logger

LOG = get_logger("app-uploads")


def _sniff_mime(data: bytes) -> Optional[str]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        return None
    return Image.MIME.get(fmt) if fmt else None


def read_image_upload(data: bytes, content_type: Optional[str], filename: Optional[str] = None) -> ImageUpload:
    """Turn an uploaded file into an ImageUpload with a trustworthy image MIME type.

    Order: declared content type, then the filename extension, then the bytes
    themselves (Pillow). Anything that is not an image is rejected.
    """
    if not data:
        raise ValidationError(EMPTY_FIELD, "Please fill in all fields and upload both images.")
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if not mime.startswith("image/"):
        guessed, _ = mimetypes.guess_type(filename or "")
        mime = guessed if guessed and guessed.startswith("image/") else ""
    if not mime:
        mime = _sniff_mime(data) or ""
        if mime:
            LOG.debug("Sniffed %s for upload %r", mime, filename)
    if not mime.startswith("image/"):
        raise ValidationError(INVALID_IMAGE, f"'{filename or 'upload'}' is not an image file.")
    return ImageUpload(data=data, mime_type=mime, filename=filename)
