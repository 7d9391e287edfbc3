# src/tools/assets.py
import base64
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from src.errors import UploadReadError
from src.models.assignment import Asset

MAX_IMAGE_BYTES = 5 * 1024 * 1024


def image_to_data_uri(raw: bytes, mime: Optional[str] = None) -> str:
    """
    Validate image bytes with Pillow and return them as an inline data URI.
    The mime type is taken from the decoded image format when not supplied.
    """
    if not raw:
        raise UploadReadError("Image file is empty.")
    if len(raw) > MAX_IMAGE_BYTES:
        raise UploadReadError(f"Image too large ({len(raw)} bytes). Max allowed is {MAX_IMAGE_BYTES} bytes.")
    try:
        with Image.open(BytesIO(raw)) as img:
            img.verify()
            fmt = (img.format or "").lower()
    except (UnidentifiedImageError, OSError) as e:
        raise UploadReadError(f"File is not a readable image: {e}") from e

    if not mime or not mime.startswith("image/"):
        mime = f"image/{'jpeg' if fmt in ('jpg', 'jpeg') else (fmt or 'png')}"
    b64 = base64.b64encode(raw).decode("ascii")
    return f"data:{mime};base64,{b64}"


def asset_from_upload(raw: bytes, mime: Optional[str] = None, caption: Optional[str] = None) -> Asset:
    return Asset(url=image_to_data_uri(raw, mime), caption=caption or None)
