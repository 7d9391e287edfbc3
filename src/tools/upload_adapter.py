# src/tools/upload_adapter.py
"""
Turn a user-provided assignment file into a transmittable payload.

- encode_upload(): validate size / type and base64-encode the raw bytes
- build_preview(): a lightweight preview (page count, first-page text and
  thumbnail for PDFs, the image itself, or the first lines of a text file)

Both raise UploadReadError when the file cannot be read; the UI shows that as
a blocked preview and does not start processing.
"""

import base64
from io import BytesIO
import mimetypes
import os
from typing import List, Optional

import fitz  # PyMuPDF
from pydantic import BaseModel
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from src.config import MAX_UPLOAD_BYTES
from src.errors import UploadReadError
from src.logging_setup import get_logger

logger = get_logger("upload_adapter", "upload_adapter.log")

ACCEPTED_EXTENSIONS = ["pdf", "doc", "docx", "txt", "png", "jpg", "jpeg", "gif", "webp"]

DEFAULT_MIME = "application/pdf"

PREVIEW_TEXT_CHARS = 600
THUMBNAIL_ZOOM = 0.5


class FileData(BaseModel):
    name: str
    mime_type: str
    base64: str

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.base64)


class UploadPreview(BaseModel):
    kind: str  # "pdf" | "image" | "text" | "document"
    page_count: Optional[int] = None
    text: str = ""
    thumbnail_png: Optional[bytes] = None


def guess_mime_type(name: str, declared: Optional[str] = None) -> str:
    """Prefer the browser-declared type, then the extension, then PDF."""
    if declared:
        return declared
    guessed, _ = mimetypes.guess_type(name or "")
    return guessed or DEFAULT_MIME


def _extension(name: str) -> str:
    return os.path.splitext(name or "")[1].lower().lstrip(".")


def is_accepted(name: str, mime_type: str) -> bool:
    if mime_type and mime_type.startswith("image/"):
        return True
    return _extension(name) in ACCEPTED_EXTENSIONS


def encode_upload(raw: bytes, name: str, mime_type: Optional[str] = None,
                  max_bytes: int = MAX_UPLOAD_BYTES) -> FileData:
    """
    Validate the raw upload and return it base64-encoded with its mime type.
    """
    if raw is None:
        raise UploadReadError("No file provided.")
    size_bytes = len(raw)
    if size_bytes <= 0:
        raise UploadReadError("Uploaded file is empty.")
    if size_bytes > max_bytes:
        raise UploadReadError(
            f"Uploaded file too large ({size_bytes} bytes). Max allowed is {max_bytes} bytes."
        )

    mime = guess_mime_type(name, mime_type)
    if not is_accepted(name, mime):
        raise UploadReadError(f"Unsupported file type: {name} ({mime})")

    encoded = base64.b64encode(raw).decode("ascii")
    logger.info("Encoded upload %s (%s, %d bytes)", name, mime, size_bytes)
    return FileData(name=name, mime_type=mime, base64=encoded)


def encode_uploaded_file(fobj, max_bytes: int = MAX_UPLOAD_BYTES) -> FileData:
    """Read a Streamlit UploadedFile (or any file-like with .name/.type) and encode it."""
    if fobj is None:
        raise UploadReadError("No file provided.")
    try:
        raw = fobj.read()
    except Exception as e:
        logger.exception("Failed to read uploaded file")
        raise UploadReadError(f"Failed to read uploaded file: {e}") from e
    return encode_upload(raw, getattr(fobj, "name", "upload"), getattr(fobj, "type", None), max_bytes)


def load_pdf(raw: bytes) -> List[dict]:
    """
    Read PDF bytes. Return list of pages:
    [{ "page_no": 1, "text": "..." }, ...]
    """
    reader = PdfReader(BytesIO(raw))
    pages = []
    for i, page in enumerate(reader.pages, start=1):
        text = page.extract_text() or ""
        pages.append({"page_no": i, "text": text})
    return pages


def render_first_page_png(raw: bytes, zoom: float = THUMBNAIL_ZOOM) -> Optional[bytes]:
    with fitz.open(stream=raw, filetype="pdf") as pdf:
        if pdf.page_count == 0:
            return None
        pix = pdf[0].get_pixmap(matrix=fitz.Matrix(zoom, zoom))
        return pix.tobytes("png")


def build_preview(file_data: FileData) -> UploadPreview:
    try:
        raw = file_data.raw_bytes()
    except (ValueError, TypeError) as e:
        raise UploadReadError(f"Upload is not valid base64: {e}") from e

    mime = file_data.mime_type
    if mime == "application/pdf" or _extension(file_data.name) == "pdf":
        try:
            pages = load_pdf(raw)
        except (PdfReadError, ValueError, OSError) as e:
            logger.exception("Failed to parse PDF preview for %s", file_data.name)
            raise UploadReadError(f"Could not read PDF {file_data.name}: {e}") from e
        thumbnail = None
        try:
            thumbnail = render_first_page_png(raw)
        except (RuntimeError, ValueError) as e:
            # text preview is still useful without a thumbnail
            logger.warning("Thumbnail render failed for %s: %s", file_data.name, e)
        first_text = pages[0]["text"] if pages else ""
        return UploadPreview(
            kind="pdf",
            page_count=len(pages),
            text=first_text[:PREVIEW_TEXT_CHARS],
            thumbnail_png=thumbnail,
        )

    if mime.startswith("image/"):
        return UploadPreview(kind="image")

    if mime.startswith("text/") or _extension(file_data.name) == "txt":
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise UploadReadError(f"Text file {file_data.name} is not UTF-8: {e}") from e
        return UploadPreview(kind="text", text=text[:PREVIEW_TEXT_CHARS])

    return UploadPreview(kind="document")
