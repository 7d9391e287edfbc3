import base64
import io

import pytest

from src.errors import UploadReadError
from src.tools.upload_adapter import (
    FileData,
    build_preview,
    encode_upload,
    encode_uploaded_file,
    guess_mime_type,
)


class FakeUpload(io.BytesIO):
    """Looks enough like a Streamlit UploadedFile."""

    def __init__(self, data: bytes, name: str, type: str = None):
        super().__init__(data)
        self.name = name
        self.type = type


def test_encode_upload_base64_round_trip():
    data = encode_upload(b"Question 1: what is 2+2?", "hw.txt", "text/plain")

    assert data.name == "hw.txt"
    assert data.mime_type == "text/plain"
    assert base64.b64decode(data.base64) == b"Question 1: what is 2+2?"
    assert data.raw_bytes() == b"Question 1: what is 2+2?"


def test_mime_type_falls_back_to_extension_then_pdf():
    assert guess_mime_type("scan.png") == "image/png"
    assert guess_mime_type("scan.png", "image/webp") == "image/webp"
    assert guess_mime_type("no_extension") == "application/pdf"


@pytest.mark.parametrize("raw,name,mime,message", [
    (None, "a.pdf", None, "No file provided"),
    (b"", "a.pdf", None, "empty"),
    (b"x" * 11, "a.pdf", None, "too large"),
    (b"MZ", "setup.exe", "application/x-msdownload", "Unsupported file type"),
])
def test_encode_upload_rejects_bad_files(raw, name, mime, message):
    with pytest.raises(UploadReadError, match=message):
        encode_upload(raw, name, mime, max_bytes=10)


def test_encode_uploaded_file_reads_file_like():
    upload = FakeUpload(b"\x89PNG fake", "photo.png", "image/png")
    data = encode_uploaded_file(upload)

    assert data.mime_type == "image/png"
    assert data.raw_bytes() == b"\x89PNG fake"


def test_text_preview_shows_leading_text():
    preview = build_preview(encode_upload(("line\n" * 500).encode("utf-8"), "notes.txt", "text/plain"))

    assert preview.kind == "text"
    assert preview.text.startswith("line\nline\n")
    assert len(preview.text) == 600


def test_non_utf8_text_blocks_preview():
    with pytest.raises(UploadReadError):
        build_preview(encode_upload(b"\xff\xfe\xfa", "notes.txt", "text/plain"))


def test_unreadable_pdf_blocks_preview():
    with pytest.raises(UploadReadError, match="Could not read PDF"):
        build_preview(encode_upload(b"this is not a pdf", "hw.pdf", "application/pdf"))


def test_image_and_document_previews():
    assert build_preview(encode_upload(b"\x89PNG fake", "photo.png", "image/png")).kind == "image"
    assert build_preview(encode_upload(
        b"PK\x03\x04", "essay.docx",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document")).kind == "document"


def test_invalid_base64_blocks_preview():
    with pytest.raises(UploadReadError):
        build_preview(FileData(name="x.txt", mime_type="text/plain", base64="@@not-base64@@"))
