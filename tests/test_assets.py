import io

import pytest
from PIL import Image

from src.errors import UploadReadError
from src.tools.assets import asset_from_upload, image_to_data_uri


def _png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color="red").save(buf, format="PNG")
    return buf.getvalue()


def test_valid_image_becomes_data_uri():
    uri = image_to_data_uri(_png_bytes())
    assert uri.startswith("data:image/png;base64,")


def test_declared_mime_is_kept():
    assert image_to_data_uri(_png_bytes(), "image/png").startswith("data:image/png;base64,")


def test_asset_from_upload_sets_caption():
    asset = asset_from_upload(_png_bytes(), "image/png", "Figure 1")
    assert asset.kind == "image"
    assert asset.caption == "Figure 1"
    assert asset.id.startswith("asset_")

    assert asset_from_upload(_png_bytes(), "image/png", "").caption is None


@pytest.mark.parametrize("raw", [b"", b"definitely not an image"])
def test_unreadable_images_are_rejected(raw):
    with pytest.raises(UploadReadError):
        image_to_data_uri(raw)
