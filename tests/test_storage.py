import io

import pytest
from PIL import Image

from parish.services import storage
from parish.services.storage import (
    ImageValidationError,
    extract_public_id_from_url,
    validate_image_upload,
)
from parish.utils.image_converter import convert_to_webp


def png_bytes(size=(64, 48)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestValidateImageUpload:
    def test_accepts_images_within_limit(self):
        validate_image_upload("image/jpeg", 1024, max_bytes=2048)

    @pytest.mark.parametrize("content_type", [None, "", "application/pdf", "text/plain"])
    def test_rejects_non_images(self, content_type):
        with pytest.raises(ImageValidationError, match="imagem válida"):
            validate_image_upload(content_type, 10)

    def test_rejects_large_files(self):
        with pytest.raises(ImageValidationError, match="10MB"):
            validate_image_upload("image/png", 10 * 1024 * 1024 + 1)


@pytest.mark.parametrize("url, public_id", [
    ("https://res.cloudinary.com/demo/image/upload/v1712345/slides/festa.webp", "slides/festa"),
    ("https://res.cloudinary.com/demo/image/upload/photos/missa.jpg", "photos/missa"),
    ("https://res.cloudinary.com/demo/image/upload/v1/photos/2024/natal", "photos/2024/natal"),
])
def test_extract_public_id(url, public_id):
    assert extract_public_id_from_url(url) == public_id


def test_extract_public_id_rejects_other_urls():
    with pytest.raises(ValueError):
        extract_public_id_from_url("https://example.org/festa.jpg")


@pytest.mark.asyncio
async def test_convert_png_to_webp():
    converted, ok = await convert_to_webp(png_bytes())
    assert ok
    assert Image.open(io.BytesIO(converted)).format == "WEBP"


@pytest.mark.asyncio
async def test_convert_downscales_large_images():
    converted, ok = await convert_to_webp(png_bytes((400, 200)), max_dimension=100)
    assert ok
    assert Image.open(io.BytesIO(converted)).size == (100, 50)


@pytest.mark.asyncio
async def test_convert_invalid_bytes_keeps_original():
    converted, ok = await convert_to_webp(b"not an image")
    assert not ok
    assert converted == b"not an image"


@pytest.mark.asyncio
async def test_store_image_uploads_to_folder(monkeypatch):
    calls = []

    async def fake_upload(content, folder, public_id=None, max_retries=3):
        calls.append((content, folder))
        return {"url": "https://res.cloudinary.com/demo/image/upload/v1/photos/x.webp", "public_id": "photos/x"}

    monkeypatch.setattr(storage, "upload_image", fake_upload)

    result = await storage.store_image(b"not an image", "x.bin", folder=storage.PHOTOS_FOLDER)

    assert result["public_id"] == "photos/x"
    assert calls == [(b"not an image", "photos")]
