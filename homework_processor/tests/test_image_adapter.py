import base64
import io

import pytest
from PIL import Image

from ..adapters import ContentProcessingError, get_adapter
from ..adapters.image_adapter import ImageAdapter


def image_file(mode="RGB", size=(64, 48), fmt="PNG", exif=None):
    buffer = io.BytesIO()
    image = Image.new(mode, size, "white" if mode != "RGBA" else (255, 255, 255, 0))
    if exif is not None:
        image.save(buffer, format=fmt, exif=exif)
    else:
        image.save(buffer, format=fmt)
    buffer.seek(0)
    return buffer


class TestImageAdapter:
    """Test cases for ImageAdapter."""

    @pytest.mark.asyncio
    async def test_png_becomes_jpeg(self):
        adapter = ImageAdapter()
        f = image_file()

        assert await adapter.is_valid(f) is True
        result = await adapter.rasterize(f)

        assert result["mime_type"] == "image/jpeg"
        assert result["page_count"] == 1
        assert (result["width"], result["height"]) == (64, 48)
        decoded = Image.open(io.BytesIO(base64.b64decode(result["file_data"])))
        assert decoded.format == "JPEG"
        assert decoded.mode == "RGB"

    @pytest.mark.asyncio
    async def test_transparent_png(self):
        result = await ImageAdapter().rasterize(image_file(mode="RGBA"))
        assert result["mime_type"] == "image/jpeg"

    @pytest.mark.asyncio
    async def test_exif_orientation_is_applied(self):
        exif = Image.Exif()
        exif[0x0112] = 6  # rotated 90 degrees
        f = image_file(size=(64, 48), fmt="JPEG", exif=exif)

        result = await ImageAdapter().rasterize(f)

        assert (result["width"], result["height"]) == (48, 64)

    @pytest.mark.asyncio
    async def test_invalid_image(self):
        adapter = ImageAdapter()
        f = io.BytesIO(b"definitely not an image")

        assert await adapter.is_valid(f) is False
        with pytest.raises(ContentProcessingError):
            await adapter.rasterize(f)

    def test_supported_mime_types(self):
        assert "image/png" in ImageAdapter.supported_mime_types()
        assert "image/jpeg" in ImageAdapter.supported_mime_types()

    @pytest.mark.parametrize("filename", ["scan.jpg", "scan.jpeg", "photo.png", "scan.tiff"])
    def test_get_adapter_for_images(self, filename):
        assert isinstance(get_adapter(filename), ImageAdapter)
