"""
Image file adapter for the homework processing service.
"""

import logging
from typing import Any, BinaryIO, Dict, List

from PIL import Image, ImageOps, UnidentifiedImageError

from . import ContentAdapter, ContentProcessingError, encode_jpeg_base64

logger = logging.getLogger(__name__)


class ImageAdapter(ContentAdapter):
    """Adapter for photographed or scanned homework pages."""

    SUPPORTED_TYPES = [
        'image/jpeg',
        'image/png',
        'image/tiff',
        'image/bmp',
        'image/gif',
        'image/webp',
    ]

    @classmethod
    def supported_mime_types(cls) -> List[str]:
        return cls.SUPPORTED_TYPES

    async def rasterize(self, file: BinaryIO, **kwargs) -> Dict[str, Any]:
        """Re-encode the image as an upright RGB JPEG."""
        try:
            file.seek(0)
            with Image.open(file) as image:
                # Correct orientation using EXIF tags if present
                upright = ImageOps.exif_transpose(image)
                upright = upright.convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise ContentProcessingError(f"Could not read the image file: {str(e)}")
        finally:
            file.seek(0)

        logger.debug(f"Normalized image to {upright.width}x{upright.height}")
        return {
            'file_data': encode_jpeg_base64(upright),
            'mime_type': 'image/jpeg',
            'page_count': 1,
            'width': upright.width,
            'height': upright.height,
        }

    async def is_valid(self, file: BinaryIO) -> bool:
        """Check that Pillow recognizes the file as an image."""
        try:
            file.seek(0)
            with Image.open(file) as image:
                image.verify()
            return True
        except Exception:
            return False
        finally:
            file.seek(0)
