"""
Rasterization adapters for homework uploads.

Each adapter turns one kind of upload (PDF, image) into a single base64 JPEG
plus a little metadata about it.
"""

import base64
import io
import mimetypes
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, List, Optional

from PIL import Image

JPEG_QUALITY = 90


class ContentProcessingError(Exception):
    """Base exception for content processing errors."""
    pass


class UnsupportedFileTypeError(ContentProcessingError):
    """Raised when a file type is not supported."""
    def __init__(self, file_type: str, message: str = ""):
        self.file_type = file_type
        self.message = message or f"Unsupported file type: {file_type}"
        super().__init__(self.message)


class InvalidFileError(ContentProcessingError):
    """Raised when a file is invalid or corrupted."""
    def __init__(self, filename: str, message: str = ""):
        self.filename = filename
        self.message = message or f"Invalid or corrupted file: {filename}"
        super().__init__(self.message)


def encode_jpeg_base64(image: Image.Image, quality: int = JPEG_QUALITY) -> str:
    """Encode a PIL image as a base64 JPEG string (no data URL prefix)."""
    if image.mode != "RGB":
        image = image.convert("RGB")
    buffered = io.BytesIO()
    image.save(buffered, format="JPEG", quality=quality)
    return base64.b64encode(buffered.getvalue()).decode("utf-8")


class ContentAdapter(ABC):
    """Abstract base class for rasterization adapters."""

    @classmethod
    @abstractmethod
    def supported_mime_types(cls) -> List[str]:
        """Return a list of MIME types this adapter can handle."""
        pass

    @abstractmethod
    async def rasterize(self, file: BinaryIO, **kwargs) -> Dict[str, Any]:
        """Render the file into one image.

        Returns a dict with ``file_data`` (base64 JPEG), ``mime_type``,
        ``page_count``, ``width`` and ``height``.
        """
        pass

    @abstractmethod
    async def is_valid(self, file: BinaryIO) -> bool:
        """Check if the file is valid for this adapter."""
        pass


def get_adapter(file_path: str, mime_type: Optional[str] = None) -> Optional[ContentAdapter]:
    """
    Factory function to get the appropriate adapter for a file.

    Args:
        file_path: Name or path of the file to process
        mime_type: Declared MIME type, used when the name has no known extension

    Returns:
        An instance of the appropriate ContentAdapter subclass, or None if no adapter is found.
    """
    # Lazy import to avoid circular imports
    from .pdf_adapter import PDFAdapter
    from .image_adapter import ImageAdapter

    guessed, _ = mimetypes.guess_type(file_path or "")
    mime_type = guessed or mime_type
    if not mime_type:
        return None

    for adapter_cls in [PDFAdapter, ImageAdapter]:
        if mime_type in adapter_cls.supported_mime_types():
            return adapter_cls()

    return None
