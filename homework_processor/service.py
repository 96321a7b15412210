"""
Homework Processing Service

Turns an uploaded homework file into the single stitched JPEG the grading
service reads, using the adapter for the file's type.

Example:
    >>> processor = HomeworkProcessor()
    >>> with open('homework.pdf', 'rb') as f:
    ...     result = await processor.process_file(f, 'homework.pdf')
"""

import os
import time
import logging
import mimetypes
from typing import Dict, Any, Optional, BinaryIO
from pathlib import Path
from contextlib import asynccontextmanager

from .adapters import (
    get_adapter,
    ContentProcessingError,
    UnsupportedFileTypeError,
    InvalidFileError
)

logger = logging.getLogger(__name__)


class HomeworkProcessor:
    """
    Rasterizes homework uploads with the adapter matching their type.

    Args:
        upload_dir: Directory where original uploads are kept when saved.
        max_file_size: Maximum allowed file size in bytes (default: 50MB).

    Attributes:
        upload_dir (Path): Directory for storing uploaded files.
        max_file_size (int): Maximum allowed file size in bytes.
    """

    def __init__(self, upload_dir: str = "uploads", max_file_size: int = 50 * 1024 * 1024):
        """Initialize the processor with configuration."""
        self.upload_dir = Path(upload_dir).resolve()
        self.max_file_size = max_file_size

        # Ensure upload directory exists
        self.upload_dir.mkdir(parents=True, exist_ok=True)

        # Initialize MIME type detection
        mimetypes.init()

        logger.info(f"HomeworkProcessor initialized with upload directory: {self.upload_dir}")

    @asynccontextmanager
    async def _get_file_handle(self, file: BinaryIO) -> BinaryIO:
        """Context manager to ensure proper file handle management."""
        try:
            file.seek(0)
            yield file
        finally:
            file.seek(0)

    async def _validate_file_size(self, file: BinaryIO) -> int:
        """Validate that the file size is within allowed limits."""
        current_pos = file.tell()
        file.seek(0, 2)  # Seek to end
        size = file.tell()
        file.seek(current_pos)

        if size == 0:
            raise ContentProcessingError("File is empty")
        if size > self.max_file_size:
            raise ContentProcessingError(
                f"File size {size} exceeds maximum allowed size of {self.max_file_size} bytes"
            )
        return size

    async def process_file(
        self,
        file: BinaryIO,
        filename: str,
        mime_type: Optional[str] = None,
        save_file: bool = False,
        **adapter_kwargs: Any
    ) -> Dict[str, Any]:
        """
        Rasterize a homework file.

        Args:
            file: File-like object containing the file data.
            filename: Original filename (used for type detection).
            mime_type: Declared MIME type, used when the filename is not enough.
            save_file: Whether to keep the original upload on disk.
            **adapter_kwargs: Additional arguments to pass to the adapter.

        Returns:
            Dict containing:
                - success (bool): Whether processing was successful
                - filename (str): Original filename
                - file_path (Optional[str]): Path of the saved original, relative to upload_dir
                - file_data (str): Base64 JPEG of the stitched pages
                - mime_type (str): MIME type of file_data
                - page_count (int): Number of pages rendered
                - width, height (int): Size of the stitched image in pixels
                - processing_time (float): Time taken to process in seconds
                - file_size (int): Size of the upload in bytes

        Raises:
            UnsupportedFileTypeError: If no adapter is available for the file type.
            InvalidFileError: If the file is invalid or corrupted.
            ContentProcessingError: For other processing errors.
        """
        start_time = time.time()

        try:
            file_size = await self._validate_file_size(file)
            logger.info(f"Processing file: {filename} (size: {file_size} bytes)")

            adapter = get_adapter(filename, mime_type)
            if not adapter:
                guessed, _ = mimetypes.guess_type(filename or "")
                file_type = guessed or mime_type or 'unknown'
                raise UnsupportedFileTypeError(
                    file_type=file_type,
                    message=f"No adapter available for file type: {file_type}"
                )

            logger.debug(f"Using adapter: {adapter.__class__.__name__} for {filename}")

            if not await adapter.is_valid(file):
                raise InvalidFileError(
                    filename=filename,
                    message="File is invalid or corrupted"
                )

            async with self._get_file_handle(file) as f:
                image = await adapter.rasterize(f, **adapter_kwargs)

            file_path = None
            if save_file:
                async with self._get_file_handle(file) as f:
                    file_path = await self._save_uploaded_file(f, filename)

            processing_time = time.time() - start_time

            result = {
                'success': True,
                'filename': filename,
                'file_path': str(file_path.relative_to(self.upload_dir)) if file_path else None,
                'file_data': image['file_data'],
                'mime_type': image['mime_type'],
                'page_count': image['page_count'],
                'width': image['width'],
                'height': image['height'],
                'processing_time': round(processing_time, 4),
                'file_size': file_size,
            }

            logger.info(f"Successfully processed {filename} ({image['page_count']} page(s)) in {processing_time:.2f}s")
            return result

        except (UnsupportedFileTypeError, InvalidFileError, ContentProcessingError):
            raise

        except Exception as e:
            logger.error(f"Unexpected error processing {filename}: {str(e)}", exc_info=True)
            raise ContentProcessingError(
                f"An unexpected error occurred while processing {filename}: {str(e)}"
            ) from e

    async def _generate_unique_filename(self, filename: str) -> Path:
        """Generate a unique filename to avoid conflicts."""
        safe_name = self._get_safe_filename(filename)
        file_path = self.upload_dir / safe_name

        if not file_path.exists():
            return file_path

        # Add a counter suffix to make it unique
        name, ext = os.path.splitext(safe_name)
        counter = 1

        while True:
            new_path = self.upload_dir / f"{name}_{counter}{ext}"
            if not new_path.exists():
                return new_path
            counter += 1

    async def _save_uploaded_file(self, file: BinaryIO, filename: str) -> Path:
        """
        Save an uploaded file to the upload directory with a unique name.

        Raises:
            ContentProcessingError: If the file cannot be saved.
        """
        try:
            file_path = await self._generate_unique_filename(filename)
            file_path.parent.mkdir(parents=True, exist_ok=True)

            # Save the file in chunks to handle large files
            file.seek(0)
            with open(file_path, 'wb') as f:
                while chunk := file.read(8192):
                    f.write(chunk)

            logger.debug(f"Saved file to {file_path}")
            return file_path

        except OSError as e:
            error_msg = f"Failed to save file {filename}: {str(e)}"
            logger.error(error_msg)
            raise ContentProcessingError(error_msg) from e

    @staticmethod
    def _get_safe_filename(filename: str) -> str:
        """
        Return a safe version of the filename.

        Example:
            >>> HomeworkProcessor._get_safe_filename("Homework 3 (draft).pdf")
            'Homework_3__draft_.pdf'
        """
        if not filename or not isinstance(filename, str):
            return 'unnamed_file'

        keep_chars = ('.', '_', '-')
        safe_chars = []

        for c in filename:
            if c.isalnum() or c in keep_chars:
                safe_chars.append(c)
            elif c.isspace() or c in ('*', '/', '\\', ':', '!', '@', '#', '$', '%', '^', '&', '(', ')', '+', '=', '[', ']', '{', '}', ';', "'", ',', '~', '`', '|', '"', '<', '>', '?'):
                safe_chars.append('_')
            # Other characters are removed

        safe_name = ''.join(safe_chars).strip('_.- ')

        if not safe_name:
            return 'unnamed_file'

        max_length = 255
        if len(safe_name) > max_length:
            name, ext = os.path.splitext(safe_name)
            name = name[:max_length - len(ext) - 1]
            safe_name = f"{name}{ext}"

        return safe_name
