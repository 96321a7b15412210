"""
PDF file adapter for the homework processing service.
"""

import os
from typing import Any, BinaryIO, Dict, List

import fitz  # PyMuPDF
from PIL import Image

from . import ContentAdapter, ContentProcessingError, encode_jpeg_base64

# Render scale relative to 72 dpi
RENDER_SCALE = float(os.getenv("PDF_RENDER_SCALE", "1.5"))


def stitch_pages(pages: List[Image.Image]) -> Image.Image:
    """Stack pages top to bottom on a white canvas as wide as the widest page.

    Narrower pages are centered horizontally.
    """
    if len(pages) == 1:
        return pages[0]

    max_width = max(page.width for page in pages)
    total_height = sum(page.height for page in pages)
    canvas = Image.new("RGB", (max_width, total_height), "white")

    current_y = 0
    for page in pages:
        x_offset = (max_width - page.width) // 2
        canvas.paste(page, (x_offset, current_y))
        current_y += page.height
    return canvas


class PDFAdapter(ContentAdapter):
    """Adapter for PDF files."""

    @classmethod
    def supported_mime_types(cls) -> List[str]:
        return [
            'application/pdf',
            'application/x-pdf',
            'application/acrobat',
            'application/vnd.pdf',
            'text/pdf',
            'text/x-pdf'
        ]

    def render_pages(self, pdf_data: bytes, scale: float = RENDER_SCALE) -> List[Image.Image]:
        """Render every page of the PDF to an RGB image."""
        doc = fitz.open(stream=pdf_data, filetype="pdf")
        try:
            pages = []
            matrix = fitz.Matrix(scale, scale)
            for page_num in range(len(doc)):
                page = doc.load_page(page_num)
                pix = page.get_pixmap(matrix=matrix, alpha=False)
                pages.append(Image.frombytes("RGB", (pix.width, pix.height), pix.samples))
            return pages
        finally:
            doc.close()

    async def rasterize(self, file: BinaryIO, **kwargs) -> Dict[str, Any]:
        """Render all pages and stitch them into one JPEG."""
        try:
            file.seek(0)
            pdf_data = file.read()
            pages = self.render_pages(pdf_data, scale=kwargs.get("scale", RENDER_SCALE))
        except Exception as e:
            raise ContentProcessingError(
                f"Could not process the PDF file. It might be invalid or corrupted: {str(e)}"
            )
        finally:
            file.seek(0)

        if not pages:
            raise ContentProcessingError("PDF file is empty.")

        stitched = stitch_pages(pages)
        return {
            'file_data': encode_jpeg_base64(stitched),
            'mime_type': 'image/jpeg',
            'page_count': len(pages),
            'width': stitched.width,
            'height': stitched.height,
        }

    async def is_valid(self, file: BinaryIO) -> bool:
        """Check if the file is a valid PDF."""
        try:
            file.seek(0)
            # Check PDF magic number
            magic = file.read(4)
            return magic == b'%PDF'
        except Exception:
            return False
        finally:
            file.seek(0)
