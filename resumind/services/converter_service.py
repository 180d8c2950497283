"""PDF-to-image conversion for resume previews.

Renders the first page of a PDF to PNG with PyMuPDF (no poppler dependency).
Every failure is folded into a ConversionResult without an image so the
pipeline treats "no image produced" as a single outcome.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Protocol

import fitz  # PyMuPDF
from pydantic import BaseModel

from ..models import CandidateFile, ImageFile, ConversionConfig

logger = logging.getLogger(__name__)


class ConversionResult(BaseModel):
    """Outcome of a conversion: an image, or an error description."""
    file: Optional[ImageFile] = None
    error: Optional[str] = None


class Converter(Protocol):
    async def convert(self, file: CandidateFile) -> ConversionResult:
        ...


def _render_first_page(content: bytes, name: str, config: ConversionConfig) -> ImageFile:
    with fitz.open(stream=content, filetype="pdf") as doc:
        if doc.page_count == 0:
            raise ValueError("PDF has no pages")
        page = doc[0]
        matrix = fitz.Matrix(config.scale, config.scale)
        pix = page.get_pixmap(matrix=matrix)
        return ImageFile(
            name=f"{Path(name).stem}.{config.image_format}",
            mime_type=f"image/{config.image_format}",
            content=pix.tobytes(config.image_format),
            width=pix.width,
            height=pix.height,
        )


def convert_pdf_to_image(
    file: CandidateFile,
    config: Optional[ConversionConfig] = None
) -> ConversionResult:
    """Render the first page of ``file`` to an image.

    Args:
        file: The original candidate document (not an uploaded handle)
        config: Render settings; defaults to 4x PNG

    Returns:
        ConversionResult with ``file`` set on success, ``error`` otherwise
    """
    config = config or ConversionConfig()

    try:
        image = _render_first_page(file.content, file.name, config)
    except Exception as e:
        # PyMuPDF raises its own error types (and RuntimeError on older builds)
        logger.error(f"Failed to convert {file.name} to image: {e}")
        return ConversionResult(error=f"Failed to convert PDF: {e}")

    if not image.content:
        return ConversionResult(error="Renderer produced an empty image")

    logger.info(
        f"Converted {file.name} to {image.name} "
        f"({image.width}x{image.height}, {image.size} bytes)"
    )
    return ConversionResult(file=image)


class PdfImageConverter:
    """Async adapter running the renderer in a worker thread."""

    def __init__(self, config: Optional[ConversionConfig] = None):
        self.config = config or ConversionConfig()

    async def convert(self, file: CandidateFile) -> ConversionResult:
        return await asyncio.to_thread(convert_pdf_to_image, file, self.config)


def extract_pdf_text(content: bytes) -> str:
    """Extract plain text from every page of a PDF, pages separated by blank lines."""
    with fitz.open(stream=content, filetype="pdf") as doc:
        parts = [page.get_text() for page in doc]
    return "\n\n".join(p.strip() for p in parts if p and p.strip())
