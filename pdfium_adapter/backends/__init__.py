"""Backend abstractions for the PDFium adapter."""

from .base import (
    BackendDocument,
    BackendPage,
    BackendTextPage,
    LinkAnnotation,
    PDFBackend,
    RENDER_ANNOTATIONS,
    RENDER_LCD_TEXT,
    RENDER_REVERSE_BYTE_ORDER,
)
from .pdfium_backend import PdfiumBackend

__all__ = [
    "BackendDocument",
    "BackendPage",
    "BackendTextPage",
    "LinkAnnotation",
    "PDFBackend",
    "PdfiumBackend",
    "RENDER_ANNOTATIONS",
    "RENDER_LCD_TEXT",
    "RENDER_REVERSE_BYTE_ORDER",
]
