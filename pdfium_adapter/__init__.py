"""
PDFium Adapter - Page-level access to PDFium for document viewers.

This library wraps PDFium (through pypdfium2's raw bindings) in per-page
resource managers that render pages, rebuild the text layer with
character boxes, and turn link annotations and bookmarks into normalized
navigation targets.

Quick Start:
    >>> from pdfium_adapter import Document
    >>> with Document.load('input.pdf') as document:
    ...     page = document.page(0)
    ...     image = page.image(612, 792)
    ...     text = ''.join(char.text for char in page.characters())

Main Classes:
    - Document: An open PDF and its live pages
    - Page: Lazily loaded page with cached image, characters and links
    - PDFiumGenerator: Viewer session reporting failures as OpenResult values
    - LibraryGuard: Process-wide reference count on the backend library

Exceptions:
    - PDFiumAdapterError: Base exception
    - InvalidPDFError: Missing or corrupted PDF
    - PasswordRequiredError: Encrypted PDF without the right password
    - DocumentClosedError: Use of a closed or locked document
    - LibraryError: Backend library could not be initialised

For CLI usage, use the 'pdfium-adapter' command after installation.
"""

__version__ = "1.0.0"

# Core classes
from pdfium_adapter.document import Document
from pdfium_adapter.page import Page
from pdfium_adapter.generator import PDFiumGenerator
from pdfium_adapter.library import LibraryGuard
from pdfium_adapter.config import AdapterConfig

# Data types
from pdfium_adapter.types import (
    CharEntity,
    ExternalTarget,
    InternalTarget,
    NormalizedPoint,
    NormalizedRect,
    OpenResult,
    PageDescriptor,
    PageGeometry,
    PageLink,
    PageMode,
    Rect,
    RenderedImage,
    Rotation,
    SynopsisNode,
    Viewport,
)

# Exceptions
from pdfium_adapter.exceptions import (
    PDFiumAdapterError,
    InvalidPDFError,
    PasswordRequiredError,
    DocumentClosedError,
    LibraryError,
)

# Utility functions
from pdfium_adapter.utils import configure_logging, parse_pdf_date

__author__ = "PDFium Adapter Contributors"
__license__ = "MIT"

__all__ = [
    # Main classes
    "Document",
    "Page",
    "PDFiumGenerator",
    "LibraryGuard",
    "AdapterConfig",
    # Data types
    "CharEntity",
    "ExternalTarget",
    "InternalTarget",
    "NormalizedPoint",
    "NormalizedRect",
    "OpenResult",
    "PageDescriptor",
    "PageGeometry",
    "PageLink",
    "PageMode",
    "Rect",
    "RenderedImage",
    "Rotation",
    "SynopsisNode",
    "Viewport",
    # Exceptions
    "PDFiumAdapterError",
    "InvalidPDFError",
    "PasswordRequiredError",
    "DocumentClosedError",
    "LibraryError",
    # Utility functions
    "configure_logging",
    "parse_pdf_date",
    # Version info
    "__version__",
]
