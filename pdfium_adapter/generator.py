"""Host-facing session over a single open document.

:class:`PDFiumGenerator` is what a viewer talks to: it opens a document,
describes its pages at the host's DPI, serves rendered images (whole pages or
tiles), text with normalized boxes, document information and the outline.
Every document-level failure is reported as an :class:`OpenResult` or an
empty value instead of an exception.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from .backends import PdfiumBackend
from .backends.base import PDFBackend
from .config import DEFAULT_CONFIG, AdapterConfig
from .document import Document
from .exceptions import PDFiumAdapterError
from .library import LibraryGuard
from .text_layout import page_text
from .types import (
    NormalizedRect,
    OpenResult,
    PageDescriptor,
    PageMode,
    RenderedImage,
    Rotation,
    SynopsisNode,
)
from .utils import format_pdf_date

LOGGER = logging.getLogger("pdfium_adapter.generator")

MIME_TYPE = "application/pdf"

# Document info key -> info dictionary entry
_META_KEYS = {
    "title": "Title",
    "subject": "Subject",
    "author": "Author",
    "keywords": "Keywords",
    "creator": "Creator",
    "producer": "Producer",
}
_DATE_KEYS = {
    "creationDate": "CreationDate",
    "modificationDate": "ModDate",
}
DOCUMENT_INFO_KEYS = ("mimeType", *_META_KEYS, *_DATE_KEYS, "pages")

TextEntry = Tuple[str, NormalizedRect]


class PDFiumGenerator:
    """
    A viewer session: at most one open document at a time.

    Example:
        >>> with PDFiumGenerator() as generator:
        ...     if generator.load_document("input.pdf") is OpenResult.SUCCESS:
        ...         image = generator.image(0, 612, 792)
    """

    def __init__(
        self,
        *,
        backend: Optional[PDFBackend] = None,
        config: Optional[AdapterConfig] = None,
    ) -> None:
        self.backend = backend or PdfiumBackend()
        self.config = config or DEFAULT_CONFIG
        self._guard = LibraryGuard(self.backend).acquire()
        self._lock = threading.RLock()

        self._document: Optional[Document] = None
        self._pages: List[PageDescriptor] = []
        self._rects_generated: List[bool] = []

    def __enter__(self) -> "PDFiumGenerator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def document(self) -> Optional[Document]:
        return self._document

    @property
    def pages(self) -> List[PageDescriptor]:
        with self._lock:
            return list(self._pages)

    # ------------------------------------------------------------------
    # Opening and closing
    # ------------------------------------------------------------------
    def load_document(self, path: Union[str, Path], password: Optional[str] = None) -> OpenResult:
        with self._lock:
            if self._document is not None:
                LOGGER.warning("load_document called while %s is still open", self._document.path)
                return OpenResult.ERROR

            try:
                document = Document.load(path, password, backend=self.backend, config=self.config)
            except PDFiumAdapterError as exc:
                LOGGER.error("Unable to open %s: %s", path, exc)
                return OpenResult.ERROR

            if document.is_locked():
                document.close()
                return OpenResult.NEEDS_PASSWORD

            page_count = document.page_count()
            if page_count < 0:
                document.close()
                return OpenResult.ERROR

            self._document = document
            self._pages = [self._describe(number, Rotation.ROTATE_0) for number in range(page_count)]
            self._rects_generated = [False] * page_count
            return OpenResult.SUCCESS

    def close_document(self) -> bool:
        with self._lock:
            if self._document is not None:
                self._document.close()
                self._document = None
            self._pages = []
            self._rects_generated = []
            return True

    def close(self) -> None:
        """Close the document and release this session's hold on the library."""
        self.close_document()
        self._guard.release()

    def _describe(self, number: int, rotation: Rotation) -> PageDescriptor:
        page = self._document.page(number)
        width, height = page.size()
        return PageDescriptor(
            number=number,
            width=width / 72.0 * self.config.dpi_x,
            height=height / 72.0 * self.config.dpi_y,
            rotation=rotation,
            label=page.label(),
        )

    def _valid_page(self, page_number: int) -> bool:
        return self._document is not None and 0 <= page_number < len(self._pages)

    # ------------------------------------------------------------------
    # Rendering and text
    # ------------------------------------------------------------------
    def image(
        self,
        page_number: int,
        width: int,
        height: int,
        *,
        tile: Optional[NormalizedRect] = None,
        should_abort: Optional[Callable[[], bool]] = None,
    ) -> RenderedImage:
        """Render a page, or the ``tile`` of it, for an output of ``width`` x ``height``.

        ``should_abort`` is consulted once, just before rendering starts.
        """
        empty = RenderedImage.empty(self.config.pixel_format)
        with self._lock:
            if not self._valid_page(page_number):
                return empty

            descriptor = self._pages[page_number]
            page_width, page_height = descriptor.width, descriptor.height
            if descriptor.rotation % 2:
                page_width, page_height = page_height, page_width
            if page_width <= 0 or page_height <= 0:
                return empty

            page = self._document.page(page_number)
            if should_abort is not None and should_abort():
                LOGGER.debug("Render of page %d aborted", page_number)
                return empty

            if tile is None:
                return page.image(width, height)

            # The DPI at which the whole page would measure width x height
            fake_dpi_x = width / page_width * self.config.dpi_x
            fake_dpi_y = height / page_height * self.config.dpi_y
            region = tile.geometry(width, height)
            return page.render_region(
                fake_dpi_x,
                fake_dpi_y,
                int(region.left),
                int(region.top),
                int(region.width),
                int(region.height),
            )

    def text_page(self, page_number: int) -> List[TextEntry]:
        """Characters of a page with boxes relative to the page size.

        The first call for a page also attaches its links to the page
        descriptor and refreshes the descriptor if the page turned out to be
        rotated.
        """
        with self._lock:
            if not self._valid_page(page_number):
                return []

            page = self._document.page(page_number)
            width, height = page.size()
            entries = [
                (entity.text, NormalizedRect.from_rect(entity.area, width, height))
                for entity in page.characters()
            ]

            if not self._rects_generated[page_number]:
                descriptor = self._pages[page_number]
                if page.has_links():
                    descriptor.links = list(page.links())

                orientation = page.orientation()
                if descriptor.rotation != orientation:
                    LOGGER.debug("Page %d is rotated %d degrees", page_number, orientation.degrees)
                    refreshed = self._describe(page_number, orientation)
                    refreshed.links = list(descriptor.links)
                    self._pages[page_number] = refreshed
            self._rects_generated[page_number] = True
            return entries

    def export_text(self, page_number: int) -> str:
        """Plain text of a page."""
        with self._lock:
            if not self._valid_page(page_number):
                return ""
            return page_text(self._document.page(page_number).characters())

    # ------------------------------------------------------------------
    # Document information
    # ------------------------------------------------------------------
    def document_info(self, keys: Optional[Iterable[str]] = None) -> Dict[str, str]:
        """Document information for ``keys`` (every key in :data:`DOCUMENT_INFO_KEYS` by default).

        The MIME type is always present, and the page count whenever a
        document is open.
        """
        wanted = set(DOCUMENT_INFO_KEYS if keys is None else keys)
        info = {"mimeType": MIME_TYPE}

        with self._lock:
            if self._document is None:
                return info
            document = self._document
            for key, meta_key in _META_KEYS.items():
                if key in wanted:
                    info[key] = document.meta_text(meta_key)
            for key, meta_key in _DATE_KEYS.items():
                if key in wanted:
                    info[key] = format_pdf_date(document.meta_text(meta_key))
            info["pages"] = str(document.page_count())
        return info

    def synopsis(self) -> Tuple[SynopsisNode, ...]:
        with self._lock:
            if self._document is None:
                return ()
            return self._document.synopsis()

    def meta_data(self, key: str, option: Optional[str] = None):
        """Answer a viewer metadata query.

        Supported keys: ``StartFullScreen`` and ``OpenTOC`` (booleans derived
        from the page mode), ``DocumentTitle``, and ``NamedViewport`` (the
        viewport string of the destination named by ``option``). Anything
        else, or any query without an open document, yields ``None``.
        """
        with self._lock:
            if self._document is None:
                return None
            document = self._document

            if key == "StartFullScreen":
                return document.page_mode() is PageMode.FULL_SCREEN
            if key == "NamedViewport" and option:
                viewport = document.named_viewport(option)
                return viewport.to_string() if viewport is not None else None
            if key == "DocumentTitle":
                return document.meta_text("Title")
            if key == "OpenTOC":
                return document.page_mode() is PageMode.USE_OUTLINES
        return None


__all__ = ["DOCUMENT_INFO_KEYS", "MIME_TYPE", "PDFiumGenerator"]
