"""Per-page resource manager.

A :class:`Page` owns the backend handles of one page and every value derived
from them. Handles are acquired on first use and released in dependency
order: the text layer before the page it was loaded from.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, List, Optional, Tuple

from .backends.base import (
    RENDER_ANNOTATIONS,
    RENDER_LCD_TEXT,
    RENDER_REVERSE_BYTE_ORDER,
    BackendDocument,
    BackendPage,
    BackendTextPage,
)
from .config import DEFAULT_CONFIG, AdapterConfig
from .exceptions import DocumentClosedError
from .geometry import device_size
from .links import extract_links
from .text_layout import build_char_entities
from .types import CharEntity, PageGeometry, PageLink, RenderedImage, Rotation

if TYPE_CHECKING:  # pragma: no cover
    from .document import Document

LOGGER = logging.getLogger("pdfium_adapter.page")

Size = Tuple[int, int]


class _TextLayerHandle:
    """Owned text layer together with the counts queried when it was opened."""

    def __init__(self, text_page: BackendTextPage) -> None:
        self.text_page = text_page
        self.char_count = text_page.count_chars()
        self.rect_count = text_page.count_rects(0, self.char_count)

    def close(self) -> None:
        self.text_page.close()


class _PageHandle:
    """Owned page handle. Closing it closes the nested text layer first."""

    def __init__(self, page: BackendPage, number: int) -> None:
        self.page = page
        self.number = number
        self._text_layer: Optional[_TextLayerHandle] = None
        self._text_unavailable = False

    def text_layer(self) -> Optional[_TextLayerHandle]:
        if self._text_layer is None and not self._text_unavailable:
            text_page = self.page.load_text_page()
            if text_page is None:
                self._text_unavailable = True
                LOGGER.warning("Unable to load the text layer of page %d", self.number)
            else:
                self._text_layer = _TextLayerHandle(text_page)
        return self._text_layer

    def close(self) -> None:
        if self._text_layer is not None:
            self._text_layer.close()
            self._text_layer = None
        self.page.close()


class Page:
    """
    Lazily loaded view of one page of a :class:`~pdfium_adapter.document.Document`.

    Every public method holds the page lock while it runs. Operations that
    need a backend handle degrade to empty results when the handle cannot be
    loaded (or the page has been closed); they never raise.
    """

    def __init__(
        self,
        document: "Document",
        number: int,
        config: Optional[AdapterConfig] = None,
    ) -> None:
        self._document = document
        self.number = number
        self.config = config or DEFAULT_CONFIG

        self._lock = threading.Lock()
        self._handle: Optional[_PageHandle] = None
        self._unavailable = False
        self._closed = False

        self._size: Optional[Tuple[float, float]] = None
        self._label: Optional[str] = None
        self._rotation = Rotation.ROTATE_0
        self._image_slot: Optional[Tuple[Size, RenderedImage]] = None
        self._characters: Optional[List[CharEntity]] = None
        self._links: Optional[List[PageLink]] = None
        self._has_links: Optional[bool] = None

    def __repr__(self) -> str:
        return f"Page(number={self.number}, closed={self._closed})"

    def __enter__(self) -> "Page":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Handle management
    # ------------------------------------------------------------------
    def _backend_document(self) -> Optional[BackendDocument]:
        if self._closed:
            return None
        try:
            return self._document.handle
        except DocumentClosedError:
            LOGGER.debug("Document of page %d is closed or locked", self.number)
            return None

    def _acquire(self) -> Optional[_PageHandle]:
        if self._handle is not None:
            return self._handle
        if self._unavailable:
            return None
        document = self._backend_document()
        if document is None:
            return None

        page = document.load_page(self.number)
        if page is None:
            self._unavailable = True
            LOGGER.warning("Unable to load page %d; page queries will return empty results", self.number)
            return None

        self._handle = _PageHandle(page, self.number)
        self._rotation = Rotation.from_backend(page.rotation())
        LOGGER.debug("Loaded page %d", self.number)
        return self._handle

    def _text_layer(self) -> Optional[_TextLayerHandle]:
        handle = self._acquire()
        if handle is None:
            return None
        return handle.text_layer()

    def release_handles(self) -> None:
        """Close the backend handles but keep every cached result."""
        with self._lock:
            self._release_handles()

    def _release_handles(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def close(self) -> None:
        """Release handles, then caches. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._release_handles()
            self._image_slot = None
            self._characters = None
            self._links = None
            self._has_links = None
            self._closed = True
        self._document._forget_page(self)
        LOGGER.debug("Closed page %d", self.number)

    # ------------------------------------------------------------------
    # Document-level queries
    # ------------------------------------------------------------------
    def size(self) -> Tuple[float, float]:
        """Page size in points. Never loads the page."""
        with self._lock:
            return self._size_locked()

    def _size_locked(self) -> Tuple[float, float]:
        if self._size is None:
            document = self._backend_document()
            if document is None:
                return (0.0, 0.0)
            self._size = document.page_size(self.number) or (0.0, 0.0)
        return self._size

    def label(self) -> str:
        with self._lock:
            return self._label_locked()

    def _label_locked(self) -> str:
        if self._label is None:
            document = self._backend_document()
            if document is None:
                return ""
            self._label = document.page_label(self.number)
        return self._label

    # ------------------------------------------------------------------
    # Handle-dependent queries
    # ------------------------------------------------------------------
    def orientation(self) -> Rotation:
        with self._lock:
            return self._orientation_locked()

    def _orientation_locked(self) -> Rotation:
        handle = self._acquire()
        if handle is not None:
            self._rotation = Rotation.from_backend(handle.page.rotation())
        return self._rotation

    def geometry(self) -> PageGeometry:
        with self._lock:
            width, height = self._size_locked()
            return PageGeometry(
                width=width,
                height=height,
                rotation=self._orientation_locked(),
                label=self._label_locked(),
            )

    def char_count(self) -> int:
        with self._lock:
            layer = self._text_layer()
            return layer.char_count if layer is not None else 0

    def rect_count(self) -> int:
        with self._lock:
            layer = self._text_layer()
            return layer.rect_count if layer is not None else 0

    @property
    def render_flags(self) -> int:
        flags = 0
        if self.config.render_annotations:
            flags |= RENDER_ANNOTATIONS
        if self.config.lcd_text:
            flags |= RENDER_LCD_TEXT
        if self.config.reverse_byte_order:
            flags |= RENDER_REVERSE_BYTE_ORDER
        return flags

    def _empty_image(self) -> RenderedImage:
        return RenderedImage.empty(self.config.pixel_format)

    def _image_from(self, buffer: Optional[bytes], width: int, height: int) -> RenderedImage:
        if buffer is None:
            return self._empty_image()
        return RenderedImage(
            width=width,
            height=height,
            stride=width * 4,
            pixel_format=self.config.pixel_format,
            buffer=buffer,
        )

    def image(self, width: int, height: int) -> RenderedImage:
        """Render the whole page at ``width`` x ``height`` pixels.

        The last successful render is cached; asking again for the same size
        returns it without touching the backend.
        """
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            return self._empty_image()

        with self._lock:
            if self._image_slot is not None:
                cached_size, cached_image = self._image_slot
                if cached_size == (width, height):
                    LOGGER.debug("Image cache hit for page %d at %dx%d", self.number, width, height)
                    return cached_image

            handle = self._acquire()
            if handle is None:
                return self._empty_image()

            LOGGER.debug("Rendering page %d at %dx%d", self.number, width, height)
            image = self._image_from(
                handle.page.render(width, height, flags=self.render_flags), width, height
            )
            if image.is_empty:
                LOGGER.warning("Rendering page %d at %dx%d failed", self.number, width, height)
                return image
            self._image_slot = ((width, height), image)
            return image

    def render_region(
        self,
        dpi_x: float,
        dpi_y: float,
        x: int,
        y: int,
        width: int,
        height: int,
    ) -> RenderedImage:
        """Render a ``width`` x ``height`` window of the page scaled to the given DPI.

        ``x`` and ``y`` are the window's offset, in pixels at that DPI. The
        result is never cached.
        """
        width, height = int(width), int(height)
        if width <= 0 or height <= 0 or dpi_x <= 0 or dpi_y <= 0:
            return self._empty_image()

        with self._lock:
            handle = self._acquire()
            if handle is None:
                return self._empty_image()

            matrix = (dpi_x / 72.0, 0.0, 0.0, dpi_y / 72.0, -float(x), -float(y))
            clip = (0.0, 0.0, float(width), float(height))
            buffer = handle.page.render_with_matrix(width, height, matrix, clip, flags=self.render_flags)
            return self._image_from(buffer, width, height)

    def characters(self) -> List[CharEntity]:
        """Character entities of the page, built once and cached."""
        with self._lock:
            if self._characters is not None:
                return self._characters

            handle = self._acquire()
            if handle is None:
                return []
            layer = handle.text_layer()
            if layer is None:
                return []

            self._characters = build_char_entities(
                handle.page,
                layer.text_page,
                tolerance=self.config.zero_size_tolerance,
                char_count=layer.char_count,
                rect_count=layer.rect_count,
            )
            return self._characters

    def has_links(self) -> bool:
        with self._lock:
            if self._has_links is None:
                handle = self._acquire()
                if handle is None:
                    return False
                self._has_links = handle.page.has_link()
            return self._has_links

    def links(self) -> List[PageLink]:
        """Usable links of the page, built once and cached."""
        with self._lock:
            if self._links is not None:
                return self._links

            handle = self._acquire()
            document = self._backend_document()
            if handle is None or document is None:
                return []
            self._links = extract_links(document, handle.page, device_size(handle.page))
            LOGGER.debug("Extracted %d links from page %d", len(self._links), self.number)
            return self._links
