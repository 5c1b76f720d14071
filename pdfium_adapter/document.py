"""Document adapter around a backend document handle."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .backends import BackendDocument, PdfiumBackend
from .backends.base import PDFBackend
from .config import DEFAULT_CONFIG, AdapterConfig
from .exceptions import DocumentClosedError, PasswordRequiredError
from .library import LibraryGuard
from .links import resolve_destination
from .page import Page
from .types import PageMode, SynopsisNode, Viewport

LOGGER = logging.getLogger("pdfium_adapter.document")


class Document:
    """
    An open PDF document and the live pages derived from it.

    Use :meth:`load` to open a file. An encrypted file whose password was not
    supplied (or was wrong) loads *locked*: :meth:`is_locked` is true and
    every content query raises :class:`DocumentClosedError` until
    :meth:`unlock` succeeds.
    """

    def __init__(
        self,
        path: Union[str, Path],
        backend: PDFBackend,
        config: AdapterConfig,
        guard: LibraryGuard,
    ) -> None:
        self.path = Path(path)
        self.backend = backend
        self.config = config
        self._guard = guard
        self._handle: Optional[BackendDocument] = None
        self._closed = False

        self._lock = threading.RLock()
        self._pages: Dict[int, Page] = {}
        self._synopsis: Optional[Tuple[SynopsisNode, ...]] = None

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        password: Optional[str] = None,
        *,
        backend: Optional[PDFBackend] = None,
        config: Optional[AdapterConfig] = None,
    ) -> "Document":
        """Open ``path`` with ``backend`` (PDFium by default).

        Raises:
            InvalidPDFError: The file is missing or not a readable PDF
            LibraryError: The backend library could not be initialised
        """
        backend = backend or PdfiumBackend()
        guard = LibraryGuard(backend).acquire()
        document = cls(path, backend, config or DEFAULT_CONFIG, guard)
        try:
            document._open(password)
        except Exception:
            guard.release()
            raise
        return document

    def _open(self, password: Optional[str]) -> bool:
        try:
            self._handle = self.backend.load_document(str(self.path), password=password)
        except PasswordRequiredError:
            LOGGER.info("%s is encrypted; document is locked", self.path)
            return False
        LOGGER.info("Opened %s (%d pages)", self.path, self._handle.page_count())
        return True

    def __repr__(self) -> str:
        state = "closed" if self._closed else "locked" if self.is_locked() else "open"
        return f"Document(path={str(self.path)!r}, {state})"

    def __enter__(self) -> "Document":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    def is_locked(self) -> bool:
        return not self._closed and self._handle is None

    def unlock(self, password: Optional[str]) -> bool:
        """Retry opening with ``password``. Returns whether the document is now unlocked."""
        with self._lock:
            if self._closed:
                raise DocumentClosedError()
            if self._handle is not None:
                return True
            return self._open(password)

    @property
    def handle(self) -> BackendDocument:
        """The backend document, for pages and outline traversal."""
        if self._closed or self._handle is None:
            raise DocumentClosedError(
                f"Document {self.path} is {'closed' if self._closed else 'locked'}."
            )
        return self._handle

    # ------------------------------------------------------------------
    # Document-level queries
    # ------------------------------------------------------------------
    def page_count(self) -> int:
        return self.handle.page_count()

    def page_mode(self) -> PageMode:
        return PageMode.from_backend(self.handle.page_mode())

    def meta_text(self, key: str) -> str:
        """Value of an info dictionary entry such as ``"Title"``; empty when absent."""
        return self.handle.meta_text(key)

    def page(self, index: int) -> Page:
        """The live :class:`Page` for ``index``, created on first request.

        An index the backend cannot load yields a page that answers every
        handle-dependent query with an empty result.
        """
        with self._lock:
            handle = self.handle
            page = self._pages.get(index)
            if page is None:
                page = Page(self, index, self.config)
                self._pages[index] = page
                LOGGER.debug("Created page %d of %d", index, handle.page_count())
            return page

    def live_pages(self) -> Tuple[Page, ...]:
        with self._lock:
            return tuple(self._pages.values())

    def _forget_page(self, page: Page) -> None:
        with self._lock:
            if self._pages.get(page.number) is page:
                del self._pages[page.number]

    def named_viewport(self, name: str) -> Optional[Viewport]:
        """Viewport of a named destination, or ``None`` if it does not resolve."""
        if not name:
            return None
        handle = self.handle
        return resolve_destination(handle, handle.named_dest(name))

    def synopsis(self) -> Tuple[SynopsisNode, ...]:
        """The outline as an immutable tree, built once."""
        with self._lock:
            if self._synopsis is None:
                self._synopsis = self._build_outline(self.handle, None, 0)
                LOGGER.debug("Built outline with %d top-level entries", len(self._synopsis))
            return self._synopsis

    def _build_outline(self, handle: BackendDocument, parent: Any, depth: int) -> Tuple[SynopsisNode, ...]:
        if depth >= self.config.toc_max_depth:
            LOGGER.debug("Outline deeper than %d levels; ignoring the rest", depth)
            return ()

        nodes = []
        bookmark = handle.first_child_bookmark(parent)
        while bookmark is not None:
            viewport = resolve_destination(
                handle, handle.bookmark_dest(bookmark), open=parent is None
            )
            nodes.append(
                SynopsisNode(
                    title=handle.bookmark_title(bookmark),
                    viewport=viewport,
                    children=self._build_outline(handle, bookmark, depth + 1),
                )
            )
            bookmark = handle.next_sibling_bookmark(bookmark)
        return tuple(nodes)

    # ------------------------------------------------------------------
    def close(self) -> None:
        """Close every live page, then the backend document. Idempotent."""
        with self._lock:
            if self._closed:
                return
            # page() refuses new pages from here on
            self._closed = True
            pages = list(self._pages.values())
            self._pages.clear()

        for page in pages:
            page.close()

        with self._lock:
            self._synopsis = None
            if self._handle is not None:
                self._handle.close()
                self._handle = None
        self._guard.release()
        LOGGER.info("Closed %s", self.path)


__all__ = ["Document"]
