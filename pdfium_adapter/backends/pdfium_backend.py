"""pypdfium2 backend implementation.

Documents are opened through :class:`pypdfium2.PdfDocument`; everything below
document level goes through ``pypdfium2.raw`` so that page and text-page
handles keep the manual lifetime the page layer manages.
"""

from __future__ import annotations

import ctypes
import functools
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Tuple, TypeVar

import pypdfium2 as pdfium

from ..exceptions import InvalidPDFError, PasswordRequiredError
from .base import (
    BackendDocument,
    BackendPage,
    BackendTextPage,
    CharBox,
    LinkAnnotation,
    PageRectF,
    PDFBackend,
)

pdfium_c = pdfium.raw

LOGGER = logging.getLogger("pdfium_adapter.backends.pdfium")

# PDFium is not re-entrant across threads; every engine call is serialized.
_ENGINE_LOCK = threading.RLock()

_F = TypeVar("_F", bound=Callable[..., Any])


def _serialized(func: _F) -> _F:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        with _ENGINE_LOCK:
            return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _read_utf16(getter: Callable[[Any, int], int]) -> str:
    """Run a PDFium two-pass UTF-16LE string getter and decode the result."""
    length = getter(None, 0)
    if length <= 2:
        return ""
    buffer = ctypes.create_string_buffer(length)
    getter(buffer, length)
    return buffer.raw[: length - 2].decode("utf-16-le", errors="replace")


class PdfiumTextPage(BackendTextPage):
    def __init__(self, raw: Any) -> None:
        self._raw = raw

    @_serialized
    def count_chars(self) -> int:
        return max(0, int(pdfium_c.FPDFText_CountChars(self._raw)))

    @_serialized
    def count_rects(self, start: int, count: int) -> int:
        return max(0, int(pdfium_c.FPDFText_CountRects(self._raw, start, count)))

    @_serialized
    def unicode(self, index: int) -> int:
        return int(pdfium_c.FPDFText_GetUnicode(self._raw, index))

    @_serialized
    def char_box(self, index: int) -> Optional[CharBox]:
        left, right = ctypes.c_double(), ctypes.c_double()
        bottom, top = ctypes.c_double(), ctypes.c_double()
        ok = pdfium_c.FPDFText_GetCharBox(
            self._raw,
            index,
            ctypes.byref(left),
            ctypes.byref(right),
            ctypes.byref(bottom),
            ctypes.byref(top),
        )
        if not ok:
            return None
        return (left.value, right.value, bottom.value, top.value)

    @_serialized
    def loose_char_box(self, index: int) -> Optional[PageRectF]:
        rect = pdfium_c.FS_RECTF()
        if not pdfium_c.FPDFText_GetLooseCharBox(self._raw, index, ctypes.byref(rect)):
            return None
        return (rect.left, rect.top, rect.right, rect.bottom)

    @_serialized
    def rect(self, index: int) -> Optional[PageRectF]:
        left, top = ctypes.c_double(), ctypes.c_double()
        right, bottom = ctypes.c_double(), ctypes.c_double()
        ok = pdfium_c.FPDFText_GetRect(
            self._raw,
            index,
            ctypes.byref(left),
            ctypes.byref(top),
            ctypes.byref(right),
            ctypes.byref(bottom),
        )
        if not ok:
            return None
        return (left.value, top.value, right.value, bottom.value)

    @_serialized
    def close(self) -> None:
        if self._raw:
            pdfium_c.FPDFText_ClosePage(self._raw)
            self._raw = None


class PdfiumPage(BackendPage):
    def __init__(self, document: "PdfiumDocument", raw: Any) -> None:
        self._document = document
        self._raw = raw

    @property
    @_serialized
    def width(self) -> float:
        return float(pdfium_c.FPDF_GetPageWidthF(self._raw))

    @property
    @_serialized
    def height(self) -> float:
        return float(pdfium_c.FPDF_GetPageHeightF(self._raw))

    @_serialized
    def rotation(self) -> int:
        return int(pdfium_c.FPDFPage_GetRotation(self._raw))

    @_serialized
    def page_to_device(
        self,
        start_x: int,
        start_y: int,
        size_x: int,
        size_y: int,
        rotate: int,
        page_x: float,
        page_y: float,
    ) -> Optional[Tuple[int, int]]:
        device_x, device_y = ctypes.c_int(), ctypes.c_int()
        ok = pdfium_c.FPDF_PageToDevice(
            self._raw,
            start_x,
            start_y,
            size_x,
            size_y,
            rotate,
            page_x,
            page_y,
            ctypes.byref(device_x),
            ctypes.byref(device_y),
        )
        if not ok:
            return None
        return (device_x.value, device_y.value)

    @_serialized
    def device_to_page(
        self,
        start_x: int,
        start_y: int,
        size_x: int,
        size_y: int,
        rotate: int,
        device_x: int,
        device_y: int,
    ) -> Optional[Tuple[float, float]]:
        page_x, page_y = ctypes.c_double(), ctypes.c_double()
        ok = pdfium_c.FPDF_DeviceToPage(
            self._raw,
            start_x,
            start_y,
            size_x,
            size_y,
            rotate,
            device_x,
            device_y,
            ctypes.byref(page_x),
            ctypes.byref(page_y),
        )
        if not ok:
            return None
        return (page_x.value, page_y.value)

    @_serialized
    def load_text_page(self) -> Optional[PdfiumTextPage]:
        raw = pdfium_c.FPDFText_LoadPage(self._raw)
        if not raw:
            return None
        return PdfiumTextPage(raw)

    @_serialized
    def has_link(self) -> bool:
        position = ctypes.c_int(0)
        link = pdfium_c.FPDF_LINK()
        return bool(
            pdfium_c.FPDFLink_Enumerate(self._raw, ctypes.byref(position), ctypes.byref(link))
        )

    def iter_links(self) -> Iterator[LinkAnnotation]:
        with _ENGINE_LOCK:
            annotations = list(self._enumerate_links())
        return iter(annotations)

    def _enumerate_links(self) -> Iterator[LinkAnnotation]:
        doc = self._document.raw
        position = ctypes.c_int(0)
        link = pdfium_c.FPDF_LINK()
        while pdfium_c.FPDFLink_Enumerate(self._raw, ctypes.byref(position), ctypes.byref(link)):
            dest = pdfium_c.FPDFLink_GetDest(doc, link)

            uri = None
            action = pdfium_c.FPDFLink_GetAction(link)
            if action:
                length = pdfium_c.FPDFAction_GetURIPath(doc, action, None, 0)
                if length > 1:
                    buffer = ctypes.create_string_buffer(length)
                    pdfium_c.FPDFAction_GetURIPath(doc, action, buffer, length)
                    uri = buffer.raw[: length - 1].decode("latin-1")

            rect = None
            annot_rect = pdfium_c.FS_RECTF()
            if pdfium_c.FPDFLink_GetAnnotRect(link, ctypes.byref(annot_rect)):
                rect = (annot_rect.left, annot_rect.top, annot_rect.right, annot_rect.bottom)

            yield LinkAnnotation(dest=dest if dest else None, uri=uri, rect=rect)

    def _render(self, width: int, height: int, draw: Callable[[Any], None]) -> Optional[bytes]:
        stride = width * 4
        buffer = ctypes.create_string_buffer(stride * height)
        bitmap = pdfium_c.FPDFBitmap_CreateEx(width, height, pdfium_c.FPDFBitmap_BGRA, buffer, stride)
        if not bitmap:
            LOGGER.debug("Unable to create a %dx%d bitmap", width, height)
            return None
        try:
            pdfium_c.FPDFBitmap_FillRect(bitmap, 0, 0, width, height, 0xFFFFFFFF)
            draw(bitmap)
        finally:
            pdfium_c.FPDFBitmap_Destroy(bitmap)
        return buffer.raw

    @_serialized
    def render(self, width: int, height: int, *, flags: int) -> Optional[bytes]:
        def draw(bitmap: Any) -> None:
            pdfium_c.FPDF_RenderPageBitmap(bitmap, self._raw, 0, 0, width, height, 0, flags)

        return self._render(width, height, draw)

    @_serialized
    def render_with_matrix(
        self,
        width: int,
        height: int,
        matrix: Tuple[float, float, float, float, float, float],
        clip: PageRectF,
        *,
        flags: int,
    ) -> Optional[bytes]:
        fs_matrix = pdfium_c.FS_MATRIX(*matrix)
        fs_clip = pdfium_c.FS_RECTF(*clip)

        def draw(bitmap: Any) -> None:
            pdfium_c.FPDF_RenderPageBitmapWithMatrix(
                bitmap, self._raw, ctypes.byref(fs_matrix), ctypes.byref(fs_clip), flags
            )

        return self._render(width, height, draw)

    @_serialized
    def close(self) -> None:
        if self._raw:
            pdfium_c.FPDF_ClosePage(self._raw)
            self._raw = None


class PdfiumDocument(BackendDocument):
    def __init__(self, pdf: "pdfium.PdfDocument") -> None:
        self._pdf = pdf

    @property
    def raw(self) -> Any:
        return self._pdf.raw

    @_serialized
    def page_count(self) -> int:
        return int(pdfium_c.FPDF_GetPageCount(self.raw))

    @_serialized
    def page_mode(self) -> int:
        return int(pdfium_c.FPDFDoc_GetPageMode(self.raw))

    @_serialized
    def page_size(self, index: int) -> Optional[Tuple[float, float]]:
        width, height = ctypes.c_double(), ctypes.c_double()
        if not pdfium_c.FPDF_GetPageSizeByIndex(
            self.raw, index, ctypes.byref(width), ctypes.byref(height)
        ):
            return None
        return (width.value, height.value)

    @_serialized
    def page_label(self, index: int) -> str:
        return _read_utf16(
            lambda buffer, length: pdfium_c.FPDF_GetPageLabel(self.raw, index, buffer, length)
        )

    @_serialized
    def meta_text(self, key: str) -> str:
        tag = key.encode("ascii")
        return _read_utf16(
            lambda buffer, length: pdfium_c.FPDF_GetMetaText(self.raw, tag, buffer, length)
        )

    @_serialized
    def load_page(self, index: int) -> Optional[PdfiumPage]:
        if index < 0 or index >= self.page_count():
            return None
        raw = pdfium_c.FPDF_LoadPage(self.raw, index)
        if not raw:
            return None
        return PdfiumPage(self, raw)

    @_serialized
    def dest_page_index(self, dest: Any) -> int:
        if not dest:
            return -1
        return int(pdfium_c.FPDFDest_GetDestPageIndex(self.raw, dest))

    @_serialized
    def dest_location(self, dest: Any) -> Optional[Tuple[float, float]]:
        if not dest:
            return None
        has_x, has_y, has_zoom = ctypes.c_int(), ctypes.c_int(), ctypes.c_int()
        x, y, zoom = ctypes.c_float(), ctypes.c_float(), ctypes.c_float()
        ok = pdfium_c.FPDFDest_GetLocationInPage(
            dest,
            ctypes.byref(has_x),
            ctypes.byref(has_y),
            ctypes.byref(has_zoom),
            ctypes.byref(x),
            ctypes.byref(y),
            ctypes.byref(zoom),
        )
        if not ok or not (has_x.value and has_y.value):
            return None
        return (x.value, y.value)

    @_serialized
    def named_dest(self, name: str) -> Any:
        dest = pdfium_c.FPDF_GetNamedDestByName(self.raw, name.encode("latin-1"))
        return dest if dest else None

    @_serialized
    def first_child_bookmark(self, parent: Any) -> Any:
        bookmark = pdfium_c.FPDFBookmark_GetFirstChild(self.raw, parent)
        return bookmark if bookmark else None

    @_serialized
    def next_sibling_bookmark(self, bookmark: Any) -> Any:
        sibling = pdfium_c.FPDFBookmark_GetNextSibling(self.raw, bookmark)
        return sibling if sibling else None

    @_serialized
    def bookmark_title(self, bookmark: Any) -> str:
        return _read_utf16(
            lambda buffer, length: pdfium_c.FPDFBookmark_GetTitle(bookmark, buffer, length)
        )

    @_serialized
    def bookmark_dest(self, bookmark: Any) -> Any:
        dest = pdfium_c.FPDFBookmark_GetDest(self.raw, bookmark)
        return dest if dest else None

    @_serialized
    def close(self) -> None:
        if self._pdf is not None:
            self._pdf.close()
            self._pdf = None


class PdfiumBackend(PDFBackend):
    """Backend implementation that uses ``pypdfium2`` under the hood."""

    def init_library(self) -> None:
        # pypdfium2 initialises PDFium on import and releases it at interpreter exit.
        LOGGER.debug("PDFium library initialised by pypdfium2")

    def destroy_library(self) -> None:
        LOGGER.debug("PDFium library teardown deferred to pypdfium2")

    @_serialized
    def load_document(self, pdf_path: str, password: Optional[str] = None) -> PdfiumDocument:
        path = Path(pdf_path)
        if not path.exists() or not path.is_file():
            raise InvalidPDFError(f"PDF file not found: {pdf_path}")

        try:
            pdf = pdfium.PdfDocument(str(path), password=password)
        except pdfium.PdfiumError as exc:
            err_code = getattr(exc, "err_code", None)
            if err_code is None:
                err_code = pdfium_c.FPDF_GetLastError()
            if err_code == pdfium_c.FPDF_ERR_PASSWORD:
                raise PasswordRequiredError(
                    f"PDF is encrypted and the supplied password does not open it: {pdf_path}"
                ) from exc
            raise InvalidPDFError(f"Corrupted or invalid PDF file: {pdf_path}. Error: {exc}") from exc
        except OSError as exc:
            raise InvalidPDFError(f"Unable to read PDF file: {pdf_path}. Error: {exc}") from exc

        return PdfiumDocument(pdf)
