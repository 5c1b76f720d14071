"""Backend protocol for PDF engines.

A backend exposes the engine's primitives one level above its C API: handles
are wrapped in objects with explicit ``close()`` methods, but no caching,
geometry normalisation or filtering happens here. That is the job of the page
and document layers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Protocol, Tuple

# (left, top, right, bottom) in page space, as the engine reports it.
PageRectF = Tuple[float, float, float, float]
# (left, right, bottom, top), the engine's order for tight glyph boxes.
CharBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class LinkAnnotation:
    """
    One link annotation as enumerated by the engine.

    Attributes:
        dest: Opaque destination handle, resolved through the document
        uri: URI of the link's action, if it has one
        rect: Annotation rectangle in page space, if the annotation has one
    """

    dest: Any = None
    uri: Optional[str] = None
    rect: Optional[PageRectF] = None


class BackendTextPage:
    """Text layer of a loaded page."""

    def count_chars(self) -> int:
        raise NotImplementedError

    def count_rects(self, start: int, count: int) -> int:
        raise NotImplementedError

    def unicode(self, index: int) -> int:
        raise NotImplementedError

    def char_box(self, index: int) -> Optional[CharBox]:
        raise NotImplementedError

    def loose_char_box(self, index: int) -> Optional[PageRectF]:
        raise NotImplementedError

    def rect(self, index: int) -> Optional[PageRectF]:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class BackendPage:
    """A loaded page."""

    @property
    def width(self) -> float:
        raise NotImplementedError

    @property
    def height(self) -> float:
        raise NotImplementedError

    def rotation(self) -> int:
        raise NotImplementedError

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
        raise NotImplementedError

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
        raise NotImplementedError

    def load_text_page(self) -> Optional[BackendTextPage]:
        raise NotImplementedError

    def has_link(self) -> bool:
        raise NotImplementedError

    def iter_links(self) -> Iterator[LinkAnnotation]:
        raise NotImplementedError

    def render(self, width: int, height: int, *, flags: int) -> Optional[bytes]:
        """Rasterize the whole page into a white ``width`` x ``height`` buffer."""
        raise NotImplementedError

    def render_with_matrix(
        self,
        width: int,
        height: int,
        matrix: Tuple[float, float, float, float, float, float],
        clip: PageRectF,
        *,
        flags: int,
    ) -> Optional[bytes]:
        """Rasterize through an explicit page-to-bitmap matrix onto a white buffer."""
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class BackendDocument:
    """A loaded (and unlocked) document."""

    def page_count(self) -> int:
        raise NotImplementedError

    def page_mode(self) -> int:
        raise NotImplementedError

    def page_size(self, index: int) -> Optional[Tuple[float, float]]:
        raise NotImplementedError

    def page_label(self, index: int) -> str:
        raise NotImplementedError

    def meta_text(self, key: str) -> str:
        raise NotImplementedError

    def load_page(self, index: int) -> Optional[BackendPage]:
        raise NotImplementedError

    def dest_page_index(self, dest: Any) -> int:
        raise NotImplementedError

    def dest_location(self, dest: Any) -> Optional[Tuple[float, float]]:
        raise NotImplementedError

    def named_dest(self, name: str) -> Any:
        raise NotImplementedError

    def first_child_bookmark(self, parent: Any) -> Any:
        raise NotImplementedError

    def next_sibling_bookmark(self, bookmark: Any) -> Any:
        raise NotImplementedError

    def bookmark_title(self, bookmark: Any) -> str:
        raise NotImplementedError

    def bookmark_dest(self, bookmark: Any) -> Any:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


# Render flag bits understood by every backend.
RENDER_ANNOTATIONS = 0x01
RENDER_LCD_TEXT = 0x02
RENDER_REVERSE_BYTE_ORDER = 0x10


class PDFBackend(Protocol):
    """Protocol defining the operations every PDF engine backend provides."""

    def init_library(self) -> None:
        """Initialise the engine. Called once, by the first library guard."""

    def destroy_library(self) -> None:
        """Release the engine. Called once, by the last library guard."""

    def load_document(self, pdf_path: str, password: Optional[str] = None) -> BackendDocument:
        """Open ``pdf_path``.

        Raises:
            InvalidPDFError: The file is missing or not a readable PDF
            PasswordRequiredError: The file is encrypted and ``password`` does not open it
        """
