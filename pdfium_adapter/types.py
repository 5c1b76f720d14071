"""
Type definitions and dataclasses for the PDFium adapter.

This module defines the value types produced by pages and documents:
pixel and normalized rectangles, character entities, link targets,
rendered images, viewports and the bookmark synopsis tree.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union


def _qround(value: float) -> int:
    """Round half away from zero, like the pixel snapping of raster engines."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


class Rotation(enum.IntEnum):
    """Page orientation as reported by the backend (quarter turns clockwise)."""

    ROTATE_0 = 0
    ROTATE_90 = 1
    ROTATE_180 = 2
    ROTATE_270 = 3

    @property
    def degrees(self) -> int:
        return int(self) * 90

    @classmethod
    def from_backend(cls, value: int) -> "Rotation":
        try:
            return cls(value)
        except ValueError:
            return cls.ROTATE_0


class PageMode(enum.IntEnum):
    """Document page mode (``/PageMode`` in the catalog)."""

    UNKNOWN = -1
    USE_NONE = 0
    USE_OUTLINES = 1
    USE_THUMBS = 2
    FULL_SCREEN = 3
    USE_OC = 4
    USE_ATTACHMENTS = 5

    @classmethod
    def from_backend(cls, value: int) -> "PageMode":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class OpenResult(enum.Enum):
    """Outcome of loading a document through the session."""

    SUCCESS = "success"
    NEEDS_PASSWORD = "needs-password"
    ERROR = "error"


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle in device pixels (origin top-left, Y down).

    ``right`` and ``bottom`` are exclusive, so ``width == right - left``.
    """

    left: float = 0.0
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0

    @classmethod
    def from_size(cls, left: float, top: float, width: float, height: float) -> "Rect":
        return cls(left, top, left + width, top + height)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def normalized(self) -> "Rect":
        left, right = sorted((self.left, self.right))
        top, bottom = sorted((self.top, self.bottom))
        return Rect(left, top, right, bottom)

    def intersects(self, other: "Rect") -> bool:
        if self.is_empty or other.is_empty:
            return False
        return (
            self.left < other.right
            and other.left < self.right
            and self.top < other.bottom
            and other.top < self.bottom
        )

    def with_right(self, right: float) -> "Rect":
        return replace(self, right=right)

    def rounded(self) -> "Rect":
        """Snap origin and size to whole pixels."""
        left = _qround(self.left)
        top = _qround(self.top)
        return Rect(left, top, left + _qround(self.width), top + _qround(self.height))


@dataclass(frozen=True)
class NormalizedPoint:
    """A point relative to a page's size, both coordinates in ``[0, 1]``."""

    x: float
    y: float


@dataclass(frozen=True)
class NormalizedRect:
    """A rectangle relative to a page's size, top-left origin."""

    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_rect(cls, rect: Rect, width: float, height: float) -> "NormalizedRect":
        if width <= 0 or height <= 0:
            return cls(0.0, 0.0, 0.0, 0.0)
        return cls(
            rect.left / width,
            rect.top / height,
            rect.right / width,
            rect.bottom / height,
        )

    def clamped(self) -> "NormalizedRect":
        def clamp(value: float) -> float:
            return min(1.0, max(0.0, value))

        return NormalizedRect(
            clamp(self.left), clamp(self.top), clamp(self.right), clamp(self.bottom)
        )

    def geometry(self, width: int, height: int) -> Rect:
        """Scale back to a pixel rectangle for an output of ``width`` x ``height``."""
        return Rect(
            _qround(self.left * width),
            _qround(self.top * height),
            _qround(self.right * width),
            _qround(self.bottom * height),
        )


@dataclass
class CharEntity:
    """
    One character of a page's text layer.

    Attributes:
        text: The character itself
        area: Bounding box in device pixels (empty when it could not be derived)
    """

    text: str
    area: Rect = field(default_factory=Rect)


@dataclass(frozen=True)
class InternalTarget:
    """Navigation to a page of the same document."""

    destination_page: int
    position: Optional[NormalizedPoint] = None


@dataclass(frozen=True)
class ExternalTarget:
    """Navigation to an external URI."""

    uri: str


LinkTarget = Union[InternalTarget, ExternalTarget]


@dataclass(frozen=True)
class PageLink:
    """
    A clickable region of a page.

    Attributes:
        area: Clickable rectangle relative to the page size
        target: Where activating the link navigates to
    """

    area: NormalizedRect
    target: LinkTarget


@dataclass(frozen=True)
class PageGeometry:
    """
    Size, orientation and display label of a page.

    Attributes:
        width: Page width in points
        height: Page height in points
        rotation: Page rotation
        label: Display label (empty when the document defines none)
    """

    width: float
    height: float
    rotation: Rotation = Rotation.ROTATE_0
    label: str = ""


@dataclass(frozen=True)
class RenderedImage:
    """
    A rendered pixel buffer, four bytes per pixel.

    Attributes:
        width: Width in pixels
        height: Height in pixels
        stride: Bytes per scan line
        pixel_format: Byte order of each pixel, ``"RGBA"`` or ``"BGRA"``
        buffer: Raw pixel data, ``stride * height`` bytes
    """

    width: int
    height: int
    stride: int
    pixel_format: str
    buffer: bytes

    @classmethod
    def empty(cls, pixel_format: str = "RGBA") -> "RenderedImage":
        return cls(width=0, height=0, stride=0, pixel_format=pixel_format, buffer=b"")

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0 or not self.buffer

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def to_pil(self):
        """Return a Pillow ``RGBA`` image sharing this buffer's pixels."""
        from PIL import Image

        if self.is_empty:
            raise ValueError("Cannot convert an empty image")
        return Image.frombuffer(
            "RGBA",
            (self.width, self.height),
            self.buffer,
            "raw",
            self.pixel_format,
            self.stride,
            1,
        )


@dataclass(frozen=True)
class Viewport:
    """
    A navigation target inside the document.

    Attributes:
        page_number: Zero-based page index
        position: Optional top-left anchored scroll position
        open: Whether the owning outline entry is expanded by default
    """

    page_number: int
    position: Optional[NormalizedPoint] = None
    open: bool = False

    def to_string(self) -> str:
        if self.position is None:
            return str(self.page_number)
        return "{page};C2:{x}:{y}:2".format(
            page=self.page_number,
            x=repr(float(self.position.x)),
            y=repr(float(self.position.y)),
        )


@dataclass(frozen=True)
class SynopsisNode:
    """A node of the document outline (table of contents)."""

    title: str
    viewport: Optional[Viewport] = None
    children: Tuple["SynopsisNode", ...] = ()

    def walk(self, depth: int = 0):
        """Yield ``(depth, node)`` pairs in document order."""
        yield depth, self
        for child in self.children:
            yield from child.walk(depth + 1)


@dataclass
class PageDescriptor:
    """
    Host-side view of a page, sized for the configured DPI.

    Attributes:
        number: Zero-based page index
        width: Width in device units
        height: Height in device units
        rotation: Orientation last reported by the backend
        label: Display label
        links: Clickable regions, attached after the first text request
    """

    number: int
    width: float
    height: float
    rotation: Rotation = Rotation.ROTATE_0
    label: str = ""
    links: List[PageLink] = field(default_factory=list)
