"""Coordinate conversions between page space and device space.

Page space is the engine's native space: points, origin bottom-left, Y up.
Device space is the rendered bitmap: pixels, origin top-left, Y down. The
transform itself belongs to the backend; these helpers wrap it so that
rectangles come out normalized and failures come out empty.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .backends.base import BackendPage, CharBox, PageRectF
from .types import NormalizedPoint, NormalizedRect, Rect

Size = Tuple[int, int]


def device_size(page: BackendPage) -> Size:
    """Output size used for text and link geometry: one pixel per point."""
    return int(page.width), int(page.height)


def page_point_to_device(
    page: BackendPage,
    x: float,
    y: float,
    *,
    size: Optional[Size] = None,
    rotate: int = 0,
) -> Optional[Tuple[int, int]]:
    width, height = size or device_size(page)
    return page.page_to_device(0, 0, width, height, rotate, x, y)


def device_point_to_page(
    page: BackendPage,
    x: int,
    y: int,
    *,
    size: Optional[Size] = None,
    rotate: int = 0,
) -> Optional[Tuple[float, float]]:
    width, height = size or device_size(page)
    return page.device_to_page(0, 0, width, height, rotate, x, y)


def page_rect_to_device(
    page: BackendPage,
    rect: PageRectF,
    *,
    size: Optional[Size] = None,
    rotate: int = 0,
) -> Rect:
    """Transform both corners of ``(left, top, right, bottom)`` and normalize.

    A Y flip (and any rotation) can swap corner order, hence the normalization.
    Returns an empty :class:`Rect` when the backend refuses either corner.
    """
    left, top, right, bottom = rect
    first = page_point_to_device(page, left, top, size=size, rotate=rotate)
    if first is None:
        return Rect()
    second = page_point_to_device(page, right, bottom, size=size, rotate=rotate)
    if second is None:
        return Rect()
    return Rect(first[0], first[1], second[0], second[1]).normalized()


def device_rect_to_page(
    page: BackendPage,
    rect: Rect,
    *,
    size: Optional[Size] = None,
    rotate: int = 0,
) -> Optional[PageRectF]:
    """Inverse of :func:`page_rect_to_device`; ``top`` is the larger Y."""
    first = device_point_to_page(page, int(rect.left), int(rect.top), size=size, rotate=rotate)
    second = device_point_to_page(page, int(rect.right), int(rect.bottom), size=size, rotate=rotate)
    if first is None or second is None:
        return None
    left, right = sorted((first[0], second[0]))
    bottom, top = sorted((first[1], second[1]))
    return (left, top, right, bottom)


def glyph_rect_to_device(
    page: BackendPage,
    char_box: CharBox,
    loose_box: Optional[PageRectF],
) -> Rect:
    """Pixel box of one glyph, widened by its loose box so neighbours touch.

    ``char_box`` is the engine's ``(left, right, bottom, top)`` tight box and
    ``loose_box`` its ``(left, top, right, bottom)`` spacing box.
    """
    left, right = sorted(char_box[:2])
    bottom, top = sorted(char_box[2:])

    if loose_box is not None:
        loose_left, _loose_top, loose_right, _loose_bottom = loose_box
        right += abs(loose_right - loose_left)

    return page_rect_to_device(page, (left, top, right, bottom))


def normalize_rect(rect: Rect, width: float, height: float) -> NormalizedRect:
    return NormalizedRect.from_rect(rect, width, height).clamped()


def top_left_position(x: float, y: float, width: float, height: float) -> Optional[NormalizedPoint]:
    """Page-space point as a top-left anchored position relative to the page size."""
    if width <= 0 or height <= 0:
        return None
    return NormalizedPoint(x / width, (height - y) / height)


def normalize_point(x: float, y: float, width: float, height: float) -> Optional[NormalizedPoint]:
    """Device-space point relative to an output of ``width`` x ``height``."""
    if width <= 0 or height <= 0:
        return None
    return NormalizedPoint(x / width, y / height)
