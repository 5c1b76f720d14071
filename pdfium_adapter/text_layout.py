"""Text-layer reconstruction.

Turns the engine's per-glyph geometry into a list of :class:`CharEntity`
objects, one per character offset of the text layer, with pixel boxes that
span the full line height and touch their neighbours without overlapping.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .backends.base import BackendPage, BackendTextPage
from .geometry import glyph_rect_to_device, page_rect_to_device
from .types import CharEntity, Rect

LOGGER = logging.getLogger("pdfium_adapter.text_layout")

LINE_BREAKS = frozenset((0x0D, 0x0A))
REPLACEMENT_CHARACTER = "\ufffd"


def _to_text(code_point: int) -> str:
    try:
        return chr(code_point)
    except (ValueError, OverflowError):
        return REPLACEMENT_CHARACTER


class _LineCursor:
    """Walks the text layer's line rectangles in order, one step at a time."""

    def __init__(self, page: BackendPage, text_page: BackendTextPage, count: int) -> None:
        self._page = page
        self._text_page = text_page
        self._count = count
        self._next = 0
        self.current = Rect()

    def follow(self, glyph: Rect) -> Rect:
        if (self.current.is_empty or not self.current.intersects(glyph)) and self._next < self._count:
            bounds = self._text_page.rect(self._next)
            self._next += 1
            self.current = page_rect_to_device(self._page, bounds) if bounds else Rect()
        return self.current


def _escape_rect(previous: Rect, glyph: Rect, code_point: int) -> Rect:
    """Box for a zero-size character, placed at the previous character's right edge."""
    if previous.is_empty:
        return Rect()
    left = previous.right - 1
    width = 1 if code_point in LINE_BREAKS else glyph.rounded().width
    return Rect(left, previous.top, left + width, previous.bottom)


def _glyph_rect(page: BackendPage, text_page: BackendTextPage, index: int) -> Rect:
    char_box = text_page.char_box(index)
    if char_box is None:
        return Rect()
    return glyph_rect_to_device(page, char_box, text_page.loose_char_box(index))


def build_char_entities(
    page: BackendPage,
    text_page: BackendTextPage,
    *,
    tolerance: float = 1e-5,
    char_count: Optional[int] = None,
    rect_count: Optional[int] = None,
) -> List[CharEntity]:
    """Build the character entities of one page.

    Args:
        page: Loaded page the text layer belongs to
        text_page: The page's text layer
        tolerance: Glyph boxes this thin are treated as control characters
        char_count: Character count, if the caller already queried it
        rect_count: Line rectangle count, if the caller already queried it

    Returns:
        One entity per character, in text-layer order. Zero-size characters
        take their box from the previous character (from the third character
        on); earlier ones keep an empty box.
    """
    if char_count is None:
        char_count = text_page.count_chars()
    if rect_count is None:
        rect_count = text_page.count_rects(0, char_count)

    lines = _LineCursor(page, text_page, rect_count)
    entities: List[CharEntity] = []

    for index in range(char_count):
        code_point = text_page.unicode(index)
        entity = CharEntity(text=_to_text(code_point))
        entities.append(entity)

        glyph = _glyph_rect(page, text_page, index)
        if glyph.width <= tolerance or glyph.height <= tolerance:
            # The first two characters are never synthesized.
            if index - 1 > 0:
                entity.area = _escape_rect(entities[index - 1].area, glyph, code_point)
            continue

        line = lines.follow(glyph)
        if line.is_empty:
            top, bottom = glyph.top, glyph.bottom
        else:
            top = min(line.top, glyph.top)
            bottom = max(line.bottom, glyph.bottom)
        entity.area = Rect(glyph.left, top, glyph.right, bottom).rounded()

        if index > 0:
            previous = entities[index - 1]
            if previous.area.top == entity.area.top:
                previous.area = previous.area.with_right(entity.area.left)

    LOGGER.debug("Reconstructed %d characters from %d line rectangles", len(entities), rect_count)
    return entities


def page_text(entities: List[CharEntity]) -> str:
    """Plain text of a page, in text-layer order."""
    return "".join(entity.text for entity in entities)
