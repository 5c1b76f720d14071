"""Link and destination extraction."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from .backends.base import BackendDocument, BackendPage, LinkAnnotation
from .geometry import normalize_rect, page_rect_to_device, top_left_position
from .types import (
    ExternalTarget,
    InternalTarget,
    LinkTarget,
    NormalizedPoint,
    PageLink,
    Viewport,
)

LOGGER = logging.getLogger("pdfium_adapter.links")


def destination_position(
    document: BackendDocument, dest: Any, page_number: int
) -> Optional[NormalizedPoint]:
    """Scroll position of ``dest``, relative to the size of its *target* page."""
    location = document.dest_location(dest)
    if location is None:
        return None
    size = document.page_size(page_number)
    if size is None:
        return None
    x, y = location
    return top_left_position(x, y, *size)


def resolve_destination(document: BackendDocument, dest: Any, *, open: bool = False) -> Optional[Viewport]:
    """Viewport for a destination handle, or ``None`` when it names no page."""
    if dest is None:
        return None
    page_number = document.dest_page_index(dest)
    if page_number < 0:
        return None
    return Viewport(
        page_number=page_number,
        position=destination_position(document, dest, page_number),
        open=open,
    )


def _resolve_target(
    document: BackendDocument, annotation: LinkAnnotation, page_count: int
) -> Optional[LinkTarget]:
    target_page = -1
    if annotation.dest is not None:
        target_page = document.dest_page_index(annotation.dest)
        if not 0 <= target_page < page_count:
            target_page = -1

    if target_page >= 0:
        return InternalTarget(
            destination_page=target_page,
            position=destination_position(document, annotation.dest, target_page),
        )
    if annotation.uri:
        return ExternalTarget(uri=annotation.uri)
    return None


def build_link(
    document: BackendDocument,
    page: BackendPage,
    annotation: LinkAnnotation,
    page_size: Tuple[float, float],
    page_count: int,
) -> Optional[PageLink]:
    """Turn one annotation into a :class:`PageLink`, or ``None`` if it must be dropped."""
    if annotation.rect is None:
        return None

    target = _resolve_target(document, annotation, page_count)
    if target is None:
        return None

    size = (int(page_size[0]), int(page_size[1]))
    device = page_rect_to_device(page, annotation.rect, size=size)
    return PageLink(area=normalize_rect(device, size[0], size[1]), target=target)


def extract_links(
    document: BackendDocument,
    page: BackendPage,
    page_size: Tuple[float, float],
) -> List[PageLink]:
    """All usable links of ``page``, in the engine's enumeration order."""
    page_count = document.page_count()
    links: List[PageLink] = []
    for position, annotation in enumerate(page.iter_links()):
        link = build_link(document, page, annotation, page_size, page_count)
        if link is None:
            LOGGER.debug("Skipping link annotation %d: no rectangle or no target", position)
            continue
        links.append(link)
    return links
