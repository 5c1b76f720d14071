from __future__ import annotations

import logging

import pytest

from fakes import FakeDest, FakeDocument, FakePage
from pdfium_adapter.backends.base import LinkAnnotation
from pdfium_adapter.links import (
    build_link,
    destination_position,
    extract_links,
    resolve_destination,
)
from pdfium_adapter.types import ExternalTarget, InternalTarget, NormalizedRect


def _document(*sizes, links=None) -> FakeDocument:
    pages = [FakePage(width, height) for width, height in sizes]
    pages[0].links = links or []
    return FakeDocument(pages)


def test_destination_position_uses_target_page_size() -> None:
    document = _document((612, 792), (612, 792), (612, 792), (612, 792))
    position = destination_position(document, FakeDest(3, (100.0, 200.0)), 3)

    assert position is not None
    assert position.x == pytest.approx(100 / 612)
    assert position.y == pytest.approx((792 - 200) / 792)


def test_destination_position_differs_from_source_page_size() -> None:
    document = _document((612, 792), (300, 400))
    position = destination_position(document, FakeDest(1, (100.0, 200.0)), 1)

    assert position.x == pytest.approx(100 / 300)
    assert position.y == pytest.approx(0.5)


def test_destination_without_location_has_no_position() -> None:
    document = _document((612, 792))
    assert destination_position(document, FakeDest(0), 0) is None


def test_resolve_destination() -> None:
    document = _document((612, 792), (612, 792))

    viewport = resolve_destination(document, FakeDest(1, (0.0, 792.0)), open=True)
    assert viewport is not None
    assert viewport.page_number == 1
    assert viewport.open is True
    assert (viewport.position.x, viewport.position.y) == (0.0, 0.0)

    assert resolve_destination(document, None) is None
    assert resolve_destination(document, FakeDest(-1)) is None


def test_internal_link_geometry_and_target() -> None:
    annotation = LinkAnnotation(dest=FakeDest(3, (100.0, 200.0)), rect=(72.0, 720.0, 144.0, 700.0))
    document = _document((612, 792), (612, 792), (612, 792), (612, 792), links=[annotation])
    page = document.pages[0]

    links = extract_links(document, page, (612, 792))

    assert len(links) == 1
    link = links[0]
    assert link.area == NormalizedRect(72 / 612, 72 / 792, 144 / 612, 92 / 792)
    assert isinstance(link.target, InternalTarget)
    assert link.target.destination_page == 3
    assert link.target.position.x == pytest.approx(100 / 612)
    assert link.target.position.y == pytest.approx(592 / 792)


def test_external_link() -> None:
    annotation = LinkAnnotation(uri="https://example.com/", rect=(0.0, 792.0, 612.0, 0.0))
    document = _document((612, 792), links=[annotation])

    [link] = extract_links(document, document.pages[0], (612, 792))

    assert link.target == ExternalTarget("https://example.com/")
    assert link.area == NormalizedRect(0.0, 0.0, 1.0, 1.0)


def test_link_area_is_clamped() -> None:
    annotation = LinkAnnotation(uri="https://example.com/", rect=(-50.0, 900.0, 700.0, -10.0))
    document = _document((612, 792), links=[annotation])

    [link] = extract_links(document, document.pages[0], (612, 792))
    assert link.area == NormalizedRect(0.0, 0.0, 1.0, 1.0)


@pytest.mark.parametrize(
    "annotation",
    [
        LinkAnnotation(dest=FakeDest(1), uri="https://example.com/", rect=None),
        LinkAnnotation(rect=(1.0, 2.0, 3.0, 4.0)),
        LinkAnnotation(dest=FakeDest(9), rect=(1.0, 2.0, 3.0, 4.0)),
        LinkAnnotation(dest=FakeDest(-1), uri="", rect=(1.0, 2.0, 3.0, 4.0)),
    ],
)
def test_unusable_annotations_are_dropped(annotation: LinkAnnotation) -> None:
    document = _document((612, 792), (612, 792), links=[annotation])
    page = document.pages[0]
    assert build_link(document, page, annotation, (612, 792), 2) is None
    assert extract_links(document, page, (612, 792)) == []


def test_out_of_range_destination_falls_back_to_uri() -> None:
    annotation = LinkAnnotation(dest=FakeDest(9), uri="https://example.com/", rect=(1.0, 2.0, 3.0, 4.0))
    document = _document((612, 792), links=[annotation])

    [link] = extract_links(document, document.pages[0], (612, 792))
    assert link.target == ExternalTarget("https://example.com/")


def test_every_link_has_a_usable_target() -> None:
    annotations = [
        LinkAnnotation(dest=FakeDest(1, (10.0, 10.0)), rect=(0.0, 10.0, 10.0, 0.0)),
        LinkAnnotation(rect=(0.0, 10.0, 10.0, 0.0)),
        LinkAnnotation(uri="mailto:someone@example.com", rect=(0.0, 10.0, 10.0, 0.0)),
        LinkAnnotation(dest=FakeDest(5), rect=(0.0, 10.0, 10.0, 0.0)),
    ]
    document = _document((612, 792), (612, 792), links=annotations)

    links = extract_links(document, document.pages[0], (612, 792))

    assert len(links) == 2
    for link in links:
        if isinstance(link.target, InternalTarget):
            assert 0 <= link.target.destination_page < document.page_count()
        else:
            assert link.target.uri


def test_skipped_annotations_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    document = _document((612, 792), links=[LinkAnnotation(rect=(0.0, 10.0, 10.0, 0.0))])

    with caplog.at_level(logging.DEBUG, logger="pdfium_adapter.links"):
        extract_links(document, document.pages[0], (612, 792))

    assert "Skipping link annotation 0" in caplog.text
