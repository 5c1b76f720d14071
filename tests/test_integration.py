"""End-to-end checks against PDFium on PDFs written with pypdf."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from pdfium_adapter import Document, PDFiumGenerator
from pdfium_adapter.exceptions import InvalidPDFError
from pdfium_adapter.types import ExternalTarget, InternalTarget, OpenResult


def test_blank_pages(sample_pdf: Path) -> None:
    with Document.load(sample_pdf) as document:
        assert document.page_count() == 3
        assert document.meta_text("Title") == "Sample"

        page = document.page(0)
        assert page.size() == pytest.approx((612, 792))
        assert page.characters() == []
        assert page.links() == []
        assert page.has_links() is False


def test_render_blank_page_is_white(sample_pdf: Path) -> None:
    with Document.load(sample_pdf) as document:
        image = document.page(0).image(61, 79)

    assert image.size == (61, 79)
    assert image.stride == 61 * 4
    assert len(image.buffer) == image.stride * image.height
    assert set(image.buffer) == {0xFF}


def test_render_region_of_blank_page(sample_pdf: Path) -> None:
    with Document.load(sample_pdf) as document:
        image = document.page(1).render_region(144, 144, 100, 100, 50, 40)

    assert image.size == (50, 40)
    assert set(image.buffer) == {0xFF}


def test_text_reconstruction(text_pdf: Path) -> None:
    with Document.load(text_pdf) as document:
        page = document.page(0)
        characters = page.characters()

        assert len(characters) == page.char_count() == 5
        assert "".join(char.text for char in characters) == "Hello"
        assert page.rect_count() >= 1

        for char in characters:
            assert char.area.width > 0
            assert char.area.height > 0
        for previous, current in zip(characters, characters[1:]):
            if previous.area.top == current.area.top:
                assert previous.area.right <= current.area.left

        # Baseline y=100 on a 200pt high page is pixel row 100
        assert all(char.area.bottom <= 120 for char in characters)


def test_links(linked_pdf: Path) -> None:
    with Document.load(linked_pdf) as document:
        page = document.page(0)
        assert page.has_links() is True

        links = page.links()
        assert len(links) == 2

        internal = [link for link in links if isinstance(link.target, InternalTarget)]
        external = [link for link in links if isinstance(link.target, ExternalTarget)]
        assert [link.target.destination_page for link in internal] == [2]
        assert [link.target.uri for link in external] == ["https://example.com/"]

        area = internal[0].area
        assert area.left == pytest.approx(72 / 612, abs=0.01)
        assert area.right == pytest.approx(144 / 612, abs=0.01)
        assert area.top == pytest.approx((792 - 720) / 792, abs=0.01)
        assert area.bottom == pytest.approx((792 - 700) / 792, abs=0.01)


def test_outline(outlined_pdf: Path) -> None:
    with Document.load(outlined_pdf) as document:
        synopsis = document.synopsis()

    assert [node.title for node in synopsis] == ["Chapter 1", "Chapter 2"]
    chapter = synopsis[0]
    assert chapter.viewport.page_number == 0
    assert chapter.viewport.open is True
    assert [child.title for child in chapter.children] == ["Section 1.1"]
    assert chapter.children[0].viewport.page_number == 1
    assert chapter.children[0].viewport.open is False
    assert synopsis[1].viewport.page_number == 2


def test_encrypted_document(encrypted_pdf: Path) -> None:
    document = Document.load(encrypted_pdf)
    try:
        assert document.is_locked()
        assert document.unlock("wrong") is False
        assert document.is_locked()

        assert document.unlock("secret") is True
        assert document.page_count() == 1
        assert "".join(char.text for char in document.page(0).characters()) == "Secret"
    finally:
        document.close()


def test_invalid_file(tmp_path: Path) -> None:
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"this is not a pdf")

    with pytest.raises(InvalidPDFError):
        Document.load(broken)
    with pytest.raises(InvalidPDFError):
        Document.load(tmp_path / "missing.pdf")


def test_session_round_trip(pdf_factory: Callable[..., Path], encrypted_pdf: Path) -> None:
    path = pdf_factory("session.pdf", text="Hi")

    with PDFiumGenerator() as session:
        assert session.load_document(path) is OpenResult.SUCCESS
        assert session.export_text(0) == "Hi"
        entries = session.text_page(0)
        assert [text for text, _ in entries] == ["H", "i"]
        for _, area in entries:
            assert 0.0 <= area.left < area.right <= 1.0
        assert not session.image(0, 100, 100).is_empty
        session.close_document()

        assert session.load_document(encrypted_pdf) is OpenResult.NEEDS_PASSWORD
        assert session.load_document(encrypted_pdf, "secret") is OpenResult.SUCCESS
