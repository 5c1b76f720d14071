from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator, Optional
import sys

import pytest
from pypdf import PdfWriter
from pypdf.annotations import Link
from pypdf.generic import DictionaryObject, NameObject, NumberObject, StreamObject

PROJECT_ROOT = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent
for entry in (PROJECT_ROOT, TESTS_DIR):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

from fakes import FakeBackend, FakeDest, FakeDocument, FakePage  # noqa: E402
from pdfium_adapter import Document  # noqa: E402
from pdfium_adapter.backends.base import LinkAnnotation  # noqa: E402


# ----------------------------------------------------------------------
# Fake backend fixtures
# ----------------------------------------------------------------------
@pytest.fixture()
def fake_document() -> FakeDocument:
    pages = [FakePage(612, 792) for _ in range(4)]
    pages[0].links = [
        LinkAnnotation(dest=FakeDest(3, (100.0, 200.0)), rect=(72.0, 720.0, 144.0, 700.0)),
        LinkAnnotation(uri="https://example.com/", rect=(72.0, 100.0, 300.0, 80.0)),
    ]
    return FakeDocument(
        pages,
        labels={0: "i", 1: "ii", 2: "1", 3: "2"},
        meta={"Title": "Fake Title", "Author": "Fake Author", "CreationDate": "D:20200102030405+01'00'"},
    )


@pytest.fixture()
def fake_backend(fake_document: FakeDocument) -> FakeBackend:
    return FakeBackend({"doc.pdf": fake_document})


@pytest.fixture()
def open_document(fake_backend: FakeBackend) -> Iterator[Document]:
    document = Document.load("doc.pdf", backend=fake_backend)
    yield document
    document.close()


# ----------------------------------------------------------------------
# Real PDF fixtures
# ----------------------------------------------------------------------
def _write(writer: PdfWriter, path: Path) -> Path:
    with path.open("wb") as stream:
        writer.write(stream)
    return path


def _add_text(writer: PdfWriter, page, text: str, x: int = 72, y: int = 100) -> None:
    font_dict = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type1"),
            NameObject("/BaseFont"): NameObject("/Helvetica"),
        }
    )
    font_ref = writer._add_object(font_dict)
    resources = DictionaryObject({NameObject("/Font"): DictionaryObject({NameObject("/F1"): font_ref})})
    page[NameObject("/Resources")] = resources

    content_bytes = f"BT /F1 24 Tf {x} {y} Td ({text}) Tj ET".encode("latin-1")
    stream = StreamObject()
    stream[NameObject("/Length")] = NumberObject(len(content_bytes))
    stream._data = content_bytes
    page[NameObject("/Contents")] = writer._add_object(stream)


@pytest.fixture()
def sample_pdf(tmp_path: Path) -> Path:
    writer = PdfWriter()
    for _ in range(3):
        writer.add_blank_page(width=612, height=792)
    writer.add_metadata({"/Producer": "pdfium-adapter-tests", "/Title": "Sample"})
    return _write(writer, tmp_path / "sample.pdf")


@pytest.fixture()
def text_pdf(tmp_path: Path) -> Path:
    writer = PdfWriter()
    page = writer.add_blank_page(width=300, height=200)
    _add_text(writer, page, "Hello")
    return _write(writer, tmp_path / "text.pdf")


@pytest.fixture()
def linked_pdf(tmp_path: Path) -> Path:
    writer = PdfWriter()
    for _ in range(3):
        writer.add_blank_page(width=612, height=792)
    writer.add_annotation(page_number=0, annotation=Link(rect=(72, 700, 144, 720), target_page_index=2))
    writer.add_annotation(
        page_number=0,
        annotation=Link(rect=(72, 80, 300, 100), url="https://example.com/"),
    )
    return _write(writer, tmp_path / "linked.pdf")


@pytest.fixture()
def outlined_pdf(tmp_path: Path) -> Path:
    writer = PdfWriter()
    for _ in range(3):
        writer.add_blank_page(width=612, height=792)
    chapter = writer.add_outline_item("Chapter 1", 0)
    writer.add_outline_item("Section 1.1", 1, parent=chapter)
    writer.add_outline_item("Chapter 2", 2)
    return _write(writer, tmp_path / "outlined.pdf")


@pytest.fixture()
def pdf_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(filename: str, text: Optional[str] = None, password: Optional[str] = None) -> Path:
        writer = PdfWriter()
        page = writer.add_blank_page(width=200, height=200)
        if text is not None:
            _add_text(writer, page, text, y=100)
        if password:
            writer.encrypt(password)
        return _write(writer, tmp_path / filename)

    return _create


@pytest.fixture()
def encrypted_pdf(pdf_factory: Callable[..., Path]) -> Path:
    return pdf_factory("encrypted.pdf", text="Secret", password="secret")
