from __future__ import annotations

from pathlib import Path
from typing import Callable

from click.testing import CliRunner
from PIL import Image

from pdfium_adapter.cli import cli


def test_info_command(sample_pdf: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["info", str(sample_pdf)])

    assert result.exit_code == 0, result.output
    assert "PDF Information" in result.output
    assert "Sample" in result.output
    assert "612.0 x 792.0" in result.output


def test_text_command(pdf_factory: Callable[..., Path]) -> None:
    path = pdf_factory("hello.pdf", text="Hello")
    runner = CliRunner()
    result = runner.invoke(cli, ["text", str(path), "--page", "1"])

    assert result.exit_code == 0, result.output
    assert "Hello" in result.output


def test_text_command_rejects_bad_page(sample_pdf: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["text", str(sample_pdf), "--page", "9"])

    assert result.exit_code == 1
    assert "out of range" in result.output


def test_links_command(linked_pdf: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["links", str(linked_pdf)])

    assert result.exit_code == 0, result.output
    assert "https://example.com/" in result.output
    assert "page 3" in result.output


def test_outline_command(outlined_pdf: Path, sample_pdf: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["outline", str(outlined_pdf)])
    assert result.exit_code == 0, result.output
    assert "Chapter 1" in result.output
    assert "Section 1.1" in result.output

    result = runner.invoke(cli, ["outline", str(sample_pdf)])
    assert result.exit_code == 0
    assert "No outline" in result.output


def test_render_command(sample_pdf: Path, tmp_path: Path) -> None:
    output = tmp_path / "page.png"
    runner = CliRunner()
    result = runner.invoke(cli, ["render", str(sample_pdf), "--scale", "0.5", "-o", str(output)])

    assert result.exit_code == 0, result.output
    with Image.open(output) as image:
        assert image.size == (306, 396)


def test_render_default_output_sits_next_to_input(sample_pdf: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["render", str(sample_pdf), "--page", "2", "--scale", "0.1"])

    assert result.exit_code == 0, result.output
    assert (sample_pdf.parent / "sample-2.png").exists()


def test_encrypted_requires_password(encrypted_pdf: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["text", str(encrypted_pdf)])
    assert result.exit_code == 1
    assert "encrypted" in result.output

    result = runner.invoke(cli, ["text", str(encrypted_pdf), "--password", "secret"])
    assert result.exit_code == 0, result.output
    assert "Secret" in result.output


def test_invalid_pdf(tmp_path: Path) -> None:
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"not a pdf")
    runner = CliRunner()
    result = runner.invoke(cli, ["info", str(broken)])

    assert result.exit_code == 1
    assert "Unable to open" in result.output
