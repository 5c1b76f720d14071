"""
Command-line interface for the PDFium adapter.
"""

import logging
import os
import sys

import click
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from pdfium_adapter import __version__
from pdfium_adapter.config import AdapterConfig
from pdfium_adapter.generator import PDFiumGenerator
from pdfium_adapter.types import ExternalTarget, OpenResult
from pdfium_adapter.utils import configure_logging, to_path

console = Console()

password_option = click.option(
    '--password', '-P',
    default=None,
    help='Password for encrypted PDFs',
    type=str
)


def _open(input_pdf, password):
    """Open ``input_pdf`` in a new session or exit with an error."""
    try:
        generator = PDFiumGenerator(config=AdapterConfig.from_env())
    except ValueError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)

    result = generator.load_document(input_pdf, password)
    if result is OpenResult.SUCCESS:
        return generator

    generator.close()
    if result is OpenResult.NEEDS_PASSWORD:
        console.print("[bold red]✗ Error:[/bold red] PDF is encrypted. Use --password to open it.")
    else:
        console.print(f"[bold red]✗ Error:[/bold red] Unable to open {input_pdf}")
    sys.exit(1)


def _page_numbers(generator, page):
    """Zero-based indices selected by a 1-based ``--page`` option (all pages when unset)."""
    count = len(generator.pages)
    if page is None:
        return list(range(count))
    if page < 1 or page > count:
        console.print(f"[bold red]✗ Error:[/bold red] Page {page} out of range (1-{count})")
        generator.close()
        sys.exit(1)
    return [page - 1]


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """
    PDFium adapter CLI - Inspect, extract and render PDF pages with PDFium.
    """
    configure_logging(logging.DEBUG if verbose else logging.WARNING)


@cli.command(name="info")
@click.argument('input_pdf', type=click.Path(exists=True))
@password_option
def show_info(input_pdf, password):
    """
    Display document information and page sizes.

    Example:

        pdfium-adapter info input.pdf
    """
    generator = _open(input_pdf, password)
    with generator:
        info = generator.document_info()

        info_table = Table(title="PDF Information", show_header=False)
        info_table.add_column("Property", style="cyan")
        info_table.add_column("Value", style="green")
        info_table.add_row("File", os.path.basename(input_pdf))
        for key, value in info.items():
            if value:
                info_table.add_row(key, value)
        info_table.add_row("Page mode", generator.document.page_mode().name)
        console.print(info_table)

        pages_table = Table(title="Pages")
        pages_table.add_column("Page", style="cyan", justify="right")
        pages_table.add_column("Label")
        pages_table.add_column("Size", style="green")
        pages_table.add_column("Rotation", justify="right")
        for descriptor in generator.pages:
            pages_table.add_row(
                str(descriptor.number + 1),
                descriptor.label,
                f"{descriptor.width:.1f} x {descriptor.height:.1f}",
                str(descriptor.rotation.degrees),
            )
        console.print(pages_table)


@cli.command(name="text")
@click.argument('input_pdf', type=click.Path(exists=True))
@click.option('--page', '-p', default=None, type=int, help='1-based page to extract (default: all)')
@password_option
def extract_text(input_pdf, page, password):
    """
    Print the text layer of one or all pages.

    Example:

        pdfium-adapter text input.pdf --page 2
    """
    generator = _open(input_pdf, password)
    with generator:
        for number in _page_numbers(generator, page):
            click.echo(generator.export_text(number))


@cli.command(name="links")
@click.argument('input_pdf', type=click.Path(exists=True))
@click.option('--page', '-p', default=None, type=int, help='1-based page to inspect (default: all)')
@password_option
def show_links(input_pdf, page, password):
    """
    List the links of one or all pages.

    Example:

        pdfium-adapter links input.pdf
    """
    generator = _open(input_pdf, password)
    with generator:
        table = Table(title="Links")
        table.add_column("Page", style="cyan", justify="right")
        table.add_column("Area")
        table.add_column("Target", style="green")

        for number in _page_numbers(generator, page):
            for link in generator.document.page(number).links():
                area = link.area
                if isinstance(link.target, ExternalTarget):
                    target = link.target.uri
                else:
                    target = f"page {link.target.destination_page + 1}"
                    if link.target.position is not None:
                        target += f" @ ({link.target.position.x:.3f}, {link.target.position.y:.3f})"
                table.add_row(
                    str(number + 1),
                    f"{area.left:.3f}, {area.top:.3f}, {area.right:.3f}, {area.bottom:.3f}",
                    target,
                )
        console.print(table)


def _add_outline(tree, nodes):
    for node in nodes:
        label = node.title or "(untitled)"
        if node.viewport is not None:
            label += f" [dim]-> page {node.viewport.page_number + 1}[/dim]"
        _add_outline(tree.add(label), node.children)


@cli.command(name="outline")
@click.argument('input_pdf', type=click.Path(exists=True))
@password_option
def show_outline(input_pdf, password):
    """
    Display the document outline (bookmarks).

    Example:

        pdfium-adapter outline input.pdf
    """
    generator = _open(input_pdf, password)
    with generator:
        nodes = generator.synopsis()
        if not nodes:
            console.print("[yellow]No outline[/yellow]")
            return
        tree = Tree(f"[bold]{os.path.basename(input_pdf)}[/bold]")
        _add_outline(tree, nodes)
        console.print(tree)


@cli.command(name="render")
@click.argument('input_pdf', type=click.Path(exists=True))
@click.option('--page', '-p', default=1, type=int, help='1-based page to render')
@click.option('--scale', '-s', default=1.0, type=float, help='Pixels per point')
@click.option(
    '--output', '-o',
    default=None,
    help='Output image path (default: <input>-<page>.png next to the input)',
    type=click.Path()
)
@password_option
def render_page(input_pdf, page, scale, output, password):
    """
    Render a page to an image file.

    Example:

        pdfium-adapter render input.pdf --page 1 --scale 2 -o page1.png
    """
    generator = _open(input_pdf, password)
    with generator:
        number = _page_numbers(generator, page)[0]
        width, height = generator.document.page(number).size()
        image = generator.image(number, round(width * scale), round(height * scale))
        if image.is_empty:
            console.print(f"[bold red]✗ Error:[/bold red] Unable to render page {page}")
            sys.exit(1)

        if output is None:
            source = to_path(input_pdf)
            output = source.with_name(f"{source.stem}-{page}.png")
        else:
            output = to_path(output)
        image.to_pil().save(output)
        console.print(f"[bold green]✓ Rendered page {page}[/bold green] ({image.width}x{image.height}) to {output}")


if __name__ == "__main__":
    cli()
