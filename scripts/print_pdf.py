#!/usr/bin/env python3
"""
PDF Printing CLI

Produces PDFs with the printing context.

Commands:
    merge - Merge PDF files into one document (pdftk)
    url   - Render a web page to PDF (headless Chrome)
    html  - Render a local HTML file to PDF (headless Chrome)

Examples:\n

    print_pdf.py merge cover.pdf body.pdf -o book.pdf              # Merge in order

    print_pdf.py url https://example.com -o example.pdf            # Render a page

    print_pdf.py url https://example.com -o a.pdf -p paper_letter  # Apply a preset

    print_pdf.py html report.html -o report.pdf --wait-delay 1.5   # Wait for charts
"""

import dataclasses
import os
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from pressroom.contexts.printing import (
    ChromeOptions,
    MergeOptions,
    PrintError,
    Printer,
    apply_presets,
    new_html,
    new_merge,
    new_url,
)
from pressroom.contexts.printing.logger import setup_printing_logger
from pressroom.utils.pdf_processing import page_count
from pressroom.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))
DEFAULT_WAIT_TIMEOUT = float(os.getenv("PRINT_WAIT_TIMEOUT", "10"))
DEFAULT_WAIT_DELAY = float(os.getenv("PRINT_WAIT_DELAY", "0"))


app = typer.Typer(
    help="Merge PDFs and render web pages to PDF",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


OutputOption = Annotated[
    Path,
    typer.Option("--output", "-o", help="Destination PDF path"),
]
WaitTimeoutOption = Annotated[
    float,
    typer.Option("--wait-timeout", "-t", help="Seconds before the print is aborted", min=0.0),
]
WaitDelayOption = Annotated[
    float,
    typer.Option(
        "--wait-delay",
        "-d",
        help="Grace period (seconds) after page load for script-driven rendering",
        min=0.0,
    ),
]
PresetOption = Annotated[
    Optional[List[str]],
    typer.Option(
        "--preset",
        "-p",
        help="Paper preset(s) applied in order (e.g., paper_letter, margins_none)",
    ),
]
LandscapeOption = Annotated[
    bool,
    typer.Option("--landscape", "-l", help="Print in landscape orientation"),
]
HeaderOption = Annotated[
    Optional[Path],
    typer.Option("--header", help="HTML file used as the page header template", exists=True),
]
FooterOption = Annotated[
    Optional[Path],
    typer.Option("--footer", help="HTML file used as the page footer template", exists=True),
]


def build_chrome_options(
    wait_timeout: float,
    wait_delay: float,
    presets: Optional[List[str]],
    landscape: bool,
    header: Optional[Path],
    footer: Optional[Path],
) -> ChromeOptions:
    """Assemble ChromeOptions from CLI flags; flags win over presets."""
    options = ChromeOptions(wait_timeout=wait_timeout, wait_delay=wait_delay)
    if presets:
        options = apply_presets(options, presets)
    if landscape:
        options = apply_presets(options, ["orientation_landscape"])
    overrides = {}
    if header is not None:
        overrides["header_html"] = header.read_text(encoding="utf-8")
    if footer is not None:
        overrides["footer_html"] = footer.read_text(encoding="utf-8")
    if overrides:
        options = dataclasses.replace(options, **overrides)
    return options


def run_printer(printer: Printer, output: Path) -> None:
    """Run a printer with a session log and report the outcome."""
    log_dir = LOGS_PATH / f"print_{now()}"
    log_file = setup_printing_logger(log_dir)

    typer.echo("")
    try:
        printer.print(output)
    except PrintError as e:
        typer.secho(f"✗ Print failed ({e.op})", fg=typer.colors.RED, bold=True)
        for line in e.message.splitlines():
            typer.secho(f"  {line}", fg=typer.colors.RED)
        typer.echo(f"  Log: {log_file}")
        typer.echo("")
        raise typer.Exit(code=1)

    typer.secho("✓ Print succeeded", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  PDF: {output}")
    typer.echo(f"  Pages: {page_count(output)}")
    typer.echo(f"  Log: {log_file}")
    typer.echo("")
    raise typer.Exit(code=0)


@app.command("merge")
def merge_command(
    sources: Annotated[
        List[Path],
        typer.Argument(help="PDF files to merge, in page order", exists=True, dir_okay=False),
    ],
    output: OutputOption,
    wait_timeout: WaitTimeoutOption = DEFAULT_WAIT_TIMEOUT,
):
    """
    Merge PDF files into a single document.

    Examples:\n

        $ print_pdf.py merge a.pdf b.pdf c.pdf -o merged.pdf

        $ print_pdf.py merge a.pdf b.pdf -o merged.pdf --wait-timeout 30
    """
    typer.secho(f"\nMerging {len(sources)} file(s)", fg=typer.colors.BLUE, bold=True)
    run_printer(new_merge(sources, MergeOptions(wait_timeout=wait_timeout)), output)


@app.command("url")
def url_command(
    url: Annotated[str, typer.Argument(help="Page URL to render")],
    output: OutputOption,
    wait_timeout: WaitTimeoutOption = DEFAULT_WAIT_TIMEOUT,
    wait_delay: WaitDelayOption = DEFAULT_WAIT_DELAY,
    preset: PresetOption = None,
    landscape: LandscapeOption = False,
    header: HeaderOption = None,
    footer: FooterOption = None,
):
    """
    Render a web page to PDF with headless Chrome.

    Examples:\n

        $ print_pdf.py url https://example.com -o example.pdf

        $ print_pdf.py url https://example.com -o example.pdf -p paper_letter -p margins_none
    """
    try:
        options = build_chrome_options(wait_timeout, wait_delay, preset, landscape, header, footer)
    except ValueError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"\nRendering: {url}", fg=typer.colors.BLUE, bold=True)
    run_printer(new_url(url, options), output)


@app.command("html")
def html_command(
    html_file: Annotated[
        Path,
        typer.Argument(help="Local HTML file to render", exists=True, dir_okay=False),
    ],
    output: OutputOption,
    wait_timeout: WaitTimeoutOption = DEFAULT_WAIT_TIMEOUT,
    wait_delay: WaitDelayOption = DEFAULT_WAIT_DELAY,
    preset: PresetOption = None,
    landscape: LandscapeOption = False,
    header: HeaderOption = None,
    footer: FooterOption = None,
):
    """
    Render a local HTML file to PDF with headless Chrome.

    The browser loads the file through a file:// URL, so it must be readable by
    the Chrome process (same machine or shared volume).

    Examples:\n

        $ print_pdf.py html report.html -o report.pdf --wait-delay 1.5
    """
    try:
        options = build_chrome_options(wait_timeout, wait_delay, preset, landscape, header, footer)
    except ValueError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"\nRendering: {html_file}", fg=typer.colors.BLUE, bold=True)
    run_printer(new_html(html_file, options), output)


if __name__ == "__main__":
    app()
