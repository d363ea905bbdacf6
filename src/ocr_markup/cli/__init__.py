"""CLI module for ocr-markup."""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import typer

from ocr_markup import __version__
from ocr_markup.config import (
    ConfigurationError,
    ConfigurationValidationError,
    get_settings,
    load_settings,
)
from ocr_markup.observability import (
    LogLevel,
    bind_source,
    configure_logging,
    get_logger,
    set_run_id,
    unbind_source,
)
from ocr_markup.pipeline import (
    CanonicalMarkup,
    DirectorySink,
    PipelineError,
    ReadingOrder,
    annotate_image,
    build_outputs_from_settings,
    convert_pdf_to_images,
    markup_to_markdown,
    normalize_response,
    split_image,
    split_pdf_pages,
)


if TYPE_CHECKING:
    from collections.abc import Iterator

    from ocr_markup.pipeline import ConversionResult


app = typer.Typer(
    name="ocr-markup",
    help="Normalize OCR responses into markup, Markdown and annotated pages.",
    no_args_is_help=True,
)

STDIN = "-"


def version_callback(value: bool) -> None:  # noqa: FBT001
    """Print version and exit."""
    if value:
        typer.echo(f"ocr-markup version {__version__}")
        raise typer.Exit


@contextmanager
def _exit_on_error() -> Iterator[None]:
    """Turn pipeline, configuration and I/O failures into exit code 1."""
    try:
        yield
    except ConfigurationValidationError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        for line in exc.describe():
            typer.echo(f"  {line}", err=True)
        raise typer.Exit(1) from exc
    except (PipelineError, ConfigurationError, OSError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc


def _read_response(path: Path) -> str:
    if str(path) == STDIN:
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def _emit(text: str, output: Path | None) -> None:
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")


def _markup_from(response: Path) -> CanonicalMarkup:
    settings = get_settings()
    return normalize_response(
        _read_response(response),
        bbox_scale=settings.markup.bbox_scale,
        region_bbox_scale=settings.markup.region_bbox_scale,
    )


def _report(result: ConversionResult) -> None:
    for name in result.written:
        typer.echo(name)
    for page, error in result.errors:
        typer.echo(f"Error: page {page}: {error}", err=True)
    if not result.success:
        raise typer.Exit(1)


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: FBT001
        False,  # noqa: FBT003
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(  # noqa: FBT001
        False,  # noqa: FBT003
        "--verbose",
        "-V",
        help="Enable verbose (debug) logging.",
    ),
    quiet: bool = typer.Option(  # noqa: FBT001
        False,  # noqa: FBT003
        "--quiet",
        "-q",
        help="Only show warnings and errors.",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """ocr-markup CLI."""
    del version  # Handled by callback

    if verbose and quiet:
        typer.echo("Error: --verbose and --quiet are mutually exclusive.", err=True)
        raise typer.Exit(1)

    with _exit_on_error():
        settings = load_settings(config_file, require_config_file=config_file is not None)

    logging_config = settings.observability.logging
    if verbose:
        level: LogLevel | str = LogLevel.DEBUG
    elif quiet:
        level = LogLevel.WARNING
    else:
        level = logging_config.level.value

    fmt = logging_config.format
    configure_logging(level=level, renderer=fmt.value if fmt is not None else None)
    set_run_id()


@app.command()
def normalize(
    response: Path = typer.Argument(
        ...,
        help="Provider response file (markup, JSON object or region array); '-' reads stdin.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the canonical markup here instead of stdout.",
    ),
) -> None:
    """Normalize a provider response into canonical markup."""
    with _exit_on_error():
        _emit(_markup_from(response).html, output)


@app.command()
def markdown(
    response: Path = typer.Argument(..., help="Provider response file; '-' reads stdin."),
    headers: bool = typer.Option(  # noqa: FBT001
        True,  # noqa: FBT003
        "--headers/--no-headers",
        help="Keep or drop page headers and footers.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the Markdown here instead of stdout.",
    ),
) -> None:
    """Convert a provider response into Markdown."""
    with _exit_on_error():
        markup = _markup_from(response)
        text = markup_to_markdown(
            markup,
            include_headers_footers=headers,
            header_footer_labels=get_settings().markdown.header_footer_labels,
        )
        _emit(text, output)


@app.command()
def annotate(
    response: Path = typer.Argument(..., help="Provider response file; '-' reads stdin."),
    image: Path = typer.Argument(..., help="Page image the response was recognized from."),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Where to write the annotated PNG.",
    ),
    bbox_scale: int | None = typer.Option(
        None,
        "--bbox-scale",
        min=1,
        help="Override the coordinate range of the response's boxes.",
    ),
) -> None:
    """Draw the response's bounding boxes onto its page image."""
    settings = get_settings()
    with _exit_on_error():
        markup = _markup_from(response)
        annotated = annotate_image(
            image,
            markup,
            bbox_scale=bbox_scale,
            line_width=settings.annotation.line_width,
            font_size=settings.annotation.font_size,
            label_min_top=settings.annotation.label_min_top,
        )
        output.write_bytes(annotated.to_png_bytes())
    typer.echo(f"{output} ({len(annotated.overlays)} regions)")


@app.command()
def process(
    response: Path = typer.Argument(..., help="Provider response file."),
    image: Path | None = typer.Argument(None, help="Page image for the annotated output."),
    output_dir: Path = typer.Option(
        Path(),
        "--output-dir",
        "-d",
        help="Directory receiving the derived files.",
    ),
) -> None:
    """Derive markup, both Markdown variants and the annotated image."""
    logger = get_logger(__name__)
    stem = response.stem
    bind_source(response.name)
    try:
        with _exit_on_error():
            outputs = build_outputs_from_settings(
                _read_response(response),
                image,
                get_settings(),
            )
            sink = DirectorySink(output_dir)
            written = [
                sink.write(f"{stem}.html", outputs.markup.html),
                sink.write(f"{stem}.md", outputs.markdown_with_headers),
                sink.write(f"{stem}.noheaders.md", outputs.markdown_without_headers),
            ]
            if outputs.annotated is not None:
                written.append(
                    sink.write(f"{stem}.annotated.png", outputs.annotated.to_png_bytes())
                )
        logger.info("outputs_written", files=len(written))
    finally:
        unbind_source()

    for path in written:
        typer.echo(path)
    if outputs.annotation_error is not None:
        typer.echo(f"Error: annotation failed: {outputs.annotation_error}", err=True)
        raise typer.Exit(1)


@app.command(name="pdf-to-images")
def pdf_to_images(
    pdf: Path = typer.Argument(..., help="PDF file to rasterize."),
    output_dir: Path = typer.Option(
        Path(),
        "--output-dir",
        "-d",
        help="Directory receiving the page images sub-directory.",
    ),
) -> None:
    """Render every PDF page to a JPEG image."""
    raster = get_settings().raster
    bind_source(pdf.name)
    try:
        with _exit_on_error():
            result = convert_pdf_to_images(
                pdf,
                DirectorySink(output_dir),
                scale=raster.scale,
                quality=raster.jpeg_quality,
                subdirectory=raster.converted_dir,
            )
    finally:
        unbind_source()
    _report(result)


@app.command()
def split(
    source: Path = typer.Argument(..., help="PDF or image holding two-page spreads."),
    output_dir: Path = typer.Option(
        Path(),
        "--output-dir",
        "-d",
        help="Directory receiving the split pages sub-directory.",
    ),
    order: ReadingOrder | None = typer.Option(
        None,
        "--order",
        case_sensitive=False,
        help="Reading order: LR names the left half A, RL the right half.",
    ),
) -> None:
    """Split two-page spreads into single pages named A and B."""
    raster = get_settings().raster
    reading_order = order or raster.reading_order
    sink = DirectorySink(output_dir)
    bind_source(source.name)
    try:
        with _exit_on_error():
            if source.suffix.lower() == ".pdf":
                result = split_pdf_pages(
                    source,
                    sink,
                    order=reading_order,
                    scale=raster.scale,
                    quality=raster.jpeg_quality,
                    subdirectory=raster.split_dir,
                )
            else:
                result = split_image(
                    source,
                    sink,
                    order=reading_order,
                    quality=raster.jpeg_quality,
                    subdirectory=raster.split_dir,
                )
    finally:
        unbind_source()
    _report(result)


@app.command()
def config() -> None:
    """Validate the configuration and print the effective settings."""
    typer.echo(json.dumps(get_settings().model_dump(mode="json"), indent=2))


__all__ = ["app"]
