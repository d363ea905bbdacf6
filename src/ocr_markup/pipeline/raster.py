"""Page rasterization and dual-page spread splitting.

Paginated sources (PDF) are rendered page by page with PyMuPDF at a fixed
2x zoom and written as JPEG files. Scans holding two facing pages are
split down the middle into single-page images, named ``A`` and ``B``
according to the configured reading order.

Each page is an independent unit of work: a page that cannot be rendered
raises ``RasterizationError`` for that page only, and the batch helpers
record the failure and continue with the next page.
"""

from __future__ import annotations

import io
import re
from pathlib import Path
from typing import TYPE_CHECKING

import fitz  # PyMuPDF
from PIL import Image, ImageOps, UnidentifiedImageError

from ocr_markup.observability import get_logger
from ocr_markup.pipeline.exceptions import RasterizationError
from ocr_markup.pipeline.models import (
    ConversionResult,
    PageImage,
    PageSide,
    ReadingOrder,
)


if TYPE_CHECKING:
    from ocr_markup.pipeline.sink import OutputSink


__all__ = [
    "CONVERTED_DIR",
    "DEFAULT_JPEG_QUALITY",
    "DEFAULT_RENDER_SCALE",
    "SPLIT_DIR",
    "convert_pdf_to_images",
    "encode_jpeg",
    "image_base_name",
    "open_document",
    "pdf_base_name",
    "render_page",
    "split_image",
    "split_pdf_pages",
    "split_spread",
]


DEFAULT_RENDER_SCALE = 2.0
DEFAULT_JPEG_QUALITY = 90
CONVERTED_DIR = "converted_jpegs"
SPLIT_DIR = "split_jpegs"
JPEG_EXTENSION = "jpg"

_PDF_SUFFIX = re.compile(r"\.pdf$", re.IGNORECASE)
_ANY_SUFFIX = re.compile(r"\.[^/.]+$")


# ---------------------------------------------------------------------------
# Naming and Encoding
# ---------------------------------------------------------------------------


def pdf_base_name(filename: str) -> str:
    """Strip a trailing ``.pdf`` (any case) from a filename."""
    return _PDF_SUFFIX.sub("", Path(filename).name)


def image_base_name(filename: str) -> str:
    """Strip the final extension from an image filename."""
    return _ANY_SUFFIX.sub("", Path(filename).name)


def encode_jpeg(image: Image.Image, *, quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """Encode an image as JPEG bytes.

    Raises:
        RasterizationError: If the image cannot be encoded.
    """
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="JPEG", quality=quality)
    except (OSError, ValueError) as exc:
        msg = f"Failed to encode JPEG: {exc}"
        raise RasterizationError(msg, cause=exc) from exc
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def open_document(source: bytes | Path | str) -> fitz.Document:
    """Open a paginated source with PyMuPDF.

    Args:
        source: Raw PDF bytes or a path to the file.

    Raises:
        RasterizationError: If the source cannot be opened.
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            return fitz.open(stream=bytes(source), filetype="pdf")
        return fitz.open(source)
    except fitz.FileDataError as exc:
        msg = f"Invalid or corrupted document: {exc}"
        raise RasterizationError(msg, cause=exc) from exc
    except Exception as exc:
        # MuPDF's own error types do not derive from RuntimeError.
        msg = f"Invalid or unreadable document: {exc}"
        raise RasterizationError(msg, cause=exc) from exc


def render_page(
    doc: fitz.Document,
    page_number: int,
    *,
    scale: float = DEFAULT_RENDER_SCALE,
) -> Image.Image:
    """Render one page into an independent RGB image.

    Args:
        doc: An open document.
        page_number: 1-indexed page number.
        scale: Zoom factor applied to the page's native size.

    Raises:
        RasterizationError: If the page cannot be rendered.
    """
    try:
        page = doc[page_number - 1]
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
    except Exception as exc:
        msg = f"Failed to render page: {exc}"
        raise RasterizationError(msg, page=page_number, cause=exc) from exc


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------


def split_spread(
    image: Image.Image,
    base_name: str,
    *,
    order: ReadingOrder = ReadingOrder.LEFT_TO_RIGHT,
    page_number: int | None = None,
) -> list[PageImage]:
    """Split a two-page spread into its left and right halves.

    The split column is ``floor(width / 2)``: for odd widths the extra
    column goes to the right half. The half read first under ``order``
    gets suffix ``A``, the other ``B``.

    Args:
        image: The spread to split.
        base_name: Filename stem for both halves.
        order: Reading order deciding which half is ``A``.
        page_number: Source page number carried onto both halves.

    Returns:
        The left half followed by the right half.

    Raises:
        RasterizationError: If the image is too narrow to split.
    """
    width, height = image.size
    if width < 2:  # noqa: PLR2004
        msg = f"Image is too narrow to split ({width}px)"
        raise RasterizationError(msg, page=page_number)

    mid = width // 2
    if order == ReadingOrder.LEFT_TO_RIGHT:
        left_side, right_side = PageSide.A, PageSide.B
    else:
        left_side, right_side = PageSide.B, PageSide.A

    left = image.crop((0, 0, mid, height))
    right = image.crop((mid, 0, width, height))
    return [
        PageImage(
            image=left,
            filename=f"{base_name}_{left_side}.{JPEG_EXTENSION}",
            page_number=page_number,
            side=left_side,
        ),
        PageImage(
            image=right,
            filename=f"{base_name}_{right_side}.{JPEG_EXTENSION}",
            page_number=page_number,
            side=right_side,
        ),
    ]


def _write_pages(
    pages: list[PageImage],
    sink: OutputSink,
    *,
    quality: int,
) -> list[str]:
    written: list[str] = []
    for page in pages:
        sink.write(page.filename, encode_jpeg(page.image, quality=quality))
        written.append(page.filename)
    return written


# ---------------------------------------------------------------------------
# Batch Operations
# ---------------------------------------------------------------------------


def convert_pdf_to_images(
    source: bytes | Path | str,
    sink: OutputSink,
    *,
    filename: str | None = None,
    scale: float = DEFAULT_RENDER_SCALE,
    quality: int = DEFAULT_JPEG_QUALITY,
    subdirectory: str = CONVERTED_DIR,
) -> ConversionResult:
    """Rasterize every page of a PDF into ``{base}_page_{n}.jpg``.

    Args:
        source: Raw PDF bytes or a path to the file.
        sink: Destination; pages are written into ``subdirectory``.
        filename: Source filename used for naming. Required for bytes.
        scale: Render zoom factor.
        quality: JPEG quality (0-100).
        subdirectory: Name of the sub-container receiving the pages.

    Returns:
        The written filenames and any per-page failures.

    Raises:
        RasterizationError: If the document cannot be opened.
    """
    name = _source_name(source, filename)
    base = pdf_base_name(name)
    logger = get_logger(__name__, source=name)

    result = ConversionResult(source_name=name)
    target = sink.subcontainer(subdirectory)

    with open_document(source) as doc:
        result.page_count = len(doc)
        logger.info("rasterizing_document", pages=result.page_count, scale=scale)

        for page_number in range(1, result.page_count + 1):
            try:
                image = render_page(doc, page_number, scale=scale)
                page = PageImage(
                    image=image,
                    filename=f"{base}_page_{page_number}.{JPEG_EXTENSION}",
                    page_number=page_number,
                )
                result.written.extend(_write_pages([page], target, quality=quality))
            except RasterizationError as exc:
                logger.warning("page_failed", page=page_number, error=str(exc))
                result.errors.append((page_number, str(exc)))

    logger.info(
        "document_rasterized",
        written=len(result.written),
        failed=len(result.errors),
    )
    return result


def split_pdf_pages(
    source: bytes | Path | str,
    sink: OutputSink,
    *,
    filename: str | None = None,
    order: ReadingOrder = ReadingOrder.LEFT_TO_RIGHT,
    scale: float = DEFAULT_RENDER_SCALE,
    quality: int = DEFAULT_JPEG_QUALITY,
    subdirectory: str = SPLIT_DIR,
) -> ConversionResult:
    """Rasterize every PDF page and split it into ``{base}_page_{0000}_{A|B}.jpg``.

    Args:
        source: Raw PDF bytes or a path to the file.
        sink: Destination; halves are written into ``subdirectory``.
        filename: Source filename used for naming. Required for bytes.
        order: Reading order deciding which half is ``A``.
        scale: Render zoom factor.
        quality: JPEG quality (0-100).
        subdirectory: Name of the sub-container receiving the halves.

    Returns:
        The written filenames and any per-page failures.

    Raises:
        RasterizationError: If the document cannot be opened.
    """
    name = _source_name(source, filename)
    base = pdf_base_name(name)
    logger = get_logger(__name__, source=name)

    result = ConversionResult(source_name=name)
    target = sink.subcontainer(subdirectory)

    with open_document(source) as doc:
        result.page_count = len(doc)
        logger.info(
            "splitting_document",
            pages=result.page_count,
            order=order.value,
        )

        for page_number in range(1, result.page_count + 1):
            try:
                image = render_page(doc, page_number, scale=scale)
                halves = split_spread(
                    image,
                    f"{base}_page_{page_number:04d}",
                    order=order,
                    page_number=page_number,
                )
                result.written.extend(_write_pages(halves, target, quality=quality))
            except RasterizationError as exc:
                logger.warning("page_failed", page=page_number, error=str(exc))
                result.errors.append((page_number, str(exc)))

    logger.info(
        "document_split",
        written=len(result.written),
        failed=len(result.errors),
    )
    return result


def split_image(
    source: bytes | Path | str | Image.Image,
    sink: OutputSink,
    *,
    filename: str | None = None,
    order: ReadingOrder = ReadingOrder.LEFT_TO_RIGHT,
    quality: int = DEFAULT_JPEG_QUALITY,
    subdirectory: str = SPLIT_DIR,
) -> ConversionResult:
    """Split a standalone spread image into ``{base}_{A|B}.jpg``.

    Args:
        source: Encoded image bytes, a path, or an already-decoded image.
        sink: Destination; halves are written into ``subdirectory``.
        filename: Source filename used for naming. Required unless
            ``source`` is a path.
        order: Reading order deciding which half is ``A``.
        quality: JPEG quality (0-100).
        subdirectory: Name of the sub-container receiving the halves.

    Returns:
        The written filenames.

    Raises:
        RasterizationError: If the image cannot be decoded, split or
            encoded.
    """
    name = _source_name(source, filename)
    logger = get_logger(__name__, source=name)

    image = _decode_image(source)
    target = sink.subcontainer(subdirectory)
    halves = split_spread(image, image_base_name(name), order=order)

    result = ConversionResult(source_name=name, page_count=1)
    result.written.extend(_write_pages(halves, target, quality=quality))
    logger.info("image_split", order=order.value, written=result.written)
    return result


def _decode_image(source: bytes | Path | str | Image.Image) -> Image.Image:
    if isinstance(source, Image.Image):
        return source
    try:
        if isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(bytes(source)))
        else:
            image = Image.open(source)
        image.load()
    except (OSError, UnidentifiedImageError) as exc:
        msg = f"Failed to decode image: {exc}"
        raise RasterizationError(msg, cause=exc) from exc
    return ImageOps.exif_transpose(image)


def _source_name(source: object, filename: str | None) -> str:
    if filename:
        return filename
    if isinstance(source, (str, Path)):
        return Path(source).name
    msg = "A filename is required when the source is not a path"
    raise ValueError(msg)
