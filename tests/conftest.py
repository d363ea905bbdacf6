"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import fitz
import pytest
import structlog
from PIL import Image

from ocr_markup.config import clear_settings_cache
from ocr_markup.observability import clear_run_context


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


LEFT_COLOR = (255, 0, 0)
RIGHT_COLOR = (0, 0, 255)


def make_pdf(page_sizes: list[tuple[float, float]]) -> bytes:
    """Build an in-memory PDF with one labeled page per size (in points)."""
    doc = fitz.open()
    for index, (width, height) in enumerate(page_sizes, start=1):
        page = doc.new_page(width=width, height=height)
        page.insert_text((10, 20), f"Page {index}", fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


def make_spread(width: int = 200, height: int = 100) -> Image.Image:
    """Build a spread whose left half is red and right half is blue."""
    image = Image.new("RGB", (width, height), RIGHT_COLOR)
    image.paste(LEFT_COLOR, (0, 0, width // 2, height))
    return image


def encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    """Encode an image to bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def pdf_factory() -> Callable[[list[tuple[float, float]]], bytes]:
    """Return the PDF builder."""
    return make_pdf


@pytest.fixture
def spread_factory() -> Callable[..., Image.Image]:
    """Return the spread builder."""
    return make_spread


@pytest.fixture
def pdf_bytes() -> bytes:
    """A two-page PDF of 100 x 50 point pages."""
    return make_pdf([(100, 50), (100, 50)])


@pytest.fixture
def pdf_file(tmp_path: Path, pdf_bytes: bytes) -> Path:
    """The two-page PDF written to disk."""
    path = tmp_path / "Scan.PDF"
    path.write_bytes(pdf_bytes)
    return path


@pytest.fixture
def spread_image() -> Image.Image:
    """A 200 x 100 spread, red on the left and blue on the right."""
    return make_spread()


@pytest.fixture
def spread_file(tmp_path: Path, spread_image: Image.Image) -> Path:
    """The spread written to disk as PNG."""
    path = tmp_path / "spread.scan.png"
    path.write_bytes(encode(spread_image))
    return path


@pytest.fixture
def page_image() -> Image.Image:
    """A plain white 100 x 200 page."""
    return Image.new("RGB", (100, 200), (255, 255, 255))


@pytest.fixture
def region_response() -> str:
    """A layout-region array as returned by a region-aware provider."""
    return (
        '[{"label": "doc_title", "bbox": [0, 0, 100, 20], "content": "Report"},'
        ' {"label": "text", "bbox": [0, 100, 1000, 200], "content": "Body text"},'
        ' {"label": "table", "bbox_2d": [0, 300, 1000, 600],'
        ' "content": "<tr><td>1</td></tr>"}]'
    )


@pytest.fixture
def markup_with_headers() -> str:
    """Canonical markup carrying a page header and footer."""
    return (
        '<div data-bbox="[0,0,1024,40]" data-label="page-header">Running head</div>\n'
        '<h2 data-bbox="[0,60,1024,100]" data-label="section_header">Intro</h2>\n'
        '<p data-bbox="[0,120,1024,400]" data-label="text">First <b>bold</b> line</p>\n'
        '<div data-bbox="[0,980,1024,1024]" data-label="page-footer">Page 3</div>'
    )


@pytest.fixture(autouse=True)
def reset_global_state() -> Iterator[None]:
    """Reset cached settings, logging configuration and log context."""
    yield
    clear_settings_cache()
    clear_run_context()
    structlog.reset_defaults()
