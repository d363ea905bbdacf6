"""Data models for the processing pipeline.

This module defines dataclasses and enums used throughout the pipeline
for representing canonical markup, layout regions, annotation overlays,
page images, and processing outcomes.
"""

from __future__ import annotations

import base64
import io
import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from bs4 import BeautifulSoup


if TYPE_CHECKING:
    from collections.abc import Iterable

    from PIL import Image


__all__ = [
    "BBOX_ATTRIBUTE",
    "BBOX_KEYS",
    "CONTENT_KEYS",
    "DEFAULT_BBOX_SCALE",
    "LABEL_ATTRIBUTE",
    "LABEL_KEYS",
    "REGION_BBOX_SCALE",
    "AnnotatedImage",
    "BoundingBox",
    "CanonicalMarkup",
    "ConversionResult",
    "LayoutRegion",
    "MarkupBlock",
    "OcrOutputs",
    "Overlay",
    "PageImage",
    "PageSide",
    "ReadingOrder",
]


# Normalized coordinate space of markup returned directly by providers.
DEFAULT_BBOX_SCALE = 1024

# Normalized coordinate space of labeled-region arrays.
REGION_BBOX_SCALE = 1000

BBOX_ATTRIBUTE = "data-bbox"
LABEL_ATTRIBUTE = "data-label"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ReadingOrder(StrEnum):
    """Reading order used to name the halves of a split spread.

    Attributes:
        LEFT_TO_RIGHT: The left half is read first.
        RIGHT_TO_LEFT: The right half is read first.
    """

    LEFT_TO_RIGHT = "LR"
    RIGHT_TO_LEFT = "RL"


class PageSide(StrEnum):
    """Suffix of a split half: ``A`` is read first, ``B`` second."""

    A = "A"
    B = "B"


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned bounding box with coordinates (x0, y0, x1, y1).

    Depending on where it comes from, the coordinates are either in a
    normalized space (0-1024 or 0-1000) or in pixels.

    Attributes:
        x0: Left edge x-coordinate.
        y0: Top edge y-coordinate.
        x1: Right edge x-coordinate.
        y1: Bottom edge y-coordinate.
    """

    x0: float
    y0: float
    x1: float
    y1: float

    @classmethod
    def from_values(cls, values: Iterable[Any]) -> BoundingBox | None:
        """Build a box from exactly four finite numbers.

        Values that cannot be read as finite floats are dropped first;
        anything other than four survivors yields ``None``.
        """
        coords: list[float] = []
        for value in values:
            if isinstance(value, bool):
                continue
            try:
                number = float(value)
            except (TypeError, ValueError):
                continue
            if math.isfinite(number):
                coords.append(number)
        if len(coords) != 4:  # noqa: PLR2004
            return None
        return cls(*coords)

    @classmethod
    def parse(cls, text: str) -> BoundingBox | None:
        """Parse a ``[x0,y0,x1,y1]`` attribute value.

        Returns:
            The parsed box, or ``None`` when the text does not hold
            exactly four finite numbers.
        """
        stripped = text.replace("[", "").replace("]", "")
        return cls.from_values(part.strip() for part in stripped.split(","))

    @property
    def width(self) -> float:
        """Width of the bounding box."""
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        """Height of the bounding box."""
        return self.y1 - self.y0

    def to_tuple(self) -> tuple[float, float, float, float]:
        """Convert to a tuple (x0, y0, x1, y1)."""
        return (self.x0, self.y0, self.x1, self.y1)

    def to_attribute(self) -> str:
        """Render as a ``[x0,y0,x1,y1]`` markup attribute value."""
        return "[" + ",".join(_format_coord(v) for v in self.to_tuple()) + "]"

    def to_pixels(
        self,
        width: int,
        height: int,
        *,
        scale: float = DEFAULT_BBOX_SCALE,
    ) -> BoundingBox:
        """Map from normalized space into pixel space of a ``width x height`` image.

        Each axis is scaled independently and every coordinate is clamped
        into ``[0, dimension]``. Corners are sorted so that the result
        always has ``x0 <= x1`` and ``y0 <= y1``.
        """
        x0 = _clamp(self.x0 / scale * width, width)
        y0 = _clamp(self.y0 / scale * height, height)
        x1 = _clamp(self.x1 / scale * width, width)
        y1 = _clamp(self.y1 / scale * height, height)
        return BoundingBox(
            x0=min(x0, x1),
            y0=min(y0, y1),
            x1=max(x0, x1),
            y1=max(y0, y1),
        )


def _clamp(value: float, upper: float) -> float:
    return max(0.0, min(value, float(upper)))


def _format_coord(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


# ---------------------------------------------------------------------------
# Layout Regions
# ---------------------------------------------------------------------------

LABEL_KEYS: tuple[str, ...] = ("label", "category", "type")
BBOX_KEYS: tuple[str, ...] = ("bbox", "bbox_2d", "box")
CONTENT_KEYS: tuple[str, ...] = ("content", "text")


def _first_present(data: dict[str, Any], keys: tuple[str, ...]) -> Any:  # noqa: ANN401
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


@dataclass(frozen=True, slots=True)
class LayoutRegion:
    """A labeled region from a layout-aware recognition provider.

    Attributes:
        label: Provider label, e.g. ``"doc_title"`` or ``"table"``.
        bbox: Box in the provider's normalized space (0-1000).
            ``None`` when the provider sent something unusable.
        content: Markup fragment embedded verbatim by the mapper.
    """

    label: str
    bbox: BoundingBox | None
    content: str

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> LayoutRegion:
        """Build a region from one element of a provider's region array."""
        label = _first_present(data, LABEL_KEYS)
        raw_bbox = _first_present(data, BBOX_KEYS)
        content = _first_present(data, CONTENT_KEYS)

        bbox: BoundingBox | None = None
        if isinstance(raw_bbox, str):
            bbox = BoundingBox.parse(raw_bbox)
        elif isinstance(raw_bbox, (list, tuple)):
            bbox = BoundingBox.from_values(raw_bbox)

        return cls(
            label="" if label is None else str(label),
            bbox=bbox,
            content="" if content is None else str(content),
        )


# ---------------------------------------------------------------------------
# Canonical Markup
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MarkupBlock:
    """An element of the canonical markup carrying position metadata.

    Attributes:
        tag: Element name (``"div"``, ``"h1"``, ``"p"``, ...).
        label: Region label, possibly empty.
        bbox: Parsed box, or ``None`` if the attribute is malformed.
        bbox_text: The raw ``data-bbox`` attribute value.
        text: Text content of the element with tags removed.
    """

    tag: str
    label: str
    bbox: BoundingBox | None
    bbox_text: str
    text: str


@dataclass(frozen=True, slots=True)
class CanonicalMarkup:
    """Normalized recognition output shared by every projection.

    The markup is HTML-like text whose positioned blocks carry a
    ``data-bbox="[x0,y0,x1,y1]"`` and a ``data-label`` attribute. The
    coordinate space of those boxes is recorded in ``bbox_scale``.

    Attributes:
        html: The markup text. Empty when nothing usable was recognized.
        bbox_scale: Upper bound of the normalized coordinate space.
    """

    html: str = ""
    bbox_scale: int = DEFAULT_BBOX_SCALE

    def __str__(self) -> str:
        """Return the markup text."""
        return self.html

    @property
    def is_empty(self) -> bool:
        """Whether normalization produced nothing usable."""
        return not self.html

    def blocks(self) -> tuple[MarkupBlock, ...]:
        """Return every element carrying both a box and a label, in document order."""
        if not self.html:
            return ()
        soup = BeautifulSoup(self.html, "html.parser")
        elements = soup.find_all(
            attrs={BBOX_ATTRIBUTE: True, LABEL_ATTRIBUTE: True},
        )
        blocks: list[MarkupBlock] = []
        for element in elements:
            bbox_text = str(element.get(BBOX_ATTRIBUTE, ""))
            blocks.append(
                MarkupBlock(
                    tag=element.name,
                    label=str(element.get(LABEL_ATTRIBUTE, "")),
                    bbox=BoundingBox.parse(bbox_text),
                    bbox_text=bbox_text,
                    text=element.get_text(),
                )
            )
        return tuple(blocks)


# ---------------------------------------------------------------------------
# Annotation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Overlay:
    """A rectangle drawn onto an annotated image.

    Attributes:
        bbox: Pixel box that was stroked.
        label: Region label drawn above the box (may be empty).
        color: RGB stroke color.
        label_drawn: Whether the label tag was drawn.
    """

    bbox: BoundingBox
    label: str
    color: tuple[int, int, int]
    label_drawn: bool


@dataclass(slots=True)
class AnnotatedImage:
    """Copy of a source image with bounding-box overlays drawn on it.

    Attributes:
        image: The annotated raster, same size as the source.
        overlays: Overlays in the order they were drawn.
    """

    image: Image.Image
    overlays: list[Overlay] = field(default_factory=list)

    @property
    def size(self) -> tuple[int, int]:
        """Pixel size (width, height) of the annotated image."""
        return self.image.size

    def to_png_bytes(self) -> bytes:
        """Encode the annotated image as PNG."""
        buffer = io.BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()

    def to_data_url(self) -> str:
        """Encode the annotated image as a ``data:image/png;base64`` URL."""
        encoded = base64.b64encode(self.to_png_bytes()).decode("ascii")
        return f"data:image/png;base64,{encoded}"


# ---------------------------------------------------------------------------
# Rasterization
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PageImage:
    """A rendered page or one half of a split spread.

    Attributes:
        image: The page raster.
        filename: Output filename, including extension.
        page_number: 1-indexed page number, or ``None`` for standalone images.
        side: Split suffix, or ``None`` for whole pages.
    """

    image: Image.Image
    filename: str
    page_number: int | None = None
    side: PageSide | None = None

    @property
    def width(self) -> int:
        """Width in pixels."""
        return self.image.width

    @property
    def height(self) -> int:
        """Height in pixels."""
        return self.image.height


@dataclass(slots=True)
class ConversionResult:
    """Outcome of rasterizing or splitting one source file.

    Attributes:
        source_name: Name of the source file.
        written: Filenames written to the output sink, in order.
        errors: Per-page failures as ``(page_number, message)`` pairs.
        page_count: Number of pages in the source.
        created_at: Timestamp when processing started.
    """

    source_name: str
    written: list[str] = field(default_factory=list)
    errors: list[tuple[int, str]] = field(default_factory=list)
    page_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def success(self) -> bool:
        """Whether every page was processed without error."""
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for serialization."""
        return {
            "source_name": self.source_name,
            "success": self.success,
            "page_count": self.page_count,
            "written": list(self.written),
            "errors": [
                {"page": page, "error": message} for page, message in self.errors
            ],
            "created_at": self.created_at.isoformat(),
        }


# ---------------------------------------------------------------------------
# Output Fan-out
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class OcrOutputs:
    """Every artifact derived from one recognition response.

    Attributes:
        markup: Canonical markup produced by the normalizer.
        markdown_with_headers: Markdown including page headers and footers.
        markdown_without_headers: Markdown with headers and footers removed.
        annotated: Annotated image, or ``None`` if no image was given or
            annotation failed.
        annotation_error: Message of the annotation failure, if any.
    """

    markup: CanonicalMarkup
    markdown_with_headers: str
    markdown_without_headers: str
    annotated: AnnotatedImage | None = None
    annotation_error: str | None = None
