"""Bounding-box overlays drawn onto a copy of the source image.

Every positioned block of the canonical markup is stroked as a rectangle
whose color depends on its region label, with the label drawn on a dark
tag just above the box. The source image is never modified.
"""

from __future__ import annotations

import io
from functools import lru_cache
from typing import TYPE_CHECKING

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from ocr_markup.observability import get_logger
from ocr_markup.pipeline.exceptions import AnnotationError
from ocr_markup.pipeline.models import (
    DEFAULT_BBOX_SCALE,
    AnnotatedImage,
    BoundingBox,
    CanonicalMarkup,
    Overlay,
)


if TYPE_CHECKING:
    from pathlib import Path


__all__ = [
    "DEFAULT_COLOR",
    "annotate_image",
    "color_for_label",
    "to_pixel_box",
]


Color = tuple[int, int, int]

HEADER_COLOR: Color = (255, 0, 0)
FOOTER_COLOR: Color = (0, 0, 255)
TABLE_COLOR: Color = (0, 255, 0)
FIGURE_COLOR: Color = (255, 165, 0)
DEFAULT_COLOR: Color = (0, 255, 255)

# Ordered: the first matching group decides the color.
_LABEL_COLORS: tuple[tuple[tuple[str, ...], Color], ...] = (
    (("header", "title"), HEADER_COLOR),
    (("footer",), FOOTER_COLOR),
    (("table",), TABLE_COLOR),
    (("image", "figure"), FIGURE_COLOR),
)

_TAG_BACKGROUND = (0, 0, 0, 178)  # black at 70% opacity
_TAG_PADDING_X = 4
_TAG_PADDING_Y = 2

_FONT_CANDIDATES = (
    "DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "/System/Library/Fonts/Supplemental/Arial Unicode.ttf",
    "C:\\Windows\\Fonts\\arial.ttf",
)


def color_for_label(label: str) -> Color:
    """Pick the stroke color for a region label.

    Substring matches are case-insensitive and checked in fixed order:
    header/title, footer, table, image/figure. Anything else gets the
    default color.
    """
    lowered = label.lower()
    for needles, color in _LABEL_COLORS:
        if any(needle in lowered for needle in needles):
            return color
    return DEFAULT_COLOR


def to_pixel_box(
    bbox: BoundingBox,
    width: int,
    height: int,
    *,
    scale: float = DEFAULT_BBOX_SCALE,
) -> BoundingBox:
    """Map a normalized box into pixel space, clamped to the image."""
    return bbox.to_pixels(width, height, scale=scale)


@lru_cache(maxsize=8)
def _get_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for candidate in _FONT_CANDIDATES:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default()


def _load_source(source: Image.Image | bytes | Path) -> Image.Image:
    if isinstance(source, Image.Image):
        return source
    try:
        if isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(source)
        image.load()
    except (OSError, UnidentifiedImageError) as exc:
        msg = f"Failed to decode image for annotation: {exc}"
        raise AnnotationError(msg, cause=exc) from exc
    return image


def annotate_image(
    source: Image.Image | bytes | Path,
    markup: CanonicalMarkup | str,
    *,
    bbox_scale: float | None = None,
    line_width: int = 2,
    font_size: int = 12,
    label_min_top: float = 14,
) -> AnnotatedImage:
    """Draw the markup's bounding boxes onto a copy of ``source``.

    Blocks are drawn in document order, so later overlays may cover
    earlier ones. Boxes that do not hold exactly four finite numbers are
    skipped. Labels are drawn only when the box top is more than
    ``label_min_top`` pixels below the image top.

    Args:
        source: The page image, as a Pillow image, encoded bytes or a path.
        markup: Canonical markup, or raw markup text in the default space.
        bbox_scale: Override for the markup's normalized coordinate space.
        line_width: Stroke width in pixels.
        font_size: Label font size in pixels.
        label_min_top: Minimum box top, in pixels, for drawing the label.

    Returns:
        A new annotated image of the same size as the source, together
        with the overlays that were drawn.

    Raises:
        AnnotationError: If the source cannot be decoded or no drawing
            surface can be obtained.
    """
    logger = get_logger(__name__)

    if not isinstance(markup, CanonicalMarkup):
        markup = CanonicalMarkup(html=str(markup))
    scale = bbox_scale if bbox_scale is not None else markup.bbox_scale

    image = _load_source(source)
    width, height = image.size

    try:
        base = image.convert("RGBA")
        layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
    except (OSError, ValueError) as exc:
        msg = f"Failed to acquire drawing surface: {exc}"
        raise AnnotationError(msg, cause=exc) from exc

    font = _get_font(font_size)
    overlays: list[Overlay] = []
    skipped = 0

    for block in markup.blocks():
        if block.bbox is None:
            skipped += 1
            logger.debug("bbox_skipped", bbox=block.bbox_text, label=block.label)
            continue

        box = to_pixel_box(block.bbox, width, height, scale=scale)
        color = color_for_label(block.label)
        draw.rectangle(
            [box.x0, box.y0, box.x1, box.y1],
            outline=(*color, 255),
            width=line_width,
        )

        label_drawn = False
        if block.label and box.y0 > label_min_top:
            text_width = draw.textlength(block.label, font=font)
            tag_top = box.y0 - font_size - _TAG_PADDING_Y * 2
            draw.rectangle(
                [box.x0, tag_top, box.x0 + text_width + _TAG_PADDING_X * 2, box.y0],
                fill=_TAG_BACKGROUND,
            )
            draw.text(
                (box.x0 + _TAG_PADDING_X, tag_top + _TAG_PADDING_Y),
                block.label,
                fill=(*color, 255),
                font=font,
            )
            label_drawn = True

        overlays.append(
            Overlay(bbox=box, label=block.label, color=color, label_drawn=label_drawn)
        )

    annotated = Image.alpha_composite(base, layer).convert("RGB")

    logger.debug(
        "image_annotated",
        width=width,
        height=height,
        overlays=len(overlays),
        skipped=skipped,
    )
    return AnnotatedImage(image=annotated, overlays=overlays)
