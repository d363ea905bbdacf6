"""Fan-out of one recognition response into every derived artifact.

After a provider answers, the response is normalized once and the
canonical markup feeds both Markdown variants and, when the page image
is available, the annotated overlay image.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from ocr_markup.observability import get_logger
from ocr_markup.pipeline.annotate import annotate_image
from ocr_markup.pipeline.exceptions import AnnotationError
from ocr_markup.pipeline.markdown import HEADER_FOOTER_LABELS, markup_to_markdown
from ocr_markup.pipeline.models import (
    DEFAULT_BBOX_SCALE,
    REGION_BBOX_SCALE,
    OcrOutputs,
)
from ocr_markup.pipeline.normalizer import normalize_response


if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from PIL import Image

    from ocr_markup.config import Settings


__all__ = [
    "build_outputs",
    "build_outputs_from_settings",
]


def build_outputs(
    raw: object,
    image: Image.Image | bytes | Path | None = None,
    *,
    bbox_scale: int = DEFAULT_BBOX_SCALE,
    region_bbox_scale: int = REGION_BBOX_SCALE,
    header_footer_labels: Iterable[str] = HEADER_FOOTER_LABELS,
    line_width: int = 2,
    font_size: int = 12,
    label_min_top: float = 14,
) -> OcrOutputs:
    """Normalize a response and derive Markdown and annotation outputs.

    Annotation failures are logged and recorded on the result; they never
    prevent the Markdown outputs from being produced.

    Args:
        raw: The provider response in any shape accepted by
            ``normalize_response``.
        image: The page image the response was recognized from.
        bbox_scale: Coordinate space of boxes in markup returned directly.
        region_bbox_scale: Coordinate space of region-array boxes.
        header_footer_labels: Labels removed from the header-less Markdown.
        line_width: Overlay stroke width in pixels.
        font_size: Overlay label font size in pixels.
        label_min_top: Minimum box top, in pixels, for drawing labels.

    Returns:
        All derived outputs.
    """
    logger = get_logger(__name__)
    start = time.monotonic()

    labels = tuple(header_footer_labels)
    markup = normalize_response(
        raw,
        bbox_scale=bbox_scale,
        region_bbox_scale=region_bbox_scale,
    )
    outputs = OcrOutputs(
        markup=markup,
        markdown_with_headers=markup_to_markdown(
            markup,
            include_headers_footers=True,
            header_footer_labels=labels,
        ),
        markdown_without_headers=markup_to_markdown(
            markup,
            include_headers_footers=False,
            header_footer_labels=labels,
        ),
    )

    if image is not None:
        try:
            outputs.annotated = annotate_image(
                image,
                markup,
                line_width=line_width,
                font_size=font_size,
                label_min_top=label_min_top,
            )
        except AnnotationError as exc:
            logger.warning("annotation_failed", error=str(exc))
            outputs.annotation_error = str(exc)

    logger.info(
        "outputs_built",
        markup_empty=markup.is_empty,
        markup_length=len(markup.html),
        annotated=outputs.annotated is not None,
        elapsed_seconds=round(time.monotonic() - start, 3),
    )
    return outputs


def build_outputs_from_settings(
    raw: object,
    image: Image.Image | bytes | Path | None,
    settings: Settings,
) -> OcrOutputs:
    """Run ``build_outputs`` with parameters taken from application settings."""
    return build_outputs(
        raw,
        image,
        bbox_scale=settings.markup.bbox_scale,
        region_bbox_scale=settings.markup.region_bbox_scale,
        header_footer_labels=settings.markdown.header_footer_labels,
        line_width=settings.annotation.line_width,
        font_size=settings.annotation.font_size,
        label_min_top=settings.annotation.label_min_top,
    )
