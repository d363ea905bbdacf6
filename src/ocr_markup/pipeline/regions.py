"""Mapping of labeled layout regions into canonical markup.

Layout-aware providers answer with a JSON array of regions, each holding
a label, a 0-1000 bounding box and a content fragment. This module turns
such an array into canonical markup: one tagged element per region, in
input order, carrying ``data-bbox`` and ``data-label`` attributes.
"""

from __future__ import annotations

import html
from collections.abc import Mapping, Sequence
from typing import Any

from ocr_markup.observability import get_logger
from ocr_markup.pipeline.models import (
    BBOX_ATTRIBUTE,
    BBOX_KEYS,
    LABEL_ATTRIBUTE,
    LABEL_KEYS,
    REGION_BBOX_SCALE,
    CanonicalMarkup,
    LayoutRegion,
)


__all__ = [
    "GENERIC_TAG",
    "looks_like_region_list",
    "map_regions",
    "normalize_label",
    "render_region",
    "tag_for_label",
]


GENERIC_TAG = "div"

_LABEL_TAGS: dict[str, str] = {
    # Titles and headings
    "doc_title": "h1",
    "title": "h1",
    "paragraph_title": "h2",
    "section_header": "h2",
    "section_title": "h2",
    # Body text
    "text": "p",
    "content": "p",
    "abstract": "p",
    "paragraph": "p",
    "aside_text": "p",
    "vertical_text": "p",
    "figure_title": "p",
    "table_title": "p",
    "chart_title": "p",
    "caption": "p",
    "footnote": "p",
    "vision_footnote": "p",
    "reference": "p",
    "reference_content": "p",
    # Blocks
    "header": GENERIC_TAG,
    "footer": GENERIC_TAG,
    "page_header": GENERIC_TAG,
    "page_footer": GENERIC_TAG,
    "number": GENERIC_TAG,
    "formula_number": GENERIC_TAG,
    "table": GENERIC_TAG,
    "display_formula": GENERIC_TAG,
    "inline_formula": GENERIC_TAG,
    "formula": GENERIC_TAG,
    "image": GENERIC_TAG,
    "figure": GENERIC_TAG,
    "chart": GENERIC_TAG,
    "seal": GENERIC_TAG,
    "algorithm": GENERIC_TAG,
    "code": GENERIC_TAG,
}

_TABLE_LABELS = frozenset({"table"})
_DISPLAY_FORMULA_LABELS = frozenset({"display_formula", "formula"})
_INLINE_FORMULA_LABELS = frozenset({"inline_formula"})


def normalize_label(label: str) -> str:
    """Fold a region label for comparison: trimmed, lower case, ``-`` as ``_``."""
    return label.strip().lower().replace("-", "_")


def tag_for_label(label: str) -> str:
    """Return the element name used for a region label.

    Labels are compared case-insensitively, with ``-`` and ``_`` treated
    alike. Unknown labels map to the generic block tag.
    """
    return _LABEL_TAGS.get(normalize_label(label), GENERIC_TAG)


def _wrap_content(label: str, content: str) -> str:
    key = normalize_label(label)
    if key in _TABLE_LABELS:
        return f"<table>{content}</table>"
    if key in _DISPLAY_FORMULA_LABELS:
        return f'<math display="block">{content}</math>'
    if key in _INLINE_FORMULA_LABELS:
        return f"<math>{content}</math>"
    return content


def render_region(region: LayoutRegion) -> str:
    """Render one region as a tagged element with position metadata.

    The content is embedded verbatim. A region without a usable box keeps
    its label but gets no ``data-bbox`` attribute.
    """
    tag = tag_for_label(region.label)
    attributes: list[str] = []
    if region.bbox is not None:
        attributes.append(f'{BBOX_ATTRIBUTE}="{region.bbox.to_attribute()}"')
    attributes.append(f'{LABEL_ATTRIBUTE}="{html.escape(region.label, quote=True)}"')
    body = _wrap_content(region.label, region.content)
    return f"<{tag} {' '.join(attributes)}>{body}</{tag}>"


def looks_like_region_list(value: object) -> bool:
    """Check whether a parsed payload is an array of layout regions.

    Only the first element is inspected: it must be a mapping with both a
    label-like and a bbox-like key.
    """
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return False
    if not value:
        return False
    first = value[0]
    if not isinstance(first, Mapping):
        return False
    has_label = any(key in first for key in LABEL_KEYS)
    has_bbox = any(key in first for key in BBOX_KEYS)
    return has_label and has_bbox


def map_regions(
    regions: Sequence[LayoutRegion | Mapping[str, Any]],
    *,
    bbox_scale: int = REGION_BBOX_SCALE,
) -> CanonicalMarkup:
    """Convert an ordered region array into canonical markup.

    Regions are emitted strictly in input order, separated by newlines.
    No reordering or deduplication is performed. Elements that are
    neither a ``LayoutRegion`` nor a mapping are skipped.

    Args:
        regions: Regions in reading order, either already built or as raw
            provider mappings.
        bbox_scale: Coordinate space of the region boxes.

    Returns:
        Canonical markup whose ``bbox_scale`` records the region space.
    """
    logger = get_logger(__name__)

    rendered: list[str] = []
    for index, item in enumerate(regions):
        if isinstance(item, LayoutRegion):
            region = item
        elif isinstance(item, Mapping):
            region = LayoutRegion.from_mapping(dict(item))
        else:
            logger.debug("region_skipped", index=index, kind=type(item).__name__)
            continue
        if region.bbox is None:
            logger.debug("region_without_bbox", index=index, label=region.label)
        rendered.append(render_region(region))

    logger.debug("regions_mapped", count=len(rendered))
    return CanonicalMarkup(html="\n".join(rendered), bbox_scale=bbox_scale)
