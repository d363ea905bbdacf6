"""Normalization of raw recognition responses into canonical markup.

Providers answer in many shapes: markup text, JSON objects with
inconsistent field names, or arrays of labeled layout regions. This
module turns any of them into a single ``CanonicalMarkup`` value.

Normalization is best-effort. It never raises: an empty
``CanonicalMarkup`` means nothing usable was recognized.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from ocr_markup.observability import get_logger
from ocr_markup.pipeline.models import (
    DEFAULT_BBOX_SCALE,
    REGION_BBOX_SCALE,
    CanonicalMarkup,
)
from ocr_markup.pipeline.regions import looks_like_region_list, map_regions


__all__ = [
    "LAYOUT_FIELDS",
    "PRIMARY_FIELDS",
    "normalize_response",
]


# Probed in order; the first present, non-null field wins.
LAYOUT_FIELDS: tuple[str, ...] = ("layout_html", "structured_html")
PRIMARY_FIELDS: tuple[str, ...] = ("html", "content", "text")

_PARAGRAPH_KEY = "paragraph"
_PARAGRAPH_SEPARATOR = "\n\n"


def _reject_constant(name: str) -> float:
    msg = f"Non-standard JSON constant: {name}"
    raise ValueError(msg)


def _stringify(value: object) -> str:
    """Render a parsed JSON value back to text using JSON spelling."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _coerce_to_text(raw: object) -> str:
    """Extract the response text from a raw provider value."""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    if hasattr(raw, "content"):
        content = getattr(raw, "content", None)
        return "" if content is None else _stringify(content)
    return _stringify(raw)


def _first_non_null(obj: Mapping[str, Any], fields: tuple[str, ...]) -> Any:  # noqa: ANN401
    for name in fields:
        value = obj.get(name)
        if value is not None:
            return value
    return None


def _join_paragraphs(items: Sequence[Any]) -> str:
    paragraphs: list[str] = []
    for item in items:
        if isinstance(item, Mapping) and _PARAGRAPH_KEY in item:
            paragraphs.append(_stringify(item[_PARAGRAPH_KEY]))
        elif isinstance(item, str):
            paragraphs.append(item)
    return _PARAGRAPH_SEPARATOR.join(paragraphs)


def _from_object(obj: Mapping[str, Any]) -> str | None:
    """Probe an object payload for layout markup, then primary content."""
    layout = _first_non_null(obj, LAYOUT_FIELDS)
    if layout:
        return _stringify(layout)

    primary = _first_non_null(obj, PRIMARY_FIELDS)
    if isinstance(primary, Sequence) and not isinstance(primary, str):
        return _join_paragraphs(primary)
    if primary is not None:
        return _stringify(primary)
    return None


def _from_parsed(
    parsed: object,
    *,
    bbox_scale: int,
    region_bbox_scale: int,
) -> CanonicalMarkup:
    if looks_like_region_list(parsed):
        return map_regions(parsed, bbox_scale=region_bbox_scale)  # type: ignore[arg-type]

    if isinstance(parsed, Mapping):
        found = _from_object(parsed)
        if found is not None:
            return CanonicalMarkup(html=found, bbox_scale=bbox_scale)

    return CanonicalMarkup(html=_stringify(parsed), bbox_scale=bbox_scale)


def normalize_response(
    raw: object,
    *,
    bbox_scale: int = DEFAULT_BBOX_SCALE,
    region_bbox_scale: int = REGION_BBOX_SCALE,
) -> CanonicalMarkup:
    """Normalize a raw provider response into canonical markup.

    Accepted inputs:

    - ``None``: yields empty markup.
    - ``str`` or ``bytes``: parsed as JSON when possible, otherwise taken
      as markup text verbatim.
    - An already-parsed ``dict`` or ``list``: used without re-parsing. A
      ``dict`` is a payload, not a wrapper, so a string under its
      ``content`` key is primary content and is not parsed as JSON.
    - Any other object with a ``content`` attribute: its content is used
      as the response text.

    Parsed values are matched in order against: a region array (handed to
    the region mapper), an object with a combined-layout field, an object
    with a primary-content field. Anything else is stringified.

    Args:
        raw: The provider response.
        bbox_scale: Coordinate space of boxes in markup returned directly.
        region_bbox_scale: Coordinate space of region-array boxes.

    Returns:
        Canonical markup. Empty if nothing usable was recognized or if
        normalization failed for any reason.
    """
    logger = get_logger(__name__)

    try:
        if raw is None:
            return CanonicalMarkup(bbox_scale=bbox_scale)

        if isinstance(raw, (Mapping, list, tuple)):
            return _from_parsed(
                raw,
                bbox_scale=bbox_scale,
                region_bbox_scale=region_bbox_scale,
            )

        text = _coerce_to_text(raw)
        try:
            parsed = json.loads(text, parse_constant=_reject_constant)
        except ValueError:
            # Not JSON: the provider already returned markup.
            return CanonicalMarkup(html=text, bbox_scale=bbox_scale)

        return _from_parsed(
            parsed,
            bbox_scale=bbox_scale,
            region_bbox_scale=region_bbox_scale,
        )

    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "normalization_failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return CanonicalMarkup(bbox_scale=bbox_scale)
