"""Projection of canonical markup into Markdown text.

Two variants are produced from the same markup: one that keeps page
headers and footers and one that drops them. Projection is display-only
and therefore fail-safe: on any error the original markup text is
returned unchanged.
"""

from __future__ import annotations

import html
import re
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from ocr_markup.observability import get_logger
from ocr_markup.pipeline.models import LABEL_ATTRIBUTE, CanonicalMarkup
from ocr_markup.pipeline.regions import normalize_label


if TYPE_CHECKING:
    from collections.abc import Iterable


__all__ = [
    "HEADER_FOOTER_LABELS",
    "markup_to_markdown",
    "strip_labeled_blocks",
]


HEADER_FOOTER_LABELS: tuple[str, ...] = ("page-header", "page-footer")

_LINE_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BOLD = re.compile(r"<(b|strong)(?:\s[^>]*)?>(.*?)</\1\s*>", re.IGNORECASE | re.DOTALL)
_ITALIC = re.compile(r"<(i|em)(?:\s[^>]*)?>(.*?)</\1\s*>", re.IGNORECASE | re.DOTALL)
_HEADING = re.compile(r"<h([1-6])(?:\s[^>]*)?>(.*?)</h\1\s*>", re.IGNORECASE | re.DOTALL)
_PARAGRAPH = re.compile(r"<p(?:\s[^>]*)?>(.*?)</p\s*>", re.IGNORECASE | re.DOTALL)
_ANY_TAG = re.compile(r"</?[^>]+>")

# HTML5 tree building closes implied end tags (``<p>one<p>two``), which
# the regex pass below relies on.
_TREE_BUILDER = "html5lib"


def _parse(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, _TREE_BUILDER)


def _serialize(soup: BeautifulSoup) -> str:
    # html5lib wraps fragments in a document; emit only what was parsed.
    return "".join(
        section.decode_contents()
        for section in (soup.head, soup.body)
        if section is not None
    )


def strip_labeled_blocks(markup: str, labels: Iterable[str]) -> str:
    """Remove every element whose ``data-label`` is one of ``labels``.

    Labels are compared case-insensitively with ``-`` and ``_`` treated
    alike, as the region mapper does. The remaining markup is
    re-serialized by the parser.
    """
    wanted = {normalize_label(label) for label in labels}
    soup = _parse(markup)
    for element in soup.find_all(attrs={LABEL_ATTRIBUTE: True}):
        if element.decomposed:
            continue
        if normalize_label(str(element.get(LABEL_ATTRIBUTE, ""))) in wanted:
            element.decompose()
    return _serialize(soup)


def _rewrite_until_stable(pattern: re.Pattern[str], wrapper: str, text: str) -> str:
    # Repeat so nested spans of the same kind are rewritten too.
    previous = None
    while previous != text:
        previous = text
        text = pattern.sub(lambda m: f"{wrapper}{m.group(2)}{wrapper}", text)
    return text


def _project(markup: str, *, include_headers_footers: bool, labels: Iterable[str]) -> str:
    if not include_headers_footers:
        markup = strip_labeled_blocks(markup, labels)
    else:
        markup = _serialize(_parse(markup))

    markup = _LINE_BREAK.sub("\n", markup)
    markup = _rewrite_until_stable(_BOLD, "**", markup)
    markup = _rewrite_until_stable(_ITALIC, "*", markup)
    markup = _HEADING.sub(
        lambda m: f"\n\n{'#' * int(m.group(1))} {m.group(2)}\n\n",
        markup,
    )
    markup = _PARAGRAPH.sub(lambda m: f"\n\n{m.group(1)}", markup)
    markup = _ANY_TAG.sub("", markup)
    markup = html.unescape(markup)

    lines = (line.strip() for line in markup.split("\n"))
    return "\n".join(line for line in lines if line).strip()


def markup_to_markdown(
    markup: CanonicalMarkup | str,
    *,
    include_headers_footers: bool,
    header_footer_labels: Iterable[str] = HEADER_FOOTER_LABELS,
) -> str:
    """Convert canonical markup into Markdown.

    Steps, in order:

    1. Drop header/footer blocks unless ``include_headers_footers``.
    2. Turn ``<br>`` into newlines.
    3. Rewrite bold and italic spans to ``**text**`` and ``*text*``.
    4. Rewrite ``<hN>`` into ``N`` leading ``#`` on its own paragraph.
    5. Precede every ``<p>`` with a blank line.
    6. Strip all remaining tags and unescape character references.
    7. Trim every line and drop empty ones.

    Args:
        markup: Canonical markup, as a value or as raw text.
        include_headers_footers: Keep blocks labeled as page header/footer.
        header_footer_labels: Labels treated as header/footer blocks.

    Returns:
        The Markdown text, or the unmodified markup text if projection
        failed.
    """
    text = str(markup)
    if not text:
        return ""

    try:
        return _project(
            text,
            include_headers_footers=include_headers_footers,
            labels=header_footer_labels,
        )
    except Exception as exc:  # noqa: BLE001
        get_logger(__name__).warning(
            "markdown_projection_failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return text
