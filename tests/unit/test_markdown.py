"""Unit tests for Markdown projection."""

from __future__ import annotations

from unittest.mock import patch

from ocr_markup.pipeline import (
    CanonicalMarkup,
    markup_to_markdown,
    normalize_response,
    strip_labeled_blocks,
)


class TestStripLabeledBlocks:
    """Tests for strip_labeled_blocks."""

    def test_removes_matching_blocks_with_children(self) -> None:
        """Test labeled blocks are removed along with their content."""
        markup = (
            '<div data-label="Page-Header"><span data-label="page-header">x</span>'
            "</div><p>keep</p>"
        )
        assert strip_labeled_blocks(markup, ["page-header"]) == "<p>keep</p>"

    def test_other_labels_untouched(self) -> None:
        """Test blocks with other labels stay."""
        markup = '<p data-label="text">keep</p>'
        assert strip_labeled_blocks(markup, ["page-footer"]) == markup

    def test_dash_and_underscore_are_alike(self) -> None:
        """Test page_header matches page-header and vice versa."""
        markup = (
            '<div data-label="page_header">a</div>'
            '<div data-label="PAGE-FOOTER">b</div><p>keep</p>'
        )
        assert strip_labeled_blocks(markup, ["page-header", "page_footer"]) == (
            "<p>keep</p>"
        )


class TestMarkupToMarkdown:
    """Tests for markup_to_markdown."""

    def test_with_headers(self, markup_with_headers: str) -> None:
        """Test headers and footers are kept when requested."""
        result = markup_to_markdown(markup_with_headers, include_headers_footers=True)
        assert result == "Running head\n## Intro\nFirst **bold** line\nPage 3"

    def test_without_headers(self, markup_with_headers: str) -> None:
        """Test headers and footers are removed when not requested."""
        result = markup_to_markdown(markup_with_headers, include_headers_footers=False)
        assert result == "## Intro\nFirst **bold** line"
        assert "Running head" not in result
        assert "Page 3" not in result

    def test_custom_header_labels(self) -> None:
        """Test the header/footer label set is configurable."""
        markup = '<div data-label="header">Top</div><p data-label="text">Body</p>'
        default = markup_to_markdown(markup, include_headers_footers=False)
        custom = markup_to_markdown(
            markup,
            include_headers_footers=False,
            header_footer_labels=["header"],
        )
        assert default == "Top\nBody"
        assert custom == "Body"

    def test_headings(self) -> None:
        """Test hN becomes N hashes on its own line."""
        markup = "<h1>One</h1><h3 class='x'>Three</h3>text"
        assert (
            markup_to_markdown(markup, include_headers_footers=True)
            == "# One\n### Three\ntext"
        )

    def test_line_breaks_and_paragraphs(self) -> None:
        """Test br becomes a newline and paragraphs start new lines."""
        markup = "<p>a<br>b<br/>c</p><p>d</p>"
        assert markup_to_markdown(markup, include_headers_footers=True) == "a\nb\nc\nd"

    def test_unclosed_paragraphs(self) -> None:
        """Test a new <p> implicitly closes the previous one."""
        assert markup_to_markdown("<p>one<p>two", include_headers_footers=True) == (
            "one\ntwo"
        )
        assert markup_to_markdown(
            '<p data-label="text">one<p data-label="text">two',
            include_headers_footers=False,
        ) == "one\ntwo"

    def test_region_headers_are_dropped(self) -> None:
        """Test underscore header labels from region arrays are removed."""
        raw = (
            '[{"label": "page_header", "bbox": [0, 0, 1000, 40], "content": "Head"},'
            ' {"label": "text", "bbox": [0, 50, 1000, 900], "content": "Body"},'
            ' {"label": "page_footer", "bbox": [0, 950, 1000, 1000], "content": "7"}]'
        )
        markup = normalize_response(raw)
        assert markup_to_markdown(markup, include_headers_footers=False) == "Body"
        assert markup_to_markdown(markup, include_headers_footers=True) == (
            "Head\nBody\n7"
        )

    def test_nested_emphasis(self) -> None:
        """Test nested bold and italic spans are all rewritten."""
        markup = "<p><b>outer <strong>inner</strong></b> and <em>x <i>y</i></em></p>"
        assert (
            markup_to_markdown(markup, include_headers_footers=True)
            == "**outer **inner**** and *x *y**"
        )

    def test_entities_are_unescaped(self) -> None:
        """Test character references become plain characters."""
        markup = "<p>Fish &amp; chips &lt;3</p>"
        assert markup_to_markdown(markup, include_headers_footers=True) == "Fish & chips <3"

    def test_unknown_tags_are_stripped(self) -> None:
        """Test remaining tags are removed and lines trimmed."""
        markup = "<div>  <span>a</span>  </div>\n\n<table><tr><td>1</td></tr></table>"
        assert markup_to_markdown(markup, include_headers_footers=True) == "a\n1"

    def test_pre_is_not_a_paragraph(self) -> None:
        """Test tags that merely start with p are not paragraphs."""
        markup = "x<pre>y</pre>"
        assert markup_to_markdown(markup, include_headers_footers=True) == "xy"

    def test_empty_input(self) -> None:
        """Test empty markup projects to an empty string."""
        assert markup_to_markdown(CanonicalMarkup(), include_headers_footers=False) == ""

    def test_accepts_canonical_markup(self, region_response: str) -> None:
        """Test projection of normalized region output."""
        markup = normalize_response(region_response)
        assert markup_to_markdown(markup, include_headers_footers=False) == (
            "# Report\nBody text\n1"
        )

    def test_failure_returns_original_text(self) -> None:
        """Test projection errors fall back to the unmodified markup."""
        markup = '<p data-label="text">x</p>'
        with patch(
            "ocr_markup.pipeline.markdown.strip_labeled_blocks",
            side_effect=RuntimeError("parser exploded"),
        ):
            result = markup_to_markdown(markup, include_headers_footers=False)
        assert result == markup
