"""Unit tests for the output fan-out."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ocr_markup.config import AnnotationConfig, MarkdownConfig, MarkupConfig, Settings
from ocr_markup.pipeline import build_outputs, build_outputs_from_settings


if TYPE_CHECKING:
    from PIL import Image


class TestBuildOutputs:
    """Tests for build_outputs."""

    def test_all_outputs_from_regions(
        self, region_response: str, page_image: Image.Image
    ) -> None:
        """Test one response yields markup, both Markdown variants and an overlay."""
        outputs = build_outputs(region_response, page_image)

        assert outputs.markup.bbox_scale == 1000
        assert outputs.markdown_with_headers == "# Report\nBody text\n1"
        assert outputs.markdown_without_headers == "# Report\nBody text\n1"
        assert outputs.annotated is not None
        assert outputs.annotated.size == page_image.size
        assert len(outputs.annotated.overlays) == 3
        assert outputs.annotation_error is None

    def test_header_variants_differ(self, markup_with_headers: str) -> None:
        """Test only the header-less variant drops headers and footers."""
        outputs = build_outputs(markup_with_headers)

        assert "Running head" in outputs.markdown_with_headers
        assert "Running head" not in outputs.markdown_without_headers
        assert outputs.annotated is None

    def test_annotation_failure_is_recorded(self, markup_with_headers: str) -> None:
        """Test a bad image does not prevent the Markdown outputs."""
        outputs = build_outputs(markup_with_headers, b"not an image")

        assert outputs.annotated is None
        assert outputs.annotation_error is not None
        assert "decode" in outputs.annotation_error
        assert outputs.markdown_without_headers == "## Intro\nFirst **bold** line"

    def test_empty_response(self, page_image: Image.Image) -> None:
        """Test an empty response yields empty text outputs and a clean copy."""
        outputs = build_outputs(None, page_image)

        assert outputs.markup.is_empty
        assert outputs.markdown_with_headers == ""
        assert outputs.annotated is not None
        assert outputs.annotated.overlays == []


class TestBuildOutputsFromSettings:
    """Tests for build_outputs_from_settings."""

    def test_settings_are_applied(self, page_image: Image.Image) -> None:
        """Test scale, header labels and drawing options come from settings."""
        settings = Settings(
            markup=MarkupConfig(bbox_scale=500),
            markdown=MarkdownConfig(header_footer_labels=["header"]),
            annotation=AnnotationConfig(line_width=4),
        )
        raw = (
            '<div data-bbox="[0,0,500,500]" data-label="header">Top</div>'
            '<p data-bbox="[0,0,250,250]" data-label="text">Body</p>'
        )

        outputs = build_outputs_from_settings(raw, page_image, settings)

        assert outputs.markup.bbox_scale == 500
        assert outputs.markdown_without_headers == "Body"
        assert outputs.markdown_with_headers == "Top\nBody"
        assert outputs.annotated is not None
        boxes = [o.bbox.to_tuple() for o in outputs.annotated.overlays]
        assert boxes == [(0, 0, 100, 200), (0, 0, 50, 100)]
        # Four-pixel stroke on the left edge
        assert outputs.annotated.image.getpixel((3, 150)) == (255, 0, 0)
