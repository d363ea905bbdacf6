"""Processing pipeline for recognition output and page images.

This module provides the document processing pipeline for ocr-markup,
including:

- **Normalization**: turn raw provider responses (markup text, JSON
  objects, labeled region arrays) into canonical markup.
- **Markdown projection**: derive Markdown with or without page headers
  and footers.
- **Annotation**: draw the markup's bounding boxes onto the page image.
- **Rasterization**: render PDF pages to JPEG and split two-page spreads.

Example:
    ```python
    from pathlib import Path

    from ocr_markup.pipeline import (
        DirectorySink,
        ReadingOrder,
        annotate_image,
        markup_to_markdown,
        normalize_response,
        split_pdf_pages,
    )

    markup = normalize_response(provider_payload)
    print(markup_to_markdown(markup, include_headers_footers=False))

    annotated = annotate_image(page_image, markup)
    annotated.image.save("annotated.png")

    result = split_pdf_pages(
        Path("scan.pdf"),
        DirectorySink(Path("out")),
        order=ReadingOrder.RIGHT_TO_LEFT,
    )
    print(result.written)
    ```
"""

from __future__ import annotations

from ocr_markup.pipeline.annotate import annotate_image, color_for_label, to_pixel_box
from ocr_markup.pipeline.exceptions import (
    AnnotationError,
    PipelineError,
    RasterizationError,
)
from ocr_markup.pipeline.markdown import (
    HEADER_FOOTER_LABELS,
    markup_to_markdown,
    strip_labeled_blocks,
)
from ocr_markup.pipeline.models import (
    DEFAULT_BBOX_SCALE,
    REGION_BBOX_SCALE,
    AnnotatedImage,
    BoundingBox,
    CanonicalMarkup,
    ConversionResult,
    LayoutRegion,
    MarkupBlock,
    OcrOutputs,
    Overlay,
    PageImage,
    PageSide,
    ReadingOrder,
)
from ocr_markup.pipeline.normalizer import normalize_response
from ocr_markup.pipeline.outputs import build_outputs, build_outputs_from_settings
from ocr_markup.pipeline.raster import (
    convert_pdf_to_images,
    encode_jpeg,
    image_base_name,
    open_document,
    pdf_base_name,
    render_page,
    split_image,
    split_pdf_pages,
    split_spread,
)
from ocr_markup.pipeline.regions import (
    looks_like_region_list,
    map_regions,
    tag_for_label,
)
from ocr_markup.pipeline.sink import DirectorySink, OutputSink


__all__ = [
    "DEFAULT_BBOX_SCALE",
    "HEADER_FOOTER_LABELS",
    "REGION_BBOX_SCALE",
    "AnnotatedImage",
    "AnnotationError",
    "BoundingBox",
    "CanonicalMarkup",
    "ConversionResult",
    "DirectorySink",
    "LayoutRegion",
    "MarkupBlock",
    "OcrOutputs",
    "OutputSink",
    "Overlay",
    "PageImage",
    "PageSide",
    "PipelineError",
    "RasterizationError",
    "ReadingOrder",
    "annotate_image",
    "build_outputs",
    "build_outputs_from_settings",
    "color_for_label",
    "convert_pdf_to_images",
    "encode_jpeg",
    "image_base_name",
    "looks_like_region_list",
    "map_regions",
    "markup_to_markdown",
    "normalize_response",
    "open_document",
    "pdf_base_name",
    "render_page",
    "split_image",
    "split_pdf_pages",
    "split_spread",
    "strip_labeled_blocks",
    "tag_for_label",
]
