"""Configuration schema models for ocr-markup.

This module defines Pydantic models for all configuration sections.
These models are used by the Settings class to validate and type-check
configuration loaded from YAML files and environment variables.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ocr_markup.pipeline.markdown import HEADER_FOOTER_LABELS
from ocr_markup.pipeline.models import (
    DEFAULT_BBOX_SCALE,
    REGION_BBOX_SCALE,
    ReadingOrder,
)
from ocr_markup.pipeline.raster import (
    CONVERTED_DIR,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_RENDER_SCALE,
    SPLIT_DIR,
)


__all__ = [
    "AnnotationConfig",
    "ConfigBaseModel",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "MarkdownConfig",
    "MarkupConfig",
    "ObservabilityConfig",
    "RasterConfig",
]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class LogFormat(StrEnum):
    """Log output format.

    Attributes:
        JSON: Structured JSON logging (for machine parsing).
        CONSOLE: Human-readable console output with colors.
        LOGFMT: ``key=value`` lines.
    """

    JSON = "json"
    CONSOLE = "console"
    LOGFMT = "logfmt"


class LogLevel(StrEnum):
    """Log verbosity level.

    Attributes:
        DEBUG: Detailed debugging information.
        INFO: General operational information.
        WARNING: Warning messages for potential issues.
        ERROR: Error messages for failures.
        CRITICAL: Critical errors that may cause shutdown.
    """

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------------------------------------------------------------------------
# Base Configuration Model
# ---------------------------------------------------------------------------


class ConfigBaseModel(BaseModel):
    """Base model for all configuration sections.

    Uses strict settings to catch configuration typos:
    - extra="forbid" raises errors for unknown fields
    - validate_default=True ensures defaults are validated
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        validate_default=True,
    )


# ---------------------------------------------------------------------------
# Markup and Markdown
# ---------------------------------------------------------------------------


class MarkupConfig(ConfigBaseModel):
    """Canonical markup configuration.

    Attributes:
        bbox_scale: Coordinate space of boxes in markup returned directly
            by a provider.
        region_bbox_scale: Coordinate space of boxes in labeled region
            arrays.
    """

    bbox_scale: Annotated[
        int,
        Field(gt=0, description="Normalized coordinate range of markup boxes"),
    ] = DEFAULT_BBOX_SCALE
    region_bbox_scale: Annotated[
        int,
        Field(gt=0, description="Normalized coordinate range of region boxes"),
    ] = REGION_BBOX_SCALE


class MarkdownConfig(ConfigBaseModel):
    """Markdown projection configuration.

    Attributes:
        header_footer_labels: Block labels removed from the header-less
            Markdown variant.
    """

    header_footer_labels: list[str] = Field(
        default_factory=lambda: list(HEADER_FOOTER_LABELS),
        description="Labels treated as page headers and footers",
    )

    @field_validator("header_footer_labels")
    @classmethod
    def drop_blank_labels(cls, v: list[str]) -> list[str]:
        """Strip labels and drop empty entries."""
        return [label.strip() for label in v if label.strip()]


class AnnotationConfig(ConfigBaseModel):
    """Overlay annotation configuration.

    Attributes:
        line_width: Rectangle stroke width in pixels.
        font_size: Label font size in pixels.
        label_min_top: Labels are drawn only for boxes whose top edge is
            below this many pixels.
    """

    line_width: Annotated[int, Field(ge=1, le=50)] = 2
    font_size: Annotated[int, Field(ge=4, le=200)] = 12
    label_min_top: Annotated[float, Field(ge=0)] = 14


# ---------------------------------------------------------------------------
# Rasterization
# ---------------------------------------------------------------------------


class RasterConfig(ConfigBaseModel):
    """Page rasterization and splitting configuration.

    Attributes:
        scale: Render zoom factor applied to each PDF page.
        jpeg_quality: JPEG encoder quality.
        reading_order: Default reading order for splitting spreads.
        converted_dir: Sub-directory receiving whole rendered pages.
        split_dir: Sub-directory receiving split halves.
    """

    scale: Annotated[
        float,
        Field(gt=0, le=10, description="Render zoom factor"),
    ] = DEFAULT_RENDER_SCALE
    jpeg_quality: Annotated[
        int,
        Field(ge=1, le=100, description="JPEG quality"),
    ] = DEFAULT_JPEG_QUALITY
    reading_order: ReadingOrder = Field(default=ReadingOrder.LEFT_TO_RIGHT)
    converted_dir: str = Field(default=CONVERTED_DIR, min_length=1)
    split_dir: str = Field(default=SPLIT_DIR, min_length=1)

    @field_validator("reading_order", mode="before")
    @classmethod
    def normalize_reading_order(cls, v: object) -> object:
        """Accept reading orders in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


# ---------------------------------------------------------------------------
# Observability
# ---------------------------------------------------------------------------


class LoggingConfig(ConfigBaseModel):
    """Logging configuration.

    Attributes:
        level: Log verbosity level.
        format: Log output format (json, console or logfmt). When unset,
            console is used on a TTY and logfmt otherwise.
    """

    level: LogLevel = Field(default=LogLevel.INFO)
    format: LogFormat | None = Field(default=None)

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        """Accept level names in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class ObservabilityConfig(ConfigBaseModel):
    """Observability configuration.

    Attributes:
        logging: Logging configuration.
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
