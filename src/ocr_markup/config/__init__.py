"""Configuration module for ocr-markup.

This module provides configuration management using Pydantic settings with
support for YAML files and environment variable overrides. Configuration
values support ${VAR} and ${VAR:-default} syntax for environment variable
interpolation.

Example:
    >>> from ocr_markup.config import load_settings, get_settings
    >>>
    >>> settings = load_settings()
    >>> print(settings.raster.reading_order)
    LR
    >>> print(settings.annotation.line_width)
    2
    >>>
    >>> # Use cached singleton
    >>> settings = get_settings()
"""

from __future__ import annotations

from ocr_markup.config.exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationValidationError,
)
from ocr_markup.config.schema import (
    AnnotationConfig,
    ConfigBaseModel,
    LogFormat,
    LoggingConfig,
    LogLevel,
    MarkdownConfig,
    MarkupConfig,
    ObservabilityConfig,
    RasterConfig,
)
from ocr_markup.config.settings import (
    Settings,
    clear_settings_cache,
    find_config_file,
    get_settings,
    load_settings,
)


__all__ = [
    "AnnotationConfig",
    "ConfigBaseModel",
    "ConfigurationError",
    "ConfigurationFileNotFoundError",
    "ConfigurationValidationError",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "MarkdownConfig",
    "MarkupConfig",
    "ObservabilityConfig",
    "RasterConfig",
    "Settings",
    "clear_settings_cache",
    "find_config_file",
    "get_settings",
    "load_settings",
]
