"""Settings management for ocr-markup.

This module provides the main Settings class and functions for loading
configuration from YAML files and environment variables.

Example:
    >>> from ocr_markup.config import load_settings
    >>> settings = load_settings()
    >>> print(settings.markup.bbox_scale)
    1024
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from ocr_markup.config.exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationValidationError,
)
from ocr_markup.config.schema import (
    AnnotationConfig,
    MarkdownConfig,
    MarkupConfig,
    ObservabilityConfig,
    RasterConfig,
)


if TYPE_CHECKING:
    from collections.abc import Sequence


__all__ = [
    "Settings",
    "clear_settings_cache",
    "find_config_file",
    "get_settings",
    "load_settings",
]


# ---------------------------------------------------------------------------
# Environment Variable Interpolation
# ---------------------------------------------------------------------------

# ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _interpolate_env_vars(value: object) -> object:
    """Recursively interpolate ${VAR} and ${VAR:-default} in strings.

    Unset variables without a default become empty strings. Dicts and
    lists are processed recursively; other values are returned unchanged.

    Example:
        >>> os.environ["PAGE_ORDER"] = "RL"
        >>> _interpolate_env_vars({"reading_order": "${PAGE_ORDER}"})
        {'reading_order': 'RL'}
        >>> _interpolate_env_vars("${MISSING:-90}")
        '90'
    """
    if isinstance(value, str):

        def replace(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            return match.group(2) or ""

        return _ENV_VAR_PATTERN.sub(replace, value)

    if isinstance(value, dict):
        return {k: _interpolate_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [_interpolate_env_vars(item) for item in value]

    return value


class _InterpolatingYamlConfigSettingsSource(YamlConfigSettingsSource):
    """YAML settings source that interpolates environment variables."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | str | None = None,
    ) -> None:
        # Without an explicit file the parent falls back to model_config
        if yaml_file is not None:
            super().__init__(settings_cls, yaml_file=yaml_file)
        else:
            super().__init__(settings_cls)

    def _read_files(
        self,
        files: Path | str | Sequence[Path | str] | None,
    ) -> dict[str, Any]:
        interpolated = _interpolate_env_vars(super()._read_files(files))
        if not isinstance(interpolated, dict):  # pragma: no cover
            return {}
        return interpolated


# ---------------------------------------------------------------------------
# Settings Class
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Application settings loaded from YAML file and environment variables.

    Settings are loaded in priority order (highest to lowest):
    1. Constructor arguments
    2. Environment variables (``OCR_MARKUP_*``, nested with ``__``)
    3. YAML configuration file
    4. Default values

    Attributes:
        markup: Canonical markup coordinate settings.
        markdown: Markdown projection settings.
        annotation: Overlay drawing settings.
        raster: Rasterization and splitting settings.
        observability: Logging settings.

    Example:
        >>> # OCR_MARKUP_RASTER__READING_ORDER=RL ocr-markup split book.pdf
        >>> settings = load_settings()
        >>> settings.raster.reading_order
        <ReadingOrder.RIGHT_TO_LEFT: 'RL'>
    """

    model_config = SettingsConfigDict(
        yaml_file=None,  # Search paths are used instead
        yaml_file_encoding="utf-8",
        env_prefix="OCR_MARKUP_",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    CONFIG_SEARCH_PATHS: ClassVar[list[Path]] = [
        Path("config.yaml"),
        Path("config.yml"),
        Path.home() / ".config" / "ocr-markup" / "config.yaml",
        Path("/etc/ocr-markup/config.yaml"),
    ]

    # Set by load_settings() for the duration of one instantiation
    _yaml_file_override: ClassVar[Path | str | None] = None

    markup: MarkupConfig = MarkupConfig()
    markdown: MarkdownConfig = MarkdownConfig()
    annotation: AnnotationConfig = AnnotationConfig()
    raster: RasterConfig = RasterConfig()
    observability: ObservabilityConfig = ObservabilityConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources as init, environment, YAML, then file secrets.

        dotenv is excluded; YAML files take its place.
        """
        return (
            init_settings,
            env_settings,
            _InterpolatingYamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._yaml_file_override,
            ),
            file_secret_settings,
        )


# ---------------------------------------------------------------------------
# Settings Loading Functions
# ---------------------------------------------------------------------------

_cached_settings: Settings | None = None


def find_config_file(config_path: Path | str | None = None) -> Path | None:
    """Find the configuration file.

    Args:
        config_path: Explicit path to config file, or None to search
            default locations.

    Returns:
        Path to config file if found, None otherwise.
    """
    if config_path is not None:
        path = Path(config_path)
        return path if path.is_file() else None

    for search_path in Settings.CONFIG_SEARCH_PATHS:
        if search_path.is_file():
            return search_path

    return None


def load_settings(
    config_path: Path | str | None = None,
    *,
    require_config_file: bool = False,
) -> Settings:
    """Load and validate application settings.

    The loaded settings are cached for subsequent calls to get_settings().

    Args:
        config_path: Path to YAML config file. If None, searches standard
            locations (./config.yaml, ./config.yml,
            ~/.config/ocr-markup/config.yaml, /etc/ocr-markup/config.yaml).
        require_config_file: If True, raise error when no config file found.
            Otherwise environment variables and defaults are used.

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationFileNotFoundError: When require_config_file=True and
            no config file is found.
        ConfigurationValidationError: When configuration validation fails.
    """
    global _cached_settings  # noqa: PLW0603

    config_file = find_config_file(config_path)

    if config_file is None and require_config_file:
        raise ConfigurationFileNotFoundError(
            path=str(config_path) if config_path else None,
            searched_paths=[str(p) for p in Settings.CONFIG_SEARCH_PATHS],
        )

    Settings._yaml_file_override = config_file  # noqa: SLF001
    try:
        settings = Settings()
    except ConfigurationError:
        raise
    except ValidationError as exc:
        msg = f"Invalid configuration: {exc.error_count()} error(s)"
        raise ConfigurationValidationError(
            msg,
            errors=[dict(error) for error in exc.errors()],
        ) from exc
    except Exception as exc:
        msg = f"Failed to load configuration: {exc}"
        raise ConfigurationValidationError(msg) from exc
    finally:
        Settings._yaml_file_override = None  # noqa: SLF001

    _cached_settings = settings
    return settings


def get_settings() -> Settings:
    """Get the cached settings instance, loading if necessary."""
    global _cached_settings  # noqa: PLW0603

    if _cached_settings is None:
        _cached_settings = load_settings()

    return _cached_settings


def clear_settings_cache() -> None:
    """Clear the cached settings instance.

    Tests use this to start from a fresh settings state.
    """
    global _cached_settings  # noqa: PLW0603
    _cached_settings = None
