"""Configuration-specific exceptions for ocr-markup."""

from __future__ import annotations


__all__ = [
    "ConfigurationError",
    "ConfigurationFileNotFoundError",
    "ConfigurationValidationError",
]


class ConfigurationError(Exception):
    """Base exception for configuration errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationFileNotFoundError(ConfigurationError):
    """Raised when a required configuration file cannot be found.

    Attributes:
        path: The path that was requested, or None when searching defaults.
        searched_paths: Default locations that were searched.
    """

    def __init__(
        self,
        path: str | None = None,
        searched_paths: list[str] | None = None,
    ) -> None:
        self.path = path
        self.searched_paths = searched_paths or []

        if path:
            message = f"Configuration file not found: {path}"
        elif self.searched_paths:
            message = (
                "Configuration file not found. Searched: "
                + ", ".join(self.searched_paths)
            )
        else:
            message = "Configuration file not found"

        super().__init__(message)


class ConfigurationValidationError(ConfigurationError):
    """Raised when configuration values fail validation.

    Attributes:
        errors: Validation error details as reported by Pydantic.
    """

    def __init__(
        self,
        message: str,
        errors: list[dict[str, object]] | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []

    def describe(self) -> list[str]:
        """Render each validation error as ``section.field: reason``.

        Returns:
            One line per error, in the order Pydantic reported them.
        """
        lines: list[str] = []
        for error in self.errors:
            loc = error.get("loc")
            if isinstance(loc, (tuple, list)) and loc:
                where = ".".join(str(part) for part in loc)
            else:
                where = "<root>"
            lines.append(f"{where}: {error.get('msg', 'invalid value')}")
        return lines
