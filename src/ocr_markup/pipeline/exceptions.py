"""Pipeline-specific exceptions.

Only the fail-fast parts of the pipeline raise these: page rasterization,
spread splitting and bounding-box annotation. Normalization and Markdown
projection are best-effort and never raise.
"""

from __future__ import annotations


__all__ = [
    "AnnotationError",
    "PipelineError",
    "RasterizationError",
]


class PipelineError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        """Return string representation."""
        return self.message


class RasterizationError(PipelineError):
    """Error while decoding, rendering, splitting or encoding a page.

    Scoped to a single page or file. Batch callers catch it and move on
    to the next item.

    Attributes:
        message: Human-readable error description.
        page: The page number where the error occurred (1-indexed).
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        page: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            page: The page number where the error occurred (1-indexed).
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.page = page
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        """Return string representation with page number if available."""
        if self.page is not None:
            return f"{self.message} (page={self.page})"
        return self.message


class AnnotationError(PipelineError):
    """Error while preparing an image for bounding-box annotation.

    Raised when the source image cannot be decoded or no drawing surface
    can be obtained for it. Individual malformed boxes never raise.

    Attributes:
        message: Human-readable error description.
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause
