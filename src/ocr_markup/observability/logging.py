"""Structured logging configuration for ocr-markup.

This module provides a human-readable, machine-parseable logging setup using
structlog. It supports:
- Configurable log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- Console, logfmt or JSON rendering (console auto-selected on a TTY)
- A run ID and the current source file bound via contextvars, so the log
  lines of one batch item can be correlated
- ISO 8601 timestamps in UTC
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from structlog.contextvars import (
    bind_contextvars,
    clear_contextvars,
    merge_contextvars,
    unbind_contextvars,
)
from structlog.processors import TimeStamper, add_log_level


if TYPE_CHECKING:
    from structlog.typing import EventDict, WrappedLogger

__all__ = [
    "LogLevel",
    "LogRenderer",
    "bind_source",
    "clear_run_context",
    "configure_logging",
    "generate_run_id",
    "get_logger",
    "get_run_id",
    "set_run_id",
    "unbind_source",
]


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_stdlib_level(self) -> int:
        """Convert to stdlib logging level.

        Returns:
            The corresponding logging module level constant.
        """
        level: int = getattr(logging, self.name)
        return level


class LogRenderer(StrEnum):
    """Output renderers.

    Attributes:
        CONSOLE: Colorized, human-friendly output.
        LOGFMT: ``key=value`` lines for machines and humans.
        JSON: One JSON object per line.
    """

    CONSOLE = "console"
    LOGFMT = "logfmt"
    JSON = "json"


# Context variable for run ID tracking
_run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)


def generate_run_id() -> str:
    """Generate a new unique run ID.

    Returns:
        A short UUID-based run ID (first 8 characters).
    """
    return uuid.uuid4().hex[:8]


def get_run_id() -> str | None:
    """Get the current run ID from context.

    Returns:
        The current run ID, or None if not set.
    """
    return _run_id_var.get()


def set_run_id(run_id: str | None = None) -> str:
    """Set the run ID in context.

    If no run_id is provided, a new one is generated.
    Also binds the run_id to structlog's contextvars.

    Args:
        run_id: Optional run ID to set. If None, generates a new one.

    Returns:
        The run ID that was set.
    """
    if run_id is None:
        run_id = generate_run_id()

    _run_id_var.set(run_id)
    bind_contextvars(run_id=run_id)
    return run_id


def bind_source(name: str) -> None:
    """Bind the name of the file currently being processed to log context."""
    bind_contextvars(source=name)


def unbind_source() -> None:
    """Remove the current source file from log context."""
    unbind_contextvars("source")


def clear_run_context() -> None:
    """Clear the run context (run ID, source and other structlog contextvars)."""
    _run_id_var.set(None)
    clear_contextvars()


def add_run_id(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add run_id to event dict if present in context and not already set.

    Args:
        logger: The wrapped logger object (unused but required by protocol).
        method_name: The name of the log method called (unused but required).
        event_dict: The event dictionary to process.

    Returns:
        The event dictionary with run_id added if available.
    """
    del logger, method_name  # Unused but required by processor protocol
    if "run_id" not in event_dict:
        run_id = get_run_id()
        if run_id is not None:
            event_dict["run_id"] = run_id
    return event_dict


def _create_renderer(
    renderer: LogRenderer,
) -> (
    structlog.dev.ConsoleRenderer
    | structlog.processors.LogfmtRenderer
    | structlog.processors.JSONRenderer
):
    """Create the final renderer processor."""
    if renderer == LogRenderer.CONSOLE:
        return structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )
    if renderer == LogRenderer.JSON:
        return structlog.processors.JSONRenderer()
    return structlog.processors.LogfmtRenderer(
        key_order=["timestamp", "level", "event", "run_id", "source"],
        drop_missing=True,
        bool_as_flag=False,  # Use explicit true/false for machines
    )


def _stderr_is_tty() -> bool:
    return (
        sys.stderr is not None
        and hasattr(sys.stderr, "isatty")
        and sys.stderr.isatty()
    )


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    *,
    renderer: LogRenderer | str | None = None,
) -> None:
    """Configure structured logging for the application.

    This function should be called once at startup, typically by the CLI.

    Args:
        level: Minimum log level. Can be a LogLevel enum or string
            ('debug', 'info', 'warning', 'error', 'critical').
        renderer: Output renderer. If None, console output is used on a
            TTY and logfmt otherwise.

    Example:
        >>> from ocr_markup.observability import configure_logging, LogLevel
        >>> configure_logging(level=LogLevel.DEBUG)
        >>> configure_logging(level="info", renderer="json")
    """
    if isinstance(level, str):
        level = LogLevel(level.lower())

    if renderer is None:
        renderer = LogRenderer.CONSOLE if _stderr_is_tty() else LogRenderer.LOGFMT
    elif isinstance(renderer, str):
        renderer = LogRenderer(renderer.lower())

    processors: list[structlog.typing.Processor] = [
        merge_contextvars,
        add_run_id,
        add_log_level,
        TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if renderer == LogRenderer.JSON:
        processors.append(structlog.processors.format_exc_info)
    processors.append(_create_renderer(renderer))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level.to_stdlib_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Also configure stdlib logging for libraries that use it
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level.to_stdlib_level(),
        force=True,
    )


def get_logger(
    name: str | None = None,
    **initial_context: object,
) -> structlog.BoundLogger:
    """Get a structured logger instance.

    The logger automatically includes any context bound via contextvars
    (like run_id and source).

    Args:
        name: Logger name, typically __name__ of the calling module.
        **initial_context: Initial key-value pairs to bind to the logger.

    Returns:
        A bound structlog logger.

    Example:
        >>> logger = get_logger(__name__, source="scan.pdf")
        >>> logger.info("rasterizing_document", pages=12)
        2024-01-15T10:30:45.123456Z [info] rasterizing_document pages=12 source=scan.pdf
    """
    log: structlog.BoundLogger = structlog.get_logger(name)
    if initial_context:
        log = log.bind(**initial_context)
    return log
