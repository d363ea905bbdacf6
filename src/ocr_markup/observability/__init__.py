"""Observability module (structured logging)."""

from __future__ import annotations

from ocr_markup.observability.logging import (
    LogLevel,
    LogRenderer,
    bind_source,
    clear_run_context,
    configure_logging,
    generate_run_id,
    get_logger,
    get_run_id,
    set_run_id,
    unbind_source,
)


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
