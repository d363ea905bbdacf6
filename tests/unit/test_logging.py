"""Unit tests for the logging module."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from ocr_markup.observability import (
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


# ---------------------------------------------------------------------------
# TestLogLevel
# ---------------------------------------------------------------------------


class TestLogLevel:
    """Tests for LogLevel enum."""

    def test_log_level_values(self) -> None:
        """Test LogLevel enum values."""
        assert LogLevel.DEBUG == "debug"
        assert LogLevel.INFO == "info"
        assert LogLevel.WARNING == "warning"
        assert LogLevel.ERROR == "error"
        assert LogLevel.CRITICAL == "critical"

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            (LogLevel.DEBUG, logging.DEBUG),
            (LogLevel.INFO, logging.INFO),
            (LogLevel.WARNING, logging.WARNING),
            (LogLevel.ERROR, logging.ERROR),
            (LogLevel.CRITICAL, logging.CRITICAL),
        ],
    )
    def test_to_stdlib_level(self, level: LogLevel, expected: int) -> None:
        """Test conversion to stdlib levels."""
        assert level.to_stdlib_level() == expected


class TestLogRenderer:
    """Tests for LogRenderer enum."""

    def test_renderer_values(self) -> None:
        """Test LogRenderer enum values."""
        assert LogRenderer.CONSOLE == "console"
        assert LogRenderer.LOGFMT == "logfmt"
        assert LogRenderer.JSON == "json"


# ---------------------------------------------------------------------------
# TestRunContext
# ---------------------------------------------------------------------------


class TestRunContext:
    """Tests for run ID and source management."""

    def setup_method(self) -> None:
        """Clear context before each test."""
        clear_run_context()

    def teardown_method(self) -> None:
        """Clear context after each test."""
        clear_run_context()

    def test_generate_run_id_is_short_hex(self) -> None:
        """Test run IDs are 8 hexadecimal characters."""
        run_id = generate_run_id()
        assert len(run_id) == 8
        int(run_id, 16)

    def test_generate_run_id_unique(self) -> None:
        """Test each generated run ID is unique."""
        ids = {generate_run_id() for _ in range(100)}
        assert len(ids) == 100

    def test_get_run_id_default(self) -> None:
        """Test get_run_id returns None when not set."""
        assert get_run_id() is None

    def test_set_and_get_run_id(self) -> None:
        """Test setting and getting the run ID."""
        assert set_run_id("batch-1") == "batch-1"
        assert get_run_id() == "batch-1"

    def test_set_run_id_generates_when_none(self) -> None:
        """Test set_run_id generates an ID when None is passed."""
        run_id = set_run_id()
        assert len(run_id) == 8
        assert get_run_id() == run_id

    def test_clear_run_context(self) -> None:
        """Test clearing the run context."""
        set_run_id("batch-2")
        bind_source("scan.pdf")
        clear_run_context()
        assert get_run_id() is None
        assert structlog.contextvars.get_contextvars() == {}

    def test_bind_and_unbind_source(self) -> None:
        """Test the source name is bound into structlog's context."""
        bind_source("book.pdf")
        assert structlog.contextvars.get_contextvars()["source"] == "book.pdf"
        unbind_source()
        assert "source" not in structlog.contextvars.get_contextvars()


# ---------------------------------------------------------------------------
# TestConfigureLogging
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def setup_method(self) -> None:
        """Reset structlog configuration before each test."""
        structlog.reset_defaults()

    def teardown_method(self) -> None:
        """Reset structlog configuration after each test."""
        structlog.reset_defaults()

    def test_configure_with_string_level(self) -> None:
        """Test configuring with a string log level."""
        configure_logging(level="debug")

    def test_configure_with_uppercase_string(self) -> None:
        """Test configuring with an uppercase string level."""
        configure_logging(level="WARNING")

    def test_configure_with_string_renderer(self) -> None:
        """Test configuring with a renderer name."""
        configure_logging(level=LogLevel.INFO, renderer="JSON")

    def test_configure_invalid_level_raises(self) -> None:
        """Test invalid log level raises ValueError."""
        with pytest.raises(ValueError, match="'invalid' is not a valid LogLevel"):
            configure_logging(level="invalid")

    def test_configure_invalid_renderer_raises(self) -> None:
        """Test invalid renderer raises ValueError."""
        with pytest.raises(ValueError, match="is not a valid LogRenderer"):
            configure_logging(renderer="xml")


# ---------------------------------------------------------------------------
# TestGetLogger
# ---------------------------------------------------------------------------


class TestGetLogger:
    """Tests for get_logger output."""

    def setup_method(self) -> None:
        """Reset configuration and context before tests."""
        structlog.reset_defaults()
        clear_run_context()

    def teardown_method(self) -> None:
        """Reset configuration and context after tests."""
        clear_run_context()
        structlog.reset_defaults()

    def test_logger_can_log(self, capfd: pytest.CaptureFixture[str]) -> None:
        """Test that logger writes events to stderr."""
        configure_logging(level=LogLevel.DEBUG, renderer=LogRenderer.LOGFMT)
        get_logger(__name__).info("page_rendered")

        captured = capfd.readouterr()
        assert "event=page_rendered" in captured.err
        assert "level=info" in captured.err
        assert captured.out == ""

    def test_logger_includes_utc_timestamp(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        """Test that output includes an ISO 8601 UTC timestamp."""
        configure_logging(level=LogLevel.DEBUG, renderer=LogRenderer.LOGFMT)
        get_logger(__name__).info("page_rendered")

        captured = capfd.readouterr()
        assert "timestamp=" in captured.err
        assert "Z" in captured.err

    def test_logger_includes_run_id_and_source(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        """Test that run ID and source are attached from context."""
        configure_logging(level=LogLevel.DEBUG, renderer=LogRenderer.LOGFMT)
        set_run_id("run-abc")
        bind_source("scan.pdf")
        get_logger(__name__).info("page_rendered", page=3)

        captured = capfd.readouterr()
        assert "run_id=run-abc" in captured.err
        assert "source=scan.pdf" in captured.err
        assert "page=3" in captured.err

    def test_logger_with_initial_context(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        """Test initial context passed to get_logger is rendered."""
        configure_logging(level=LogLevel.DEBUG, renderer=LogRenderer.LOGFMT)
        get_logger(__name__, source="spread.jpg").info("image_split")

        captured = capfd.readouterr()
        assert "source=spread.jpg" in captured.err

    def test_json_renderer(self, capfd: pytest.CaptureFixture[str]) -> None:
        """Test JSON output is one parseable object per line."""
        configure_logging(level=LogLevel.DEBUG, renderer=LogRenderer.JSON)
        set_run_id("run-json")
        get_logger(__name__).info("outputs_built", markup_length=42)

        captured = capfd.readouterr()
        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["event"] == "outputs_built"
        assert record["markup_length"] == 42
        assert record["run_id"] == "run-json"
        assert record["level"] == "info"

    def test_logger_level_filtering(self, capfd: pytest.CaptureFixture[str]) -> None:
        """Test that logger filters by level."""
        configure_logging(level=LogLevel.WARNING, renderer=LogRenderer.LOGFMT)
        logger = get_logger(__name__)

        logger.debug("debug_message")
        logger.info("info_message")
        logger.warning("warning_message")

        captured = capfd.readouterr()
        assert "debug_message" not in captured.err
        assert "info_message" not in captured.err
        assert "warning_message" in captured.err

    def test_logfmt_quotes_values_with_spaces(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        """Test logfmt quotes values containing spaces."""
        configure_logging(level=LogLevel.DEBUG, renderer=LogRenderer.LOGFMT)
        get_logger(__name__).info("page_failed", error="bad page")

        captured = capfd.readouterr()
        assert 'error="bad page"' in captured.err
