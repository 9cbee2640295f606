"""
Tests for structured logging configuration.
"""

import logging

import pytest
import structlog

from apps.core.logging import (
    SERVICE_NAME,
    _add_service,
    _add_trace_id,
    _stringify_ids,
    bind_contextvars,
    clear_contextvars,
    configure_logging,
    get_contextvars,
    get_logger,
)


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_json_format(self):
        """Should configure structlog for JSON output."""
        configure_logging(json_format=True, log_level="INFO")

        assert structlog.is_configured()
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_console_format(self):
        """Should configure structlog for console output."""
        configure_logging(json_format=False, log_level="DEBUG")

        assert structlog.is_configured()
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        """Should use INFO for an unrecognised level name."""
        configure_logging(json_format=True, log_level="CHATTY")

        assert logging.getLogger().level == logging.INFO


class TestProcessors:
    """Tests for the custom processors."""

    def test_correlation_id_renamed_to_trace_id(self):
        """Should expose correlation_id as trace_id."""
        event_dict = _add_trace_id(None, "info", {"event": "x", "correlation_id": "abc-123"})

        assert event_dict == {"event": "x", "trace_id": "abc-123"}

    def test_service_added(self):
        """Should tag every record with the service name."""
        assert _add_service(None, "info", {"event": "x"})["service"] == SERVICE_NAME

    def test_uuid_ids_stringified(self):
        """Should render UUID-valued *_id fields as strings."""
        from uuid import UUID

        camp_id = UUID("12345678-1234-5678-1234-567812345678")

        event_dict = _stringify_ids(None, "info", {"camp_id": camp_id, "count": 2, "event_id": None})

        assert event_dict["camp_id"] == "12345678-1234-5678-1234-567812345678"
        assert event_dict["count"] == 2
        assert event_dict["event_id"] is None


class TestContextVars:
    """Tests for context variable binding."""

    def setup_method(self):
        clear_contextvars()

    def teardown_method(self):
        clear_contextvars()

    def test_bind_contextvars_with_dotted_keys(self):
        """Should accept dotted keys such as actor.id."""
        bind_contextvars(**{"actor.id": "prof_1", "actor.role": "Commander", "correlation_id": "c-1"})

        ctx = get_contextvars()
        assert ctx["actor.id"] == "prof_1"
        assert ctx["actor.role"] == "Commander"
        assert ctx["correlation_id"] == "c-1"

    def test_clear_contextvars_removes_context(self):
        """Should remove all bound context."""
        bind_contextvars(correlation_id="abc123")
        clear_contextvars()

        assert get_contextvars() == {}


class TestLogOutput:
    """Tests for actual log output."""

    def setup_method(self):
        clear_contextvars()
        configure_logging(json_format=True, log_level="DEBUG")

    def teardown_method(self):
        clear_contextvars()

    def test_json_log_output_format(self, caplog: pytest.LogCaptureFixture):
        """Should emit the event name through the stdlib logger."""
        logger = get_logger("test.json_output")
        bind_contextvars(correlation_id="test-correlation-123")

        with caplog.at_level(logging.DEBUG, logger="test.json_output"):
            logger.info("casualty_added", color="red", count=1)

        assert len(caplog.records) > 0
        assert "casualty_added" in caplog.text
