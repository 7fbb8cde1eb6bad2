"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import pytest
import structlog

from cigraph.config.models import LoggingConfig, LogOutputConfig
from cigraph.core.logging import (
    clear_request_id,
    configure_logging,
    get_log_file_path,
    get_logger,
    get_request_id,
    set_request_id,
)


class TestRequestIdCorrelation:
    """Request ID context variable tests."""

    def setup_method(self) -> None:
        """Clear request ID before each test."""
        clear_request_id()

    def test_given_request_id_when_set_then_can_retrieve(self) -> None:
        """Request ID can be set and retrieved."""
        # When
        result = set_request_id("ingest-123")

        # Then
        assert result == "ingest-123"
        assert get_request_id() == "ingest-123"

    def test_given_no_id_when_set_then_generates_short_hex(self) -> None:
        """Set generates a 12-char id when none provided."""
        rid = set_request_id()

        assert len(rid) == 12
        assert get_request_id() == rid

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        """Clear removes the current request ID."""
        set_request_id("to-clear")

        clear_request_id()

        assert get_request_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        """Reset structlog and stdlib logging before each test."""
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        clear_request_id()

    def test_given_json_file_output_when_log_then_valid_json_lines(self, tmp_path: Path) -> None:
        """JSON output produces one parseable object per event with required fields."""
        # Given
        log_file = tmp_path / "cigraph.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        logger = get_logger("ingest")

        # When
        logger.info("ingest_started", tenant_id="t-1")

        # Then
        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "ingest_started"
        assert data["tenant_id"] == "t-1"
        assert data["logger"] == "ingest"
        assert data["level"] == "info"
        assert "timestamp" in data

    def test_given_request_id_when_log_then_included(self, tmp_path: Path) -> None:
        """The current request id is attached to every event."""
        log_file = tmp_path / "cigraph.log"
        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(format="json", destination=str(log_file))])
        )
        set_request_id("req-42")

        get_logger().info("ingest_flush")

        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["request_id"] == "req-42"

    def test_given_config_object_when_configure_then_takes_precedence(self, tmp_path: Path) -> None:
        """LoggingConfig object takes precedence over simple params."""
        # Given
        log_file = tmp_path / "test.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        # When - config's DEBUG should override the level="ERROR" param
        configure_logging(config=config, json_format=False, level="ERROR")
        get_logger().debug("debug msg")

        # Then
        assert "debug msg" in log_file.read_text()
        assert get_log_file_path() == log_file

    def test_given_multi_output_config_when_configure_then_logs_by_level(
        self, tmp_path: Path
    ) -> None:
        """Multiple outputs receive logs according to their levels."""
        # Given
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        logger = get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        # Then
        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_given_configure_when_called_then_http_client_loggers_quieted(self) -> None:
        """httpx chatter is raised to WARNING."""
        configure_logging(level="DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_relative_file_destination_rejected(self) -> None:
        """File destinations must be absolute."""
        with pytest.raises(ValueError):
            LogOutputConfig(destination="relative.log")
