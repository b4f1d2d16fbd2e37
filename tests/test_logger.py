"""
Tests for logging setup.
"""

import logging

import pytest

from src.scunet_auth.core.logger import LoggerContext, RedactingFilter, setup_logger


class TestSetupLogger:
    """Test cases for setup_logger."""

    def test_file_and_console_handlers(self, tmp_path):
        log_file = tmp_path / "logs" / "auth.log"
        logger = setup_logger("scunet_auth.test", str(log_file), "WARNING")

        assert len(logger.handlers) == 2
        assert logger.handlers[0].level == logging.WARNING
        assert logger.level == logging.DEBUG
        assert not logger.propagate

        logger.debug("debug line")
        for handler in logger.handlers:
            handler.flush()
        assert "debug line" in log_file.read_text(encoding="utf-8")

    def test_empty_log_file_disables_file_handler(self):
        logger = setup_logger("scunet_auth.console", "", "INFO")
        assert len(logger.handlers) == 1

    def test_repeated_setup_does_not_duplicate(self, tmp_path):
        setup_logger("scunet_auth.again", str(tmp_path / "a.log"))
        logger = setup_logger("scunet_auth.again", str(tmp_path / "a.log"))
        assert len(logger.handlers) == 2


class TestRedactingFilter:
    """Test secrets are removed from log records."""

    @pytest.mark.parametrize("message, expected", [
        ("GET /login?user_account=u1&user_password=s3cret&v=1", "GET /login?user_account=u1&user_password=***&v=1"),
        ("form userId=u1&password=s3cret", "form userId=u1&password=***"),
        ("logout pass=s3cret", "logout pass=***"),
        ("nothing to hide", "nothing to hide"),
    ])
    def test_redacts(self, message, expected):
        record = logging.LogRecord("t", logging.INFO, __file__, 1, message, (), None)

        assert RedactingFilter().filter(record)
        assert record.getMessage() == expected


class TestLoggerContext:
    """Test operation timing."""

    def test_success(self, caplog):
        logger = logging.getLogger("ctx_test")
        with caplog.at_level(logging.INFO, logger="ctx_test"):
            with LoggerContext(logger, "login", "abc123"):
                pass

        assert "[abc123] Starting login" in caplog.text
        assert "[abc123] Completed login" in caplog.text

    def test_failure_propagates(self, caplog):
        logger = logging.getLogger("ctx_test")
        with caplog.at_level(logging.INFO, logger="ctx_test"):
            with pytest.raises(ValueError):
                with LoggerContext(logger, "logout"):
                    raise ValueError("boom")

        assert "Failed logout" in caplog.text
