"""Tests for logging configuration."""

import pytest

import logging

from stakewatch.helpers.logging import get_logger, loggers, set_log_level


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_returns_logger(self) -> None:
        """Test that get_logger returns a logger instance."""
        logger = get_logger("test_module")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "test_module"

    def test_get_logger_same_name_returns_same_instance(self) -> None:
        """Test that getting logger with same name returns same instance."""
        logger1 = get_logger("test_same")
        logger2 = get_logger("test_same")

        assert logger1 is logger2

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    def test_get_logger_with_level(self, level: str) -> None:
        """Test get_logger applies each level name."""
        logger = get_logger(f"test_level_{level.lower()}", log_level=level)

        assert logger.level == getattr(logging, level)

    def test_get_logger_default_level(self) -> None:
        """Test get_logger with default level."""
        logger = get_logger("test_default")

        assert logger.level == logging.INFO

    def test_get_logger_invalid_level_raises(self) -> None:
        """Test that invalid log level raises ValueError."""
        with pytest.raises(ValueError, match="Invalid log level"):
            get_logger("test_invalid", log_level="INVALID")

    def test_get_logger_invalid_handler_raises(self) -> None:
        """Test that invalid handler raises ValueError."""
        with pytest.raises(ValueError, match="Invalid handler"):
            get_logger("test_invalid_handler", log_handler="invalid")

    def test_get_logger_with_color(self) -> None:
        """Test get_logger with color enabled."""
        logger = get_logger("test_color", log_color=True)

        assert len(logger.handlers) > 0

    def test_logger_can_log_messages(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that configured logger can log messages."""
        logger = get_logger("test_log_messages", log_level="DEBUG")

        with caplog.at_level(logging.DEBUG, logger="test_log_messages"):
            logger.debug("Debug message")
            logger.warning("Warning message")

        assert any("Debug message" in record.message for record in caplog.records)
        assert any("Warning message" in record.message for record in caplog.records)

    def test_module_loggers_are_cached(self) -> None:
        """Test project modules register their loggers in the cache."""
        import stakewatch.data.events.fetcher  # noqa: F401

        assert "stakewatch.data.events.fetcher" in loggers


@pytest.mark.usefixtures("restore_log_level")
class TestSetLogLevel:
    """Tests for set_log_level function."""

    def test_applies_to_existing_loggers(self) -> None:
        """Test every cached logger and its handlers get the new level."""
        logger = get_logger("test_set_level_existing")

        set_log_level("ERROR")

        assert logger.level == logging.ERROR
        assert all(handler.level == logging.ERROR for handler in logger.handlers)

    def test_suppresses_lower_levels(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test messages below the new level are dropped."""
        logger = get_logger("test_set_level_quiet")
        set_log_level("WARNING")

        with caplog.at_level(logging.DEBUG):
            logger.info("hidden info")
            logger.warning("visible warning")

        messages = [record.message for record in caplog.records]
        assert "visible warning" in messages
        assert "hidden info" not in messages

    def test_invalid_level_raises(self) -> None:
        """Test unknown level names are rejected."""
        with pytest.raises(ValueError, match="Invalid log level"):
            set_log_level("LOUD")
