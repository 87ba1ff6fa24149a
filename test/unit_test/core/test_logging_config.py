"""Unit tests for logging configuration module.

Tests verify that the logging configuration functions work correctly with different
scenarios including various log levels, formats, and file logging options.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from automation_engine.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    root_logger = logging.getLogger()
    saved_handlers = root_logger.handlers[:]
    saved_level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in saved_handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(saved_level)


def _console_handler() -> logging.Handler:
    root_logger = logging.getLogger()
    handler = next(
        (h for h in root_logger.handlers if type(h) is logging.StreamHandler),
        None,
    )
    assert handler is not None
    return handler


class TestSetupLoggingLogLevels:
    """Test setup_logging with different log levels."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("debug", logging.DEBUG),  # Test lowercase
        ],
    )
    def test_setup_logging_with_different_levels(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)

        assert _console_handler().level == expected_level

    def test_root_logger_captures_everything(self):
        setup_logging(log_level="ERROR", enable_file=False)

        assert logging.getLogger().level == logging.DEBUG


class TestSetupLoggingFormats:
    """Test setup_logging with different log formats."""

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [
            ("simple", SIMPLE_FORMAT),
            ("detailed", DETAILED_FORMAT),
            ("json", JSON_FORMAT),
        ],
    )
    def test_setup_logging_with_different_formats(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)

        assert _console_handler().formatter._fmt == expected_format

    def test_unknown_format_falls_back_to_detailed(self):
        setup_logging(log_format="fancy", enable_file=False)

        assert _console_handler().formatter._fmt == DETAILED_FORMAT

    def test_setup_logging_format_with_timestamp(self):
        setup_logging(log_format="detailed", enable_file=False)

        assert _console_handler().formatter.datefmt == "%Y-%m-%d %H:%M:%S"


class TestSetupLoggingFileHandling:
    """Test setup_logging file logging functionality."""

    def test_setup_logging_with_file_enabled(self, tmp_path: Path):
        with patch("automation_engine.core.logging_config.LOG_FILE_DIR", str(tmp_path)):
            with patch("automation_engine.core.logging_config.ENABLE_FILE_LOGGING", True):
                setup_logging(log_level="ERROR", enable_file=True)

        file_handler = next(
            (h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)),
            None,
        )
        assert file_handler is not None
        # File handler should always be DEBUG
        assert file_handler.level == logging.DEBUG
        assert Path(file_handler.baseFilename) == tmp_path / "automation_engine.log"

    def test_file_logging_needs_the_global_switch(self, tmp_path: Path):
        with patch("automation_engine.core.logging_config.LOG_FILE_DIR", str(tmp_path)):
            with patch("automation_engine.core.logging_config.ENABLE_FILE_LOGGING", False):
                setup_logging(enable_file=True)

        assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)

    def test_setup_logging_creates_log_directory(self, tmp_path: Path):
        log_dir = tmp_path / "new_logs"
        with patch("automation_engine.core.logging_config.LOG_FILE_DIR", str(log_dir)):
            with patch("automation_engine.core.logging_config.ENABLE_FILE_LOGGING", True):
                setup_logging(enable_file=True)

        assert log_dir.exists()


class TestSetupLoggingHandlerManagement:
    """Test setup_logging handler management."""

    def test_setup_logging_removes_existing_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)

        assert len(logging.getLogger().handlers) == 1


class TestModuleLogLevels:
    """Test module-specific log levels."""

    def test_module_log_levels_are_applied(self):
        setup_logging(enable_file=False)

        for module_name, module_level in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == logging.getLevelName(module_level)

    def test_third_party_libraries_are_quiet(self):
        assert MODULE_LOG_LEVELS["httpx"] == "WARNING"
        assert MODULE_LOG_LEVELS["sqlalchemy.engine"] == "WARNING"

    def test_get_logger_returns_named_logger(self):
        logger = get_logger("automation_engine.runtime.interpreter")

        assert logger.name == "automation_engine.runtime.interpreter"
        assert logger is logging.getLogger("automation_engine.runtime.interpreter")
