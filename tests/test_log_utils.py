import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.logging import RichHandler

from k8sbake import log_utils

pytestmark = [pytest.mark.unit]


def _handlers_of(kind):
    return [h for h in log_utils.logger.handlers if isinstance(h, kind)]


def _console_handler():
    (handler,) = _handlers_of(RichHandler)
    return handler


class TestLogUtils:
    """Test suite for log_utils module."""

    def setup_method(self):
        """Reset logger state before each test."""
        for handler in log_utils.logger.handlers[:]:
            log_utils.logger.removeHandler(handler)
            handler.close()

        log_utils._file_handler = None
        log_utils._initialize_logger()

    def teardown_method(self):
        if log_utils._file_handler is not None:
            log_utils.logger.removeHandler(log_utils._file_handler)
            log_utils._file_handler.close()
            log_utils._file_handler = None

    def test_logger_initialization(self):
        assert log_utils.logger.name == "k8sbake"
        assert not log_utils.logger.propagate
        assert len(_handlers_of(RichHandler)) == 1
        assert _handlers_of(RotatingFileHandler) == []

    def test_logger_initialization_with_env_var(self):
        with patch.dict(os.environ, {"K8SBAKE_LOG_LEVEL": "DEBUG"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.DEBUG
            assert _console_handler().level == logging.DEBUG

    def test_logger_initialization_with_invalid_env_var(self):
        """An unknown level name falls back to INFO."""
        with patch.dict(os.environ, {"K8SBAKE_LOG_LEVEL": "CHATTY"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.INFO

    def test_reinitialization_does_not_stack_handlers(self):
        log_utils._initialize_logger()
        log_utils._initialize_logger()
        assert len(_handlers_of(RichHandler)) == 1

    def test_set_log_level_valid(self):
        log_utils.set_log_level("debug")
        assert log_utils.logger.level == logging.DEBUG

        log_utils.set_log_level("WARNING")
        assert log_utils.logger.level == logging.WARNING
        assert _console_handler().level == logging.WARNING

    def test_set_log_level_invalid(self):
        original_level = log_utils.logger.level
        log_utils.set_log_level("INVALID_LEVEL")
        assert log_utils.logger.level == original_level

    def test_set_log_level_with_non_rich_handler(self):
        """Non-Rich handlers switch between the INFO and DEBUG formats."""
        import io

        standard_handler = logging.StreamHandler(io.StringIO())
        log_utils.logger.addHandler(standard_handler)
        try:
            log_utils.set_log_level("INFO")
            assert standard_handler.formatter._fmt == log_utils.INFO_LOG_FORMAT
            assert _console_handler().formatter._fmt == "%(message)s"

            log_utils.set_log_level("DEBUG")
            assert standard_handler.formatter._fmt == log_utils.DEBUG_LOG_FORMAT
            assert standard_handler.formatter.datefmt == log_utils.LOG_DATE_FORMAT
        finally:
            log_utils.logger.removeHandler(standard_handler)

    def test_add_file_logging(self, tmp_path):
        log_utils.add_file_logging(tmp_path, "INFO")

        assert _handlers_of(RotatingFileHandler) == [log_utils._file_handler]
        assert len(_handlers_of(RichHandler)) == 1
        assert (tmp_path / "k8sbake.log").exists()

    def test_add_file_logging_replaces_existing(self, tmp_path):
        log_utils.add_file_logging(tmp_path, "INFO")
        first_handler = log_utils._file_handler

        log_utils.add_file_logging(tmp_path, "DEBUG")

        assert log_utils._file_handler is not first_handler
        assert first_handler not in log_utils.logger.handlers
        assert _handlers_of(RotatingFileHandler) == [log_utils._file_handler]
        assert log_utils._file_handler.level == logging.DEBUG

    def test_add_file_logging_invalid_level_defaults_to_info(self, tmp_path):
        log_utils.add_file_logging(tmp_path, "NOPE")
        assert log_utils._file_handler.level == logging.INFO

    def test_file_logging_creates_directory(self, tmp_path):
        log_dir = Path(tmp_path) / "nested" / "log" / "dir"
        assert not log_dir.exists()

        log_utils.add_file_logging(log_dir)

        assert (log_dir / "k8sbake.log").exists()

    def test_rotating_file_handler_configuration(self, tmp_path):
        log_utils.add_file_logging(tmp_path, "INFO")

        handler = log_utils._file_handler
        assert handler.maxBytes == 10 * 1024 * 1024
        assert handler.backupCount == 5
        assert handler.encoding == "utf-8"

    def test_file_log_receives_messages(self, tmp_path):
        log_utils.add_file_logging(tmp_path, "INFO")
        log_utils.logger.info("Downloading helm v3.12.0")
        log_utils._file_handler.flush()

        content = (tmp_path / "k8sbake.log").read_text(encoding="utf-8")
        assert "Downloading helm v3.12.0" in content
