"""Tests for logger module."""

import logging
from unittest.mock import patch

from chatwarden.util.logger import (
    DATE_FORMAT,
    LOG_FORMAT,
    LOGS_DIR,
    ColorFormatter,
    get_log_filepath,
    get_logger,
    handle_exception,
    setup_logger,
    should_use_color,
    silence_loggers,
)


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
        func="test_func",
    )


class TestShouldUseColor:
    """Tests for should_use_color function."""

    @patch('sys.stderr.isatty')
    def test_should_use_color_tty(self, mock_isatty):
        """Color is enabled for a TTY."""
        mock_isatty.return_value = True
        assert should_use_color() is True

    @patch('sys.stderr.isatty')
    def test_should_use_color_no_tty(self, mock_isatty):
        """Color is disabled when stderr is redirected."""
        mock_isatty.return_value = False
        assert should_use_color() is False

    @patch('sys.stderr.isatty')
    def test_should_use_color_exception(self, mock_isatty):
        """Errors while probing the stream disable color."""
        mock_isatty.side_effect = Exception("Error")
        assert should_use_color() is False


class TestColorFormatter:
    """Tests for ColorFormatter class."""

    def test_error_records_are_red(self):
        formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        formatted = formatter.format(_record(logging.ERROR, "Error message"))
        assert formatted.startswith("\033[31m")
        assert formatted.endswith("\033[0m")
        assert "Error message" in formatted

    def test_debug_records_are_cyan(self):
        formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        formatted = formatter.format(_record(logging.DEBUG, "Debug message"))
        assert formatted.startswith("\033[36m")


class TestSetupLogger:
    """Tests for setup_logger function."""

    def test_setup_logger_creates_logger(self):
        logger = setup_logger("chatwarden_test_logger_1")

        assert logger.name == "chatwarden_test_logger_1"
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_setup_logger_returns_existing(self):
        logger1 = setup_logger("chatwarden_test_logger_2")
        handler_count = len(logger1.handlers)
        logger2 = setup_logger("chatwarden_test_logger_2")

        assert logger1 is logger2
        assert len(logger2.handlers) == handler_count

    def test_console_level_is_configurable(self):
        logger = setup_logger("chatwarden_test_logger_4", console_level=logging.WARNING)

        console = [h for h in logger.handlers if type(h).__name__ == "PromptToolkitHandler"]
        assert console[0].level == logging.WARNING

    def test_setup_logger_has_console_and_file_handlers(self):
        logger = setup_logger("chatwarden_test_logger_3")

        handler_types = {type(handler).__name__ for handler in logger.handlers}
        assert "PromptToolkitHandler" in handler_types
        assert "RotatingFileHandler" in handler_types


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_same_name_returns_same(self):
        assert get_logger("chatwarden_test_module") is get_logger("chatwarden_test_module")


class TestHandleException:
    """Tests for the global exception hook."""

    @patch('sys.__excepthook__')
    def test_keyboard_interrupt_goes_to_default_hook(self, mock_hook):
        handle_exception(KeyboardInterrupt, KeyboardInterrupt(), None)
        mock_hook.assert_called_once()

    @patch('sys.__excepthook__')
    def test_other_exceptions_are_logged(self, mock_hook):
        with patch('chatwarden.util.logger.get_logger') as mock_get_logger:
            handle_exception(ValueError, ValueError("boom"), None)

        mock_hook.assert_not_called()
        mock_get_logger.return_value.critical.assert_called_once()


class TestLogFilepath:
    """Tests for get_log_filepath."""

    def test_one_file_per_process(self):
        path = get_log_filepath()

        assert path == get_log_filepath()
        assert path.parent == LOGS_DIR
        assert path.suffix == ".log"


class TestSilenceLoggers:
    """Tests for silence_loggers."""

    def test_library_loggers_raised_to_error(self):
        silence_loggers(["chatwarden_test_library"])

        library_logger = logging.getLogger("chatwarden_test_library")
        assert library_logger.level == logging.ERROR
        assert library_logger.propagate is False
