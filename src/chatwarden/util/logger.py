import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from pathlib import Path
from datetime import datetime
from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

# -------------------- Configuration --------------------
LOGS_DIR: Path = (Path(__file__).parents[3] / "logs").resolve()

LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H-%M-%S"

LOG_COLORS = {
    "DEBUG": "\033[36m",      # Cyan
    "INFO": "\033[32m",       # Green
    "WARNING": "\033[33m",    # Yellow
    "ERROR": "\033[31m",      # Red
    "CRITICAL": "\033[38;5;88m",  # Dark Red (ANSI 256-color)
}
RESET_COLOR = "\033[0m"

# Shared by every logger of the session, resolved on first use
LOG_FILEPATH: Path | None = None

# -------------------- Formatters --------------------
class ColorFormatter(logging.Formatter):
    """
    Log formatter that wraps each record in an ANSI color picked by level.

    Attributes:
        Inherits all attributes from logging.Formatter.
    """

    def format(self, record: logging.LogRecord) -> str:
        color = LOG_COLORS.get(record.levelname, "")
        message = super().format(record)
        return f"{color}{message}{RESET_COLOR}" if color else message


class PromptToolkitHandler(logging.Handler):
    """
    Logging handler that prints through prompt_toolkit.

    Using print_formatted_text keeps log lines from tearing through an active
    prompt when the bot runs in an interactive terminal.

    Args:
        formatter (logging.Formatter | None): Optional formatter to apply to log records.
    """

    def __init__(self, formatter: logging.Formatter | None = None):
        super().__init__()
        if formatter:
            self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            print_formatted_text(ANSI(msg))
        except Exception:
            self.handleError(record)


plain_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def should_use_color() -> bool:
    """
    Determine if stderr is a terminal that can render ANSI colors.

    Returns:
        bool: True if the environment supports colored output, False otherwise.
    """
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


color_formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color() else plain_formatter


# -------------------- Logger Setup --------------------

def get_log_filepath() -> Path:
    """Return the log file of this process, one file per start named after its timestamp."""
    global LOG_FILEPATH

    if LOG_FILEPATH is None:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        LOG_FILEPATH = LOGS_DIR / (datetime.now().strftime(DATE_FORMAT) + ".log")
    return LOG_FILEPATH


def setup_logger(logger_name: str, console_level: int = logging.INFO) -> logging.Logger:
    """Attach the console and rotating file handlers to ``logger_name`` once.

    The file receives every record from DEBUG up; the console only
    ``console_level`` and above.
    """
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console_handler = PromptToolkitHandler(formatter=color_formatter)
    console_handler.setLevel(console_level)
    logger.addHandler(console_handler)

    file_handler = RotatingFileHandler(
        get_log_filepath(),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(plain_formatter)
    logger.addHandler(file_handler)
    return logger


def get_logger(logger_name: str) -> logging.Logger:
    return setup_logger(logger_name)


# -------------------- Exception Handling --------------------
def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """
    Global exception hook that logs uncaught exceptions.

    KeyboardInterrupt is passed to the default hook so Ctrl+C still ends the
    process normally.
    """
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
    else:
        get_logger("uncaught").critical(
            "Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback)
        )


# -------------------- Suppress Noisy Libraries --------------------
# Per-request chatter from third-party libraries.
NOISY_LOGGERS = ("discord", "urllib3", "PIL", "transformers", "torch")


def silence_loggers(names) -> None:
    """Raise the given library loggers to ERROR and keep them out of our handlers."""
    for name in names:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(logging.ERROR)
        library_logger.propagate = False


silence_loggers(NOISY_LOGGERS)
os.environ.setdefault("TRANSFORMERS_VERBOSITY", "error")
