import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from k8sbake.constants import (
    DEBUG_LOG_FORMAT,
    INFO_LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
    LOG_FILE_NAME,
    LOG_LEVEL_ENV_VAR,
    LOGGER_NAME,
)

logger = logging.getLogger(LOGGER_NAME)

# Kept module-level so add_file_logging() can replace an earlier handler
_file_handler: Optional[RotatingFileHandler] = None


def _resolve_level(level_name: str) -> Optional[int]:
    level = getattr(logging, level_name.upper(), None)
    return level if isinstance(level, int) else None


def set_log_level(level_name: str) -> None:
    """
    Set the log level for the k8sbake logger and reconfigure all attached handlers.

    If `level_name` is not a valid logging level name (e.g., "DEBUG", "INFO"), a
    warning is logged and the current configuration is left unchanged.

    Console (Rich) handlers always use a message-only formatter; other handlers
    get INFO_LOG_FORMAT at INFO and above and DEBUG_LOG_FORMAT below it.

    Parameters:
        level_name (str): Case-insensitive name of the desired logging level.
    """
    level = _resolve_level(level_name)
    if level is None:
        logger.warning(f"Invalid log level name: {level_name}. Using current level.")
        return

    logger.setLevel(level)

    for handler in logger.handlers:
        handler.setLevel(level)
        if isinstance(handler, RichHandler):
            formatter = logging.Formatter("%(message)s")
        elif level >= logging.INFO:
            formatter = logging.Formatter(INFO_LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        else:
            formatter = logging.Formatter(DEBUG_LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        handler.setFormatter(formatter)

    logger.log(level, f"Log level set to {logging.getLevelName(level)}")


def add_file_logging(log_dir_path: Path, level_name: str = "INFO") -> None:
    """
    Enable rotating file logging for the k8sbake logger.

    Creates the directory if necessary and attaches a RotatingFileHandler writing
    to `k8sbake.log` inside it. An invalid `level_name` falls back to INFO. Any
    file handler previously added by this function is removed and closed first.
    """
    global _file_handler
    if _file_handler and _file_handler in logger.handlers:
        logger.removeHandler(_file_handler)
        _file_handler.close()

    log_dir_path.mkdir(parents=True, exist_ok=True)
    log_file = log_dir_path / LOG_FILE_NAME

    file_log_level = _resolve_level(level_name)
    if file_log_level is None:
        logger.warning(
            f"Invalid file log level name: {level_name}. Defaulting to INFO."
        )
        file_log_level = logging.INFO

    if file_log_level >= logging.INFO:
        file_formatter = logging.Formatter(INFO_LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    else:
        file_formatter = logging.Formatter(DEBUG_LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    _file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    _file_handler.setFormatter(file_formatter)
    _file_handler.setLevel(file_log_level)

    logger.addHandler(_file_handler)
    logger.info(
        f"File logging enabled at {log_file} with level {logging.getLevelName(file_log_level)}"
    )


def _initialize_logger() -> None:
    """
    Initialize the k8sbake logger with a console RichHandler.

    Removes existing handlers, disables propagation to the root logger and sets
    the initial level from the environment variable named by LOG_LEVEL_ENV_VAR
    (INFO when unset or invalid).
    """
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        rich_tracebacks=True,
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
        log_time_format=LOG_DATE_FORMAT,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    env_level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    initial_level = _resolve_level(env_level)
    if initial_level is None:
        logger.warning(f"Invalid {LOG_LEVEL_ENV_VAR}={env_level}; defaulting to INFO.")
        initial_level = logging.INFO

    logger.setLevel(initial_level)
    console_handler.setLevel(initial_level)


_initialize_logger()
