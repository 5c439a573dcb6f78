"""
Package logging for taskmail.

``taskmail.log`` in the log directory receives every record. The terminal
only shows warnings and errors unless TASKMAIL_DEBUG or TASKMAIL_LOG_LEVEL
asks for more, so command output stays clean.
"""
import logging
import os
import sys
from pathlib import Path

PACKAGE_LOGGER = 'taskmail'
LOG_FILE_NAME = 'taskmail.log'
DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "taskmail" / "logs"

FILE_FORMAT = '[%(asctime)s] %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s'
FILE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'
CONSOLE_DEBUG_FORMAT = '%(levelname)-8s [%(name)s] %(message)s'


def _debug_requested() -> bool:
    return os.getenv('TASKMAIL_DEBUG', '').lower() in ('1', 'true', 'yes')


def console_level() -> int:
    """Terminal log level from TASKMAIL_DEBUG, then TASKMAIL_LOG_LEVEL."""
    if _debug_requested():
        return logging.DEBUG
    name = os.getenv('TASKMAIL_LOG_LEVEL', '').strip().upper()
    level = logging.getLevelName(name) if name else logging.WARNING
    return level if isinstance(level, int) else logging.WARNING


def log_dir() -> Path:
    override = os.getenv('TASKMAIL_LOG_DIR', '').strip()
    return Path(override).expanduser() if override else DEFAULT_LOG_DIR


def setup_logging() -> logging.Logger:
    """Attach the file and console handlers to the package logger.

    Safe to call again: existing handlers are replaced, not duplicated.
    """
    directory = log_dir()
    directory.mkdir(parents=True, exist_ok=True)

    to_file = logging.FileHandler(directory / LOG_FILE_NAME, encoding="utf-8")
    to_file.setFormatter(logging.Formatter(FILE_FORMAT, FILE_DATE_FORMAT))
    to_file.setLevel(logging.DEBUG)

    to_console = logging.StreamHandler(sys.stdout)
    to_console.setFormatter(logging.Formatter(
        CONSOLE_DEBUG_FORMAT if _debug_requested() else CONSOLE_FORMAT
    ))
    to_console.setLevel(console_level())

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(to_file)
    logger.addHandler(to_console)
    logger.propagate = False
    return logger


setup_logging()


def get_logger(name: str = None) -> logging.Logger:
    """Logger for one taskmail module, e.g. ``get_logger("store")``."""
    return logging.getLogger(f'{PACKAGE_LOGGER}.{name}' if name else PACKAGE_LOGGER)
