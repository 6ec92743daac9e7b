# ns_guard/logger.py
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, TextIO

LOGGER_NAME = "ns_guard"
LOG_FORMAT = "%(levelname)s [%(asctime)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_BYTES = 1024 * 1024
BACKUP_COUNT = 5


def parse_level(level: str) -> int:
    value = logging.getLevelName((level or "").strip().upper())
    return value if isinstance(value, int) else logging.INFO


def create_logger(stream: TextIO, level: str) -> logging.Logger:
    """Configure the package logger to write to a single stream."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(parse_level(level))
    logger.propagate = False
    return logger


def get_logger(log_file: Optional[str], level: str) -> logging.Logger:
    """
    Configure the package logger for the service.

    - always logs to stdout
    - also logs to `log_file` (size rotated) when one is given
    """
    logger = create_logger(sys.stdout, level)
    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)
    return logger
