"""Logging setup for the rentbook services and CLI.

Log records from every ``rentbook.*`` module go to stdout and to a log file.
LOG_LEVEL picks the level (default INFO). SQLAlchemy's own loggers stay at
WARNING unless DEBUG is requested, so bill runs are not buried in SQL.
"""

import logging
import os
import sys
from pathlib import Path

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool")


def get_log_level() -> int:
    """Level named by LOG_LEVEL; unknown names mean INFO."""
    return LOG_LEVEL_MAP.get(os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


def setup_logging(log_file: str = "logs/rentbook.log") -> logging.Logger:
    """
    Send rentbook logs to stdout and log_file.

    Args:
        log_file: Path to log file, parent directories are created

    Returns:
        The "rentbook" package logger
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    level = get_log_level()
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_path)):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level == logging.DEBUG else logging.WARNING)

    package_logger = logging.getLogger("rentbook")
    package_logger.setLevel(level)
    return package_logger
