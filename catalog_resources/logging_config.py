"""
Logging configuration

Console output plus an optional rotating log file.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s'


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    fmt: str = DEFAULT_FORMAT
) -> logging.Logger:
    """
    Configure the root logger

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_file: Log file path, None for console only
        max_bytes: Size of one log file before rotation
        backup_count: Rotated files kept

    Returns:
        The root logger
    """
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Replace existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    log_format = logging.Formatter(fmt=fmt, datefmt='%Y-%m-%d %H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(log_format)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(log_format)
        root_logger.addHandler(file_handler)

    root_logger.info(f"Logging initialized: level={log_level}, file={log_file}")
    return root_logger


def setup_logging_from_config(config) -> logging.Logger:
    """
    Configure logging from a config.Config

    Debug mode forces the DEBUG level. The test environment logs to the
    console only.
    """
    logging_config = config.logging
    return setup_logging(
        log_level="DEBUG" if config.debug else logging_config.level,
        log_file=None if config.environment == "test" else logging_config.file,
        max_bytes=logging_config.max_bytes,
        backup_count=logging_config.backup_count,
        fmt=logging_config.format
    )


__all__ = [
    "DEFAULT_FORMAT",
    "setup_logging",
    "setup_logging_from_config",
]
