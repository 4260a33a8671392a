"""Logging configuration for the hostops package."""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO

from hostops.config import LoggingConfig


def setup_logger(
    name: str = "hostops",
    level: Optional[int] = None,
    config: Optional[LoggingConfig] = None,
    stream: TextIO = sys.stdout,
) -> logging.Logger:
    """
    Set up a logger with the specified name and log level.

    Args:
        name: The name of the logger
        level: The logging level (defaults to the configured level)
        config: Logging settings (defaults to values from the environment)
        stream: Stream for the console handler

    Returns:
        Configured logger instance
    """
    config = config or LoggingConfig()
    if level is None:
        level = getattr(logging, config.level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Don't add handlers if they're already configured
    if not logger.handlers:
        formatter = logging.Formatter(config.format, datefmt='%Y-%m-%d %H:%M:%S')

        handler = logging.StreamHandler(stream)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if config.file:
            log_file = Path(config.file).expanduser().absolute()
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=log_file,
                maxBytes=config.max_size_mb * 1024 * 1024,
                backupCount=config.backup_count
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
