"""Logging configuration using Loguru."""

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from pagenotes.config import LoggingConfig


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = False,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """
    Configure Loguru for one context process.

    Console output shows the pagenotes module that logged each record.
    File output (optional) is rotated and JSON-serialized by default, so
    records from popup, background and content contexts can be merged.
    """
    logger.remove()
    # Records logged through the bare loguru logger get a placeholder module
    logger.configure(extra={"module": "-"})

    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[module]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        colorize=True,
        serialize=False,
    )

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "pagenotes_{time:YYYY-MM-DD}.log",
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[module]}:{function}:{line} - {message}",
            rotation=file_rotation,
            retention=file_retention,
            compression=compression,
            serialize=serialize,
            enqueue=True,
        )


def setup_logging_from_config(config: "LoggingConfig") -> None:
    """Apply the logging section of a Config."""
    setup_logging(**config.model_dump())


def get_logger(name: str):
    """Get a logger instance for a module."""
    return logger.bind(module=name)
