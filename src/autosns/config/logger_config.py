"""Logger configuration for the producer components."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

CONSOLE_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[context]}</cyan> - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[context]} | {name}:{function}:{line} - {message}"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    colorize: bool = True,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Configure loguru for console and optional file output.

    Producers bind a ``context`` extra (``"SNSProducer:<name>"``); records
    logged without one are shown under ``autosns``.

    Args:
        level: Minimum level for every sink
        log_file: Path of a rotating log file, or None for console only
        colorize: Colorize console output
        rotation: loguru rotation policy for the file sink
        retention: loguru retention policy for the file sink
    """

    # Remove default loguru handler
    logger.remove()
    logger.configure(extra={"context": "autosns"})

    logger.add(
        sink=sys.stderr,
        format=CONSOLE_FORMAT,
        level=level,
        colorize=colorize,
    )

    if log_file is not None:
        logger.add(
            sink=str(log_file),
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="gz",  # Compress rotated logs
            enqueue=True,  # Thread-safe logging
        )

        logger.info(f"File logging enabled: {log_file}")
        logger.info(f"Log level: {level}")
