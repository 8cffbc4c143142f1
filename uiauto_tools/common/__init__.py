"""
================================================================================
UI Automation Tools Common Utilities
================================================================================

This module provides shared logging setup and file helpers for the UI
automation framework.

Exports:
    - init_logger: Function to initialize loguru logger with standard settings
    - ensure_directory: Create a directory if it does not exist
    - timestamped_file_name: Build "<prefix><yyyyMMdd_HHmmss_SSS><suffix>"
    - write_bytes_to_file: Persist binary artifacts (screenshots)

Usage:
    from uiauto_tools.common import init_logger, timestamped_file_name

    init_logger()
    name = timestamped_file_name("screenshot_", ".png")

================================================================================
"""

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from loguru import logger

# ============================================================
# Logging Setup
# ============================================================

DEFAULT_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{thread.name}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

_logger_initialized = False


def init_logger(
    level: str = None,
    format_string: str = None,
    log_file: str = None
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Worker threads share the same sinks, so the thread name is part of the
    default format.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to $LOG_LEVEL or INFO.
        format_string: Log format string. Uses default if not provided.
        log_file: Optional file path to write logs to. Defaults to $LOG_FILE.

    Example:
        init_logger()  # Use defaults
        init_logger(level="DEBUG", log_file="logs/ui.log")
    """
    global _logger_initialized

    if _logger_initialized:
        return

    # Remove default handler
    logger.remove()

    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    format_string = format_string or DEFAULT_LOG_FORMAT

    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
        enqueue=True,
    )

    log_file = log_file or os.getenv("LOG_FILE")
    if log_file:
        ensure_directory(os.path.dirname(log_file) or ".")
        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=os.getenv("LOG_ROTATION", "10 MB"),
            retention=os.getenv("LOG_RETENTION", "7 days"),
            enqueue=True,
        )

    _logger_initialized = True
    logger.debug("Logger initialized successfully")


# ============================================================
# File Utilities
# ============================================================

def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensures a directory exists, creating parents as necessary.

    Args:
        path: Directory path

    Returns:
        The path (for chaining)
    """
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def timestamped_file_name(
    prefix: str,
    suffix: str,
    moment: Optional[datetime] = None,
) -> str:
    """
    Build a file name carrying a millisecond timestamp.

    Example:
        >>> timestamped_file_name("screenshot_", ".png", datetime(2025, 11, 17, 15, 30, 45, 123000))
        'screenshot_20251117_153045_123.png'
    """
    moment = moment or datetime.now()
    stamp = f"{moment:%Y%m%d_%H%M%S}_{moment.microsecond // 1000:03d}"
    return f"{prefix}{stamp}{suffix}"


def write_bytes_to_file(data: bytes, file_path: Union[str, Path]) -> Path:
    """
    Write binary data to a file, creating the parent directory if needed.

    Args:
        data: Bytes to write
        file_path: Target path

    Returns:
        Absolute path of the written file
    """
    target = Path(file_path)
    ensure_directory(target.parent)
    target.write_bytes(data)
    logger.info(f"Wrote file: {target.resolve()}")
    return target.resolve()


# Export public API
__all__ = [
    "init_logger",
    "ensure_directory",
    "timestamped_file_name",
    "write_bytes_to_file",
]
