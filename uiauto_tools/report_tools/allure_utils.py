"""
================================================================================
Allure Report Utilities
================================================================================

This module provides helpers for attaching artifacts to Allure reports and
for capturing failure screenshots from a browser session.

Features:
- Custom attachment helpers
- Failure screenshot capture (Allure attachment + timestamped PNG file)

================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import allure
from loguru import logger

from uiauto_tools.common import timestamped_file_name, write_bytes_to_file


SCREENSHOT_PREFIX = "screenshot_"
SCREENSHOT_SUFFIX = ".png"
FAILURE_ATTACHMENT_NAME = "failure_screenshot"


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_png(data: bytes, name: str = FAILURE_ATTACHMENT_NAME):
    """
    Attach PNG bytes to Allure report.

    Args:
        data: Image bytes
        name: Attachment name
    """
    allure.attach(
        data,
        name=name,
        attachment_type=allure.attachment_type.PNG
    )


# ================================================================================
# Failure Screenshots
# ================================================================================

def capture_failure_screenshot(
    session,
    screenshots_dir: Union[str, Path],
    case_name: str = "",
) -> Optional[Path]:
    """
    Capture a screenshot from the session after a case failure.

    The PNG is attached to the Allure report and written to
    ``<screenshots_dir>/screenshot_<yyyyMMdd_HHmmss_SSS>.png``.
    Best-effort: failures are logged and never raised.

    Args:
        session: Session exposing ``screenshot() -> bytes``
        screenshots_dir: Output directory (created if missing)
        case_name: Failing case, for logging

    Returns:
        Path of the written file, or None when nothing was captured
    """
    logger.warning(f"Case failed, capturing screenshot: {case_name}")

    try:
        data = session.screenshot()
    except Exception as e:
        logger.error(f"Screenshot capture failed for {case_name}: {e}")
        return None

    if not data:
        logger.warning(f"Session returned an empty screenshot for {case_name}")
        return None

    try:
        attach_png(data)
    except Exception as e:
        logger.warning(f"Failed to attach screenshot to report: {e}")

    file_path = Path(screenshots_dir) / timestamped_file_name(SCREENSHOT_PREFIX, SCREENSHOT_SUFFIX)
    try:
        return write_bytes_to_file(data, file_path)
    except OSError as e:
        logger.error(f"Failed to write screenshot {file_path}: {e}")
        return None


__all__ = [
    "attach_png",
    "capture_failure_screenshot",
]
