"""
================================================================================
Report Tools
================================================================================

Result aggregation and Allure attachment helpers.

================================================================================
"""

from .allure_utils import attach_png, capture_failure_screenshot
from .result_aggregator import CaseResult, CaseStatus, SuiteOutcome, aggregate, format_summary

__all__ = [
    "attach_png",
    "capture_failure_screenshot",
    "CaseResult",
    "CaseStatus",
    "SuiteOutcome",
    "aggregate",
    "format_summary",
]
