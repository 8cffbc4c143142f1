"""
================================================================================
Suite Result Aggregation
================================================================================

Reduces per-case results to a suite summary consumed by the notifier.

Features:
- Case status / result models shared with the runner and retry policy
- Pure counting of terminal statuses
- Fixed plain-text summary body

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional


class CaseStatus(str, Enum):
    """Terminal status of one execution unit."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


# Allure / pytest status names folded onto CaseStatus
_STATUS_ALIASES = {
    "passed": CaseStatus.PASSED,
    "failed": CaseStatus.FAILED,
    "broken": CaseStatus.FAILED,
    "error": CaseStatus.FAILED,
    "skipped": CaseStatus.SKIPPED,
}


@dataclass
class CaseResult:
    """Final result of one execution unit after retries."""

    name: str
    status: CaseStatus
    attempts: int = 1
    error: Optional[BaseException] = None
    duration: float = 0.0


@dataclass(frozen=True)
class SuiteOutcome:
    """Pass/fail/skip counts for a finished suite."""

    suite_name: str
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped


def _status_of(result: Any) -> CaseStatus:
    status = getattr(result, "status", result)
    if isinstance(status, CaseStatus):
        return status
    try:
        return _STATUS_ALIASES[str(status).lower()]
    except KeyError:
        raise ValueError(f"Unknown case status: {status!r}") from None


def aggregate(suite_name: str, raw_results: Iterable[Any]) -> SuiteOutcome:
    """
    Count results by terminal status.

    Args:
        suite_name: Name reported in the summary
        raw_results: CaseResult objects, CaseStatus values or status strings
            ("broken" and "error" count as failed)

    Returns:
        SuiteOutcome with the counts
    """
    counts = {status: 0 for status in CaseStatus}
    for result in raw_results:
        counts[_status_of(result)] += 1

    return SuiteOutcome(
        suite_name=suite_name,
        passed=counts[CaseStatus.PASSED],
        failed=counts[CaseStatus.FAILED],
        skipped=counts[CaseStatus.SKIPPED],
    )


def format_summary(outcome: SuiteOutcome) -> str:
    """Summary body: suite name, passed, failed and skipped counts, one per line."""
    return "\n".join([
        f"Suite: {outcome.suite_name}",
        f"Passed: {outcome.passed}",
        f"Failed: {outcome.failed}",
        f"Skipped: {outcome.skipped}",
    ])


__all__ = [
    "CaseStatus",
    "CaseResult",
    "SuiteOutcome",
    "aggregate",
    "format_summary",
]
