"""
================================================================================
Retry Policy
================================================================================

Bounded re-execution of failed execution units.

A unit starts FRESH; every failure with budget left moves it to RETRYING and
consumes one retry; a failure without budget ends in EXHAUSTED; a success at
any attempt ends in SUCCEEDED. State is per unit and never shared.

Example (max_attempts=1): fail, pass -> 2 executions, SUCCEEDED
                          fail, fail -> 2 executions, EXHAUSTED

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from loguru import logger

from uiauto_tools.report_tools.result_aggregator import CaseStatus


DEFAULT_MAX_RETRIES = 1


class RetryStatus(str, Enum):
    FRESH = "fresh"
    RETRYING = "retrying"
    EXHAUSTED = "exhausted"
    SUCCEEDED = "succeeded"


@dataclass
class RetryState:
    """Retry bookkeeping for one execution unit."""

    max_attempts: int = DEFAULT_MAX_RETRIES
    attempts_used: int = 0
    status: RetryStatus = RetryStatus.FRESH
    name: str = ""

    @property
    def executions(self) -> int:
        """Executions so far, counting the first attempt."""
        return self.attempts_used + 1


class RetryPolicy:
    """Decides whether a failed unit is executed again."""

    def __init__(self, max_retries: int = DEFAULT_MAX_RETRIES):
        if max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {max_retries}")
        self.max_retries = max_retries

    def new_state(self, name: str = "") -> RetryState:
        return RetryState(max_attempts=self.max_retries, name=name)

    def should_retry(self, outcome: Union[CaseStatus, str], state: RetryState) -> bool:
        """
        Args:
            outcome: Outcome of the attempt that just finished (CaseStatus or its value)
            state: The unit's retry state (updated in place)

        Returns:
            True when the unit must run again
        """
        outcome = CaseStatus(outcome)

        if outcome is CaseStatus.PASSED:
            state.status = RetryStatus.SUCCEEDED
            return False

        if outcome is not CaseStatus.FAILED:
            return False

        if state.attempts_used < state.max_attempts:
            state.attempts_used += 1
            state.status = RetryStatus.RETRYING
            logger.info(
                f"Case failed, scheduling retry {state.attempts_used}/{state.max_attempts}: {state.name}"
            )
            return True

        state.status = RetryStatus.EXHAUSTED
        return False


__all__ = [
    "RetryPolicy",
    "RetryState",
    "RetryStatus",
    "DEFAULT_MAX_RETRIES",
]
