"""
================================================================================
Framework Exceptions
================================================================================

Error taxonomy shared by the session, wait, retry and notification layers.

Recovered locally (logged, never surfaced):
    - ConfigLoadError
    - NotificationDispatchError

Surfaced to the caller:
    - UnsupportedBackendError
    - SessionNotBoundError
    - WaitTimeoutError
    - InvalidArgumentError

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Optional


class FrameworkError(Exception):
    """Base exception for all framework errors."""
    pass


class ConfigLoadError(FrameworkError):
    """Raised when a configuration source is missing or cannot be parsed."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot load configuration from {source}: {reason}")


class UnsupportedBackendError(FrameworkError):
    """Raised when a session is requested for an unknown backend kind."""

    def __init__(self, kind: object) -> None:
        self.kind = kind
        super().__init__(f"Unsupported browser backend: {kind!r}")


class SessionNotBoundError(FrameworkError):
    """Raised when the calling thread has no bound session."""
    pass


class WaitTimeoutError(FrameworkError):
    """
    Raised when an explicit wait reaches its deadline without success.

    Attributes:
        timeout: Configured deadline in seconds
        elapsed: Seconds actually spent polling
    """

    def __init__(
        self,
        timeout: float,
        elapsed: float,
        description: Optional[str] = None,
    ) -> None:
        self.timeout = timeout
        self.elapsed = elapsed
        self.description = description
        message = f"Timed out after {elapsed:.2f}s (deadline {timeout}s)"
        if description:
            message = f"{message} waiting for: {description}"
        super().__init__(message)


class InvalidArgumentError(FrameworkError, ValueError):
    """Raised on malformed caller input, before any side effect happens."""
    pass


class NotificationDispatchError(FrameworkError):
    """Raised when a webhook request cannot be delivered."""

    def __init__(self, endpoint: str, reason: str) -> None:
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"Notification to {endpoint} failed: {reason}")


class CaseSkipped(FrameworkError):
    """Raised by an execution unit body to mark itself as skipped."""
    pass


__all__ = [
    "FrameworkError",
    "ConfigLoadError",
    "UnsupportedBackendError",
    "SessionNotBoundError",
    "WaitTimeoutError",
    "InvalidArgumentError",
    "NotificationDispatchError",
    "CaseSkipped",
]
