# ================================================================================
# Wait Engine Module
# ================================================================================
#
# This module provides explicit waits for UI automation: a predicate is polled
# against the calling thread's bound session until it returns a truthy value
# or the deadline passes.
#
# Key Features:
#   - Single timeout policy sourced from RunConfig.explicit_wait_seconds
#   - Per-call timeout override
#   - Predicate errors propagate immediately (never reported as timeouts)
#   - Ready-made conditions: clickable, visible, all visible, present,
#     invisible, URL contains
#
# Usage:
#   waits = WaitEngine(registry, config)
#   button = waits.until_clickable("button#submit")
#   waits.until_url_contains("/dashboard", timeout=5)
#
# ================================================================================

import time
from typing import Any, Callable, List, Optional, TypeVar, Union

from loguru import logger
from playwright.sync_api import Locator

from uiauto_tools.common.exceptions import (
    InvalidArgumentError,
    SessionNotBoundError,
    WaitTimeoutError,
)
from uiauto_tools.common.run_config import RunConfig

from .browser_manager import Session
from .session_registry import SessionRegistry


T = TypeVar('T')

# Selector string or an element handle (Playwright Locator / ElementHandle)
Target = Union[str, Locator, Any]
Predicate = Callable[[Session], T]

DEFAULT_POLL_INTERVAL = 0.1


# ================================================================================
# Conditions
# ================================================================================

def _first_match(session: Session, target: Target) -> Optional[Any]:
    """Resolve a selector to its first match, or pass a handle through."""
    if isinstance(target, str):
        locator = session.locator(target)
        return locator.first if locator.count() > 0 else None
    return target


def element_to_be_clickable(target: Target) -> Predicate:
    def predicate(session: Session):
        element = _first_match(session, target)
        if element is not None and element.is_visible() and element.is_enabled():
            return element
        return None
    return predicate


def visibility_of(target: Target) -> Predicate:
    def predicate(session: Session):
        element = _first_match(session, target)
        if element is not None and element.is_visible():
            return element
        return None
    return predicate


def visibility_of_all(selector: str) -> Predicate:
    def predicate(session: Session):
        elements = session.locator(selector).all()
        if elements and all(element.is_visible() for element in elements):
            return elements
        return None
    return predicate


def presence_of(selector: str) -> Predicate:
    def predicate(session: Session):
        locator = session.locator(selector)
        return locator.first if locator.count() > 0 else None
    return predicate


def invisibility_of(selector: str) -> Predicate:
    def predicate(session: Session) -> bool:
        locator = session.locator(selector)
        return locator.count() == 0 or not locator.first.is_visible()
    return predicate


def url_contains(fragment: str) -> Predicate:
    def predicate(session: Session) -> bool:
        return fragment in session.current_url
    return predicate


# ================================================================================
# Engine
# ================================================================================

class WaitEngine:
    """
    Explicit waits over the calling thread's bound session.

    A wait blocks the calling thread until success or timeout; it cannot be
    cancelled early.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        config: RunConfig,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        """
        Initialize wait engine.

        Args:
            registry: Registry providing the current session
            config: Run configuration (default deadline)
            poll_interval: Seconds between predicate evaluations
        """
        self.registry = registry
        self.config = config
        self.poll_interval = poll_interval

    def _require_session(self) -> Session:
        session = self.registry.current()
        if session is None:
            raise SessionNotBoundError("No session is bound to the current thread")
        return session

    def until(
        self,
        predicate: Callable[[Session], T],
        timeout: Optional[float] = None,
        description: str = "condition",
    ) -> T:
        """
        Poll predicate until it returns a truthy value.

        Args:
            predicate: Called with the bound session on every poll
            timeout: Deadline in seconds (default: config.explicit_wait_seconds)
            description: Human-readable description for logging

        Returns:
            The first truthy value returned by predicate

        Raises:
            WaitTimeoutError: If the deadline passes without success
            SessionNotBoundError: If the calling thread has no session
        """
        session = self._require_session()
        if timeout is None:
            timeout = self.config.explicit_wait_seconds
        if timeout < 0:
            raise InvalidArgumentError(f"Wait timeout must be non-negative, got {timeout}")

        start = time.monotonic()
        deadline = start + timeout
        attempt = 0

        while True:
            attempt += 1
            result = predicate(session)

            if result:
                logger.debug(
                    f"Wait successful after {attempt} attempts "
                    f"({time.monotonic() - start:.2f}s): {description}"
                )
                return result

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                elapsed = time.monotonic() - start
                logger.error(
                    f"Timeout after {elapsed:.2f}s ({attempt} attempts) waiting for: {description}"
                )
                raise WaitTimeoutError(timeout, elapsed, description)

            time.sleep(min(self.poll_interval, remaining))

    def until_clickable(self, target: Target, timeout: Optional[float] = None):
        """Wait until the element is visible and enabled; returns the element."""
        return self.until(element_to_be_clickable(target), timeout, f"{target} clickable")

    def until_visible(self, target: Target, timeout: Optional[float] = None):
        """Wait until the element is visible; returns the element."""
        return self.until(visibility_of(target), timeout, f"{target} visible")

    def until_all_visible(self, selector: str, timeout: Optional[float] = None) -> List[Any]:
        """Wait until every element matching selector is visible; returns them in DOM order."""
        return self.until(visibility_of_all(selector), timeout, f"all {selector} visible")

    def until_present(self, selector: str, timeout: Optional[float] = None):
        """Wait until an element matching selector is attached; visibility not required."""
        return self.until(presence_of(selector), timeout, f"{selector} present")

    def until_invisible(self, selector: str, timeout: Optional[float] = None) -> bool:
        """
        Wait until the element is hidden or absent.

        Returns:
            True on success, False on timeout (no exception)
        """
        try:
            return self.until(invisibility_of(selector), timeout, f"{selector} invisible")
        except WaitTimeoutError:
            return False

    def until_url_contains(self, fragment: str, timeout: Optional[float] = None) -> bool:
        """
        Wait until the current URL contains fragment.

        Returns:
            True on success, False on timeout

        Raises:
            InvalidArgumentError: If fragment is empty
        """
        if not fragment or not fragment.strip():
            raise InvalidArgumentError("URL fragment must not be empty")
        try:
            return self.until(url_contains(fragment), timeout, f"URL contains '{fragment}'")
        except WaitTimeoutError:
            return False


__all__ = [
    "WaitEngine",
    "DEFAULT_POLL_INTERVAL",
    "element_to_be_clickable",
    "visibility_of",
    "visibility_of_all",
    "presence_of",
    "invisibility_of",
    "url_contains",
]
