"""
================================================================================
Browser Manager
================================================================================

Browser session creation for UI automation.

Features:
    - One Playwright driver + browser + page per session
    - Backend selection (chromium, firefox, webkit) from configuration
    - Headless launch option and default timeouts applied from RunConfig
    - Idempotent session termination

Playwright's sync API is bound to the thread that started it, so a session
must be created, used and terminated on the same worker thread.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger
from playwright.sync_api import (
    Browser,
    BrowserContext,
    Locator,
    Page,
    Playwright,
    sync_playwright,
)

from uiauto_tools.common.run_config import BackendKind, RunConfig


# Chromium-only launch arguments
CHROMIUM_ARGS: List[str] = [
    "--ignore-certificate-errors",
    "--disable-features=IsolateOrigins,site-per-process",
]

# Default context options
DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
    "viewport": {"width": 1920, "height": 1080},
    "ignore_https_errors": True,
}


def _to_millis(seconds: int) -> float:
    # Playwright treats a timeout of 0 as "wait forever"
    return max(seconds * 1000, 1)


class Session:
    """
    Handle to one live browser session.

    Attributes:
        kind: Backend the session runs on
        created_at: Creation timestamp
        implicit_wait_seconds: Default timeout applied to page actions
        page_load_timeout_seconds: Default navigation timeout
        page: Playwright page driven by this session
    """

    def __init__(
        self,
        kind: BackendKind,
        page: Page,
        context: Optional[BrowserContext] = None,
        browser: Optional[Browser] = None,
        playwright: Optional[Playwright] = None,
        implicit_wait_seconds: int = 2,
        page_load_timeout_seconds: int = 30,
    ):
        self.kind = kind
        self.page = page
        self.created_at = datetime.now()
        self.implicit_wait_seconds = implicit_wait_seconds
        self.page_load_timeout_seconds = page_load_timeout_seconds

        self._context = context
        self._browser = browser
        self._playwright = playwright
        self._terminated = False

    def __repr__(self) -> str:
        return f"<Session {self.kind.value} created={self.created_at:%H:%M:%S.%f}>"

    @property
    def terminated(self) -> bool:
        return self._terminated

    @property
    def current_url(self) -> str:
        return self.page.url

    def locator(self, selector: str) -> Locator:
        return self.page.locator(selector)

    def navigate(self, url: str) -> None:
        logger.info(f"Navigating to: {url}")
        self.page.goto(url)

    def screenshot(self) -> bytes:
        """Capture the current page as PNG bytes."""
        return self.page.screenshot(full_page=True)

    def terminate(self) -> None:
        """
        Close context and browser, then stop the driver.

        Every step is attempted; the first error is re-raised afterwards.
        A second call is a no-op.
        """
        if self._terminated:
            return
        self._terminated = True

        closers: List[Callable[[], Any]] = []
        if self._context is not None:
            closers.append(self._context.close)
        if self._browser is not None:
            closers.append(self._browser.close)
        if self._playwright is not None:
            closers.append(self._playwright.stop)

        errors: List[Exception] = []
        for close in closers:
            try:
                close()
            except Exception as e:
                errors.append(e)

        logger.debug(f"Session terminated: {self!r}")
        if errors:
            raise errors[0]


class SessionFactory:
    """
    Creates browser sessions configured from a RunConfig.

    Usage:
        factory = SessionFactory(config)
        session = factory.create()             # backend from config
        session = factory.create("firefox")    # explicit backend
    """

    def __init__(
        self,
        config: RunConfig,
        playwright_factory: Callable[[], Any] = sync_playwright,
    ):
        """
        Initialize session factory.

        Args:
            config: Run configuration (backend, headless, timeouts)
            playwright_factory: Returns an object whose ``start()`` yields a
                Playwright driver (``sync_playwright`` by default)
        """
        self.config = config
        self._playwright_factory = playwright_factory

    def launch_options(self, kind: BackendKind) -> Dict[str, Any]:
        """Build backend-specific launch options."""
        options: Dict[str, Any] = {"headless": self.config.headless}
        if kind is BackendKind.CHROMIUM:
            options["args"] = list(CHROMIUM_ARGS)
        return options

    def create(self, kind: Union[BackendKind, str, None] = None) -> Session:
        """
        Start a new browser session.

        Blocks while the browser starts.

        Args:
            kind: Backend to use; defaults to ``config.engine_kind``

        Returns:
            New Session with default timeouts applied

        Raises:
            UnsupportedBackendError: If kind names no known backend
        """
        backend = BackendKind.require(kind) if kind is not None else self.config.engine_kind
        logger.info(f"Creating {backend.value} session (headless={self.config.headless})")

        playwright = self._playwright_factory().start()
        try:
            launcher = getattr(playwright, backend.value)
            browser = launcher.launch(**self.launch_options(backend))
            context = browser.new_context(**DEFAULT_CONTEXT_OPTIONS)
            page = context.new_page()
        except Exception:
            logger.error(f"Failed to start {backend.value} browser")
            playwright.stop()
            raise

        page.set_default_timeout(_to_millis(self.config.implicit_wait_seconds))
        page.set_default_navigation_timeout(_to_millis(self.config.page_load_timeout_seconds))
        logger.debug(
            f"Timeouts applied: implicit={self.config.implicit_wait_seconds}s, "
            f"page load={self.config.page_load_timeout_seconds}s"
        )

        return Session(
            kind=backend,
            page=page,
            context=context,
            browser=browser,
            playwright=playwright,
            implicit_wait_seconds=self.config.implicit_wait_seconds,
            page_load_timeout_seconds=self.config.page_load_timeout_seconds,
        )


__all__ = [
    "BackendKind",
    "Session",
    "SessionFactory",
]
