"""
In-memory stand-ins for Playwright objects and browser sessions.

They implement just the surface the framework touches, so unit tests run
without a browser.
"""

from __future__ import annotations

import itertools
import threading
from typing import Dict, List, Optional

from uiauto_tools.common.run_config import BackendKind


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


class FakeElement:
    def __init__(self, visible: bool = True, enabled: bool = True, text: str = ""):
        self.visible = visible
        self.enabled = enabled
        self.text = text

    def is_visible(self) -> bool:
        return self.visible

    def is_enabled(self) -> bool:
        return self.enabled


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self._page = page
        self._selector = selector

    def _matches(self) -> List[FakeElement]:
        return list(self._page.elements.get(self._selector, []))

    def count(self) -> int:
        return len(self._matches())

    @property
    def first(self) -> FakeElement:
        return self._matches()[0]

    def all(self) -> List[FakeElement]:
        return self._matches()


class FakePage:
    def __init__(self, url: str = "about:blank"):
        self.url = url
        self.elements: Dict[str, List[FakeElement]] = {}
        self.default_timeout: Optional[float] = None
        self.navigation_timeout: Optional[float] = None
        self.screenshot_error: Optional[Exception] = None

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def goto(self, url: str) -> None:
        self.url = url

    def screenshot(self, full_page: bool = False) -> bytes:
        if self.screenshot_error is not None:
            raise self.screenshot_error
        return PNG_BYTES

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    def set_default_navigation_timeout(self, timeout: float) -> None:
        self.navigation_timeout = timeout


class FakeSession:
    """Duck-typed Session recording termination."""

    _ids = itertools.count(1)

    def __init__(self, kind: BackendKind = BackendKind.CHROMIUM, terminate_error: Optional[Exception] = None):
        self.id = next(self._ids)
        self.kind = kind
        self.page = FakePage()
        self.terminate_calls = 0
        self.screenshots = 0
        self.terminate_error = terminate_error

    def __repr__(self) -> str:
        return f"<FakeSession {self.id}>"

    @property
    def terminated(self) -> bool:
        return self.terminate_calls > 0

    @property
    def current_url(self) -> str:
        return self.page.url

    def locator(self, selector: str) -> FakeLocator:
        return self.page.locator(selector)

    def navigate(self, url: str) -> None:
        self.page.goto(url)

    def screenshot(self) -> bytes:
        self.screenshots += 1
        return self.page.screenshot(full_page=True)

    def terminate(self) -> None:
        self.terminate_calls += 1
        if self.terminate_error is not None:
            raise self.terminate_error


class FakeSessionFactory:
    """Thread-safe factory handing out FakeSession objects."""

    def __init__(self):
        self.created: List[FakeSession] = []
        self._lock = threading.Lock()

    def create(self, kind=None) -> FakeSession:
        session = FakeSession(BackendKind.require(kind) if kind is not None else BackendKind.CHROMIUM)
        with self._lock:
            self.created.append(session)
        return session


# ================================================================================
# Playwright driver fakes (for SessionFactory)
# ================================================================================

class FakeContext:
    def __init__(self, options: dict):
        self.options = options
        self.pages: List[FakePage] = []
        self.closed = False

    def new_page(self) -> FakePage:
        page = FakePage()
        self.pages.append(page)
        return page

    def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, launch_options: dict, fail_on_context: bool = False):
        self.launch_options = launch_options
        self.contexts: List[FakeContext] = []
        self.closed = False
        self._fail_on_context = fail_on_context

    def new_context(self, **options) -> FakeContext:
        if self._fail_on_context:
            raise RuntimeError("context creation failed")
        context = FakeContext(options)
        self.contexts.append(context)
        return context

    def close(self) -> None:
        self.closed = True


class FakeBrowserType:
    def __init__(self, name: str, driver: "FakePlaywright"):
        self.name = name
        self._driver = driver

    def launch(self, **options) -> FakeBrowser:
        browser = FakeBrowser(options, fail_on_context=self._driver.fail_on_context)
        self._driver.launched.append((self.name, browser))
        return browser


class FakePlaywright:
    def __init__(self, fail_on_context: bool = False):
        self.fail_on_context = fail_on_context
        self.launched = []
        self.stopped = False
        self.chromium = FakeBrowserType("chromium", self)
        self.firefox = FakeBrowserType("firefox", self)
        self.webkit = FakeBrowserType("webkit", self)

    def stop(self) -> None:
        self.stopped = True


class FakePlaywrightManager:
    """Mimics ``sync_playwright()``: each call returns a manager whose start() yields a driver."""

    def __init__(self, fail_on_context: bool = False):
        self.fail_on_context = fail_on_context
        self.drivers: List[FakePlaywright] = []

    def __call__(self) -> "FakePlaywrightManager":
        return self

    def start(self) -> FakePlaywright:
        driver = FakePlaywright(self.fail_on_context)
        self.drivers.append(driver)
        return driver
