"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Browser-driven tests. They launch a real Playwright browser, so they only run
when RUN_E2E=1 is set (and ``playwright install`` has been done).

Key Features:
- Opt-in gate for browser tests
- Page fixture taken from the framework's bound session

================================================================================
"""

import os

import pytest
from playwright.sync_api import Page

from testsuites.ui_testing.framework.browser_manager import Session


E2E_FLAG = "RUN_E2E"


# ================================================================================
# Pytest Configuration
# ================================================================================

def pytest_collection_modifyitems(config, items):
    """Skip browser tests unless explicitly enabled."""
    if os.getenv(E2E_FLAG) == "1":
        return

    skip_e2e = pytest.mark.skip(reason=f"set {E2E_FLAG}=1 to run browser tests")
    for item in items:
        if "ui_testing" in item.path.parts:
            item.add_marker(skip_e2e)


# ================================================================================
# Page Fixtures
# ================================================================================

@pytest.fixture
def page(ui_session: Session) -> Page:
    """
    Function-scoped page fixture.

    The underlying session is created, bound and released by ``ui_session``.
    """
    return ui_session.page
