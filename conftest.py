"""
Repository-level pytest configuration.

Registers the UI framework plugin (run configuration, session fixtures,
retries, failure screenshots and the suite notification) for every test
under the repository, and the pytester plugin used by the plugin's own tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest


pytest_plugins = [
    "pytester",
    "testsuites.ui_testing.framework.pytest_plugin",
]


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent
