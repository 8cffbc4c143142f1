"""Shared fixtures for framework unit tests."""

import pytest

from testsuites.unit.fakes import FakeSessionFactory
from testsuites.ui_testing.framework.session_registry import SessionRegistry


CONFIG_VARIABLES = ("env", "FRAMEWORK_ENV", "UI_BASE_URL", "UI_BROWSER", "UI_HEADLESS")


@pytest.fixture(autouse=True)
def _clean_config_env(monkeypatch):
    """Keep the caller's shell variables out of configuration tests."""
    for name in CONFIG_VARIABLES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def fake_factory() -> FakeSessionFactory:
    return FakeSessionFactory()
