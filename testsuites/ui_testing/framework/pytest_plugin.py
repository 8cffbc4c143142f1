"""
================================================================================
UI Framework Pytest Plugin
================================================================================

Wires the session, wait, retry and notification layers into pytest.

Hooks:
    - pytest_configure: load RunConfig once, build the registry/factory
    - ui_session fixture: fresh bound session per test (+ base URL),
      released on every exit path
    - pytest_runtest_makereport: failure screenshot while the session is bound
    - pytest_runtest_protocol: re-run failed tests per the retry policy;
      only the final attempt is reported
    - pytest_sessionfinish: aggregate results and notify webhook sinks

Enable with ``pytest_plugins = ["testsuites.ui_testing.framework.pytest_plugin"]``
in the root conftest, or ``-p testsuites.ui_testing.framework.pytest_plugin``.

================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Generator, List, Optional

import pytest
from _pytest.runner import runtestprotocol
from loguru import logger

from uiauto_tools.common import init_logger
from uiauto_tools.common.run_config import ConfigSource, RunConfig
from uiauto_tools.notification import WebhookNotifier
from uiauto_tools.report_tools.allure_utils import capture_failure_screenshot
from uiauto_tools.report_tools.result_aggregator import CaseStatus, SuiteOutcome, aggregate

from .browser_manager import Session, SessionFactory
from .retry_policy import RetryPolicy
from .session_registry import SessionRegistry
from .wait_engine import WaitEngine


PLUGIN_NAME = "uiframework"


class UiFrameworkPlugin:
    """Per-run framework state plus the hooks that need it."""

    def __init__(
        self,
        run_config: RunConfig,
        suite_name: str,
        notify: bool = True,
    ):
        self.run_config = run_config
        self.suite_name = suite_name
        self.notify = notify

        self.registry = SessionRegistry()
        self.factory = SessionFactory(run_config)
        self.retry_policy = RetryPolicy(run_config.max_retries)
        self.results: Dict[str, CaseStatus] = {}
        self.outcome: Optional[SuiteOutcome] = None

    @staticmethod
    def _status_of(reports: List[pytest.TestReport]) -> CaseStatus:
        if any(report.failed for report in reports):
            return CaseStatus.FAILED
        if any(report.skipped for report in reports):
            return CaseStatus.SKIPPED
        return CaseStatus.PASSED

    @pytest.hookimpl(tryfirst=True)
    def pytest_runtest_protocol(self, item: pytest.Item, nextitem) -> bool:
        state = self.retry_policy.new_state(item.nodeid)
        item.ihook.pytest_runtest_logstart(nodeid=item.nodeid, location=item.location)

        while True:
            reports = runtestprotocol(item, nextitem=nextitem, log=False)
            if not self.retry_policy.should_retry(self._status_of(reports), state):
                break
            logger.warning(f"Re-running {item.nodeid} (execution {state.executions})")

        item.user_properties.append(("executions", state.executions))
        for report in reports:
            report.user_properties = list(item.user_properties)
            item.ihook.pytest_runtest_logreport(report=report)

        item.ihook.pytest_runtest_logfinish(nodeid=item.nodeid, location=item.location)
        return True

    @pytest.hookimpl(hookwrapper=True)
    def pytest_runtest_makereport(self, item: pytest.Item, call):
        """
        Capture a screenshot when the test body fails.

        Runs before fixture teardown, so the session is still bound.
        """
        outcome = yield
        report = outcome.get_result()

        if report.when == "call" and report.failed:
            session = self.registry.current()
            if session is not None:
                capture_failure_screenshot(session, self.run_config.screenshots_dir, item.nodeid)

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        if self.results.get(report.nodeid) is CaseStatus.FAILED:
            return

        if report.failed:
            self.results[report.nodeid] = CaseStatus.FAILED
        elif report.skipped:
            self.results[report.nodeid] = CaseStatus.SKIPPED
        elif report.when == "call":
            self.results[report.nodeid] = CaseStatus.PASSED

    def pytest_sessionfinish(self, session: pytest.Session, exitstatus) -> None:
        # xdist workers forward their reports; only the controller notifies
        if hasattr(session.config, "workerinput"):
            return

        self.outcome = aggregate(self.suite_name, self.results.values())
        logger.info(
            f"Suite '{self.suite_name}' finished: passed={self.outcome.passed}, "
            f"failed={self.outcome.failed}, skipped={self.outcome.skipped}"
        )

        if not self.notify:
            return

        try:
            with WebhookNotifier() as notifier:
                notifier.notify(self.outcome, self.run_config.notification_sinks)
        except Exception as e:
            logger.error(f"Suite notification failed: {e}")


# ================================================================================
# Pytest Configuration
# ================================================================================

def pytest_addoption(parser):
    group = parser.getgroup(PLUGIN_NAME, "UI automation framework")
    group.addoption(
        "--ui-env",
        default=None,
        help="Environment tag selecting framework-config-<env>.json (overrides $env)",
    )
    group.addoption(
        "--ui-config-dir",
        default=None,
        help="Directory holding framework-config*.json (default: <rootdir>/config)",
    )
    group.addoption(
        "--ui-suite-name",
        default=None,
        help="Suite name used in the result notification",
    )
    group.addoption(
        "--ui-no-notify",
        action="store_true",
        default=False,
        help="Do not send the suite summary to webhook sinks",
    )


def pytest_configure(config):
    """Load the run configuration and register the framework plugin."""
    init_logger()

    config.addinivalue_line("markers", "ui: mark test as UI test")

    config_dir = config.getoption("ui_config_dir") or config.rootpath / "config"
    source = ConfigSource(config_dir=Path(config_dir), env=config.getoption("ui_env"))

    plugin = UiFrameworkPlugin(
        run_config=source.load(),
        suite_name=config.getoption("ui_suite_name") or config.rootpath.name,
        notify=not config.getoption("ui_no_notify"),
    )
    config.pluginmanager.register(plugin, PLUGIN_NAME)


def _plugin(config) -> UiFrameworkPlugin:
    return config.pluginmanager.get_plugin(PLUGIN_NAME)


# ================================================================================
# Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def run_config(request) -> RunConfig:
    """Immutable run configuration for this pytest session."""
    return _plugin(request.config).run_config


@pytest.fixture(scope="session")
def session_registry(request) -> SessionRegistry:
    return _plugin(request.config).registry


@pytest.fixture(scope="session")
def session_factory(request) -> SessionFactory:
    return _plugin(request.config).factory


@pytest.fixture(scope="session")
def wait_engine(session_registry: SessionRegistry, run_config: RunConfig) -> WaitEngine:
    """Explicit waits over the current test's session."""
    return WaitEngine(session_registry, run_config)


@pytest.fixture
def ui_session(
    session_registry: SessionRegistry,
    session_factory: SessionFactory,
    run_config: RunConfig,
) -> Generator[Session, None, None]:
    """
    Fresh browser session bound to the test's thread.

    Opens run_config.base_url when configured and always releases the
    session, including when the test raises.
    """
    with session_registry.session_scope(session_factory, base_url=run_config.base_url) as session:
        yield session
