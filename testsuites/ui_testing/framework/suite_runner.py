"""
================================================================================
Suite Runner
================================================================================

Executes UI test cases on worker threads with per-thread browser sessions.

Features:
    - Explicit lifecycle hook registration (before/after each, on failure,
      on suite finish)
    - Built-in session hooks: fresh session per attempt, base URL navigation,
      guaranteed release, failure screenshot
    - Retry policy applied per case
    - Aggregation and webhook notification once all workers are done

Usage:
    runner = SuiteRunner.from_config("smoke", config, workers=4)
    outcome = runner.run([
        ExecutionUnit("login", lambda session: login_flow(session)),
        ExecutionUnit("search", lambda session: search_flow(session)),
    ])

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from uiauto_tools.common.exceptions import CaseSkipped
from uiauto_tools.common.run_config import NotificationSink, RunConfig
from uiauto_tools.notification import WebhookNotifier
from uiauto_tools.report_tools.allure_utils import capture_failure_screenshot
from uiauto_tools.report_tools.result_aggregator import (
    CaseResult,
    CaseStatus,
    SuiteOutcome,
    aggregate,
)

from .browser_manager import Session, SessionFactory
from .retry_policy import RetryPolicy
from .session_registry import SessionRegistry


@dataclass
class ExecutionUnit:
    """One test case: a name and a body receiving the bound session."""

    name: str
    body: Callable[[Optional[Session]], None]


class LifecycleHooks:
    """
    Ordered callback lists for the runner boundary.

    Before hooks run in registration order and their errors fail the attempt.
    Failure hooks run while the session is still bound. After hooks always run
    once an attempt has started; their errors are logged and never change the
    case outcome. Each register method returns the callback, so it can be used
    as a decorator.
    """

    def __init__(self) -> None:
        self._before_each: List[Callable[[str], None]] = []
        self._after_each: List[Callable[[str], None]] = []
        self._on_failure: List[Callable[[str, BaseException], None]] = []
        self._on_suite_finish: List[Callable[[SuiteOutcome], None]] = []

    def before_each(self, callback: Callable[[str], None]) -> Callable[[str], None]:
        self._before_each.append(callback)
        return callback

    def after_each(self, callback: Callable[[str], None]) -> Callable[[str], None]:
        self._after_each.append(callback)
        return callback

    def on_failure(
        self, callback: Callable[[str, BaseException], None]
    ) -> Callable[[str, BaseException], None]:
        self._on_failure.append(callback)
        return callback

    def on_suite_finish(
        self, callback: Callable[[SuiteOutcome], None]
    ) -> Callable[[SuiteOutcome], None]:
        self._on_suite_finish.append(callback)
        return callback

    def run_before_each(self, case_name: str) -> None:
        for callback in self._before_each:
            callback(case_name)

    def run_after_each(self, case_name: str) -> None:
        for callback in self._after_each:
            try:
                callback(case_name)
            except Exception as e:
                logger.error(f"after_each hook {callback.__name__} failed for {case_name}: {e}")

    def run_on_failure(self, case_name: str, error: BaseException) -> None:
        for callback in self._on_failure:
            try:
                callback(case_name, error)
            except Exception as e:
                logger.error(f"on_failure hook {callback.__name__} failed for {case_name}: {e}")

    def run_on_suite_finish(self, outcome: SuiteOutcome) -> None:
        for callback in self._on_suite_finish:
            try:
                callback(outcome)
            except Exception as e:
                logger.error(f"on_suite_finish hook {callback.__name__} failed: {e}")


def session_hooks(
    registry: SessionRegistry,
    factory: SessionFactory,
    config: RunConfig,
    hooks: Optional[LifecycleHooks] = None,
) -> LifecycleHooks:
    """
    Register the standard session lifecycle on hooks.

    - before each: create and bind a fresh session, open config.base_url
    - on failure: capture a screenshot from the bound session
    - after each: release the session
    """
    hooks = hooks or LifecycleHooks()

    @hooks.before_each
    def open_session(case_name: str) -> None:
        session = factory.create()
        registry.bind(session)
        if config.base_url:
            session.navigate(config.base_url)

    @hooks.on_failure
    def screenshot_on_failure(case_name: str, error: BaseException) -> None:
        session = registry.current()
        if session is not None:
            capture_failure_screenshot(session, config.screenshots_dir, case_name)

    @hooks.after_each
    def close_session(case_name: str) -> None:
        registry.release()

    return hooks


class SuiteRunner:
    """
    Runs execution units on a pool of worker threads.

    Each worker runs one unit at a time to completion, including its retries.
    Aggregation, notification and suite-finish hooks run on the calling
    thread after every worker has finished.
    """

    def __init__(
        self,
        name: str,
        registry: SessionRegistry,
        hooks: Optional[LifecycleHooks] = None,
        retry_policy: Optional[RetryPolicy] = None,
        notifier: Optional[WebhookNotifier] = None,
        sinks: Sequence[NotificationSink] = (),
        workers: int = 1,
    ):
        """
        Initialize suite runner.

        Args:
            name: Suite name used in the summary
            registry: Session registry shared by the workers
            hooks: Lifecycle hooks (empty when None)
            retry_policy: Retry policy (one retry when None)
            notifier: Webhook notifier; no notification when None
            sinks: Notification sinks passed to the notifier
            workers: Number of worker threads
        """
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        self.name = name
        self.registry = registry
        self.hooks = hooks or LifecycleHooks()
        self.retry_policy = retry_policy or RetryPolicy()
        self.notifier = notifier
        self.sinks: Tuple[NotificationSink, ...] = tuple(sinks)
        self.workers = workers
        self.results: List[CaseResult] = []

    @classmethod
    def from_config(
        cls,
        name: str,
        config: RunConfig,
        factory: Optional[SessionFactory] = None,
        workers: int = 1,
        notify: bool = True,
    ) -> "SuiteRunner":
        """Build a runner with the standard session hooks and configured retries/sinks."""
        registry = SessionRegistry()
        factory = factory or SessionFactory(config)
        return cls(
            name=name,
            registry=registry,
            hooks=session_hooks(registry, factory, config),
            retry_policy=RetryPolicy(config.max_retries),
            notifier=WebhookNotifier() if notify else None,
            sinks=config.notification_sinks,
            workers=workers,
        )

    def run(self, units: Iterable[ExecutionUnit]) -> SuiteOutcome:
        """
        Execute all units and report the suite outcome.

        Returns:
            SuiteOutcome aggregated from the final result of every unit
        """
        units = list(units)
        logger.info(f"Starting suite '{self.name}': {len(units)} cases on {self.workers} workers")

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="ui-worker") as pool:
            self.results = list(pool.map(self.execute, units))

        outcome = aggregate(self.name, self.results)
        logger.info(
            f"Suite '{self.name}' finished: passed={outcome.passed}, "
            f"failed={outcome.failed}, skipped={outcome.skipped}"
        )

        if self.notifier is not None:
            try:
                self.notifier.notify(outcome, self.sinks)
            except Exception as e:
                logger.error(f"Suite notification failed: {e}")

        self.hooks.run_on_suite_finish(outcome)
        return outcome

    def execute(self, unit: ExecutionUnit) -> CaseResult:
        """Run one unit with retries on the calling thread."""
        state = self.retry_policy.new_state(unit.name)
        start = time.monotonic()

        while True:
            status, error = self._attempt(unit)
            if not self.retry_policy.should_retry(status, state):
                break

        return CaseResult(
            name=unit.name,
            status=status,
            attempts=state.executions,
            error=error,
            duration=time.monotonic() - start,
        )

    def _attempt(self, unit: ExecutionUnit) -> Tuple[CaseStatus, Optional[BaseException]]:
        try:
            self.hooks.run_before_each(unit.name)
            unit.body(self.registry.current())
            logger.info(f"Case passed: {unit.name}")
            return CaseStatus.PASSED, None
        except CaseSkipped as e:
            logger.info(f"Case skipped: {unit.name} ({e})")
            return CaseStatus.SKIPPED, e
        except Exception as e:
            logger.error(f"Case failed: {unit.name}: {e}")
            self.hooks.run_on_failure(unit.name, e)
            return CaseStatus.FAILED, e
        finally:
            self.hooks.run_after_each(unit.name)


__all__ = [
    "ExecutionUnit",
    "LifecycleHooks",
    "SuiteRunner",
    "session_hooks",
]
