import threading

import pytest

from testsuites.ui_testing.framework.retry_policy import RetryPolicy
from testsuites.ui_testing.framework.session_registry import SessionRegistry
from testsuites.ui_testing.framework.suite_runner import (
    ExecutionUnit,
    LifecycleHooks,
    SuiteRunner,
    session_hooks,
)
from uiauto_tools.common.exceptions import CaseSkipped
from uiauto_tools.common.run_config import NotificationSink, RunConfig, SinkKind
from uiauto_tools.report_tools.result_aggregator import CaseStatus, SuiteOutcome


class RecordingNotifier:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def notify(self, outcome, sinks):
        self.calls.append((outcome, tuple(sinks)))
        if self.error is not None:
            raise self.error
        return len(self.calls)


def _flaky(failures):
    """Body that fails the first `failures` executions, then passes."""
    counter = {"runs": 0}

    def body(session):
        counter["runs"] += 1
        if counter["runs"] <= failures:
            raise AssertionError(f"flaky run {counter['runs']}")

    body.counter = counter
    return body


@pytest.fixture
def config(tmp_path):
    return RunConfig(base_url="https://app.example.com", screenshots_dir=str(tmp_path / "shots"))


def _runner(registry, fake_factory, config, **kwargs):
    return SuiteRunner(
        "smoke",
        registry,
        hooks=session_hooks(registry, fake_factory, config),
        retry_policy=RetryPolicy(config.max_retries),
        **kwargs,
    )


def test_each_case_gets_fresh_session_opened_at_base_url(registry, fake_factory, config):
    seen = []

    def body(session):
        seen.append(session)
        assert session.current_url == "https://app.example.com"

    outcome = _runner(registry, fake_factory, config).run([
        ExecutionUnit("a", body),
        ExecutionUnit("b", body),
    ])

    assert outcome == SuiteOutcome("smoke", passed=2)
    assert seen[0] is not seen[1]
    assert all(session.terminate_calls == 1 for session in fake_factory.created)
    assert registry.active_count() == 0


def test_flaky_case_passes_on_retry(registry, fake_factory, config):
    body = _flaky(failures=1)
    runner = _runner(registry, fake_factory, config)

    outcome = runner.run([ExecutionUnit("flaky", body)])

    assert outcome.passed == 1 and outcome.failed == 0
    assert body.counter["runs"] == 2
    result = runner.results[0]
    assert result.status is CaseStatus.PASSED
    assert result.attempts == 2
    assert len(fake_factory.created) == 2


def test_persistent_failure_exhausts_retries(registry, fake_factory, config, tmp_path):
    body = _flaky(failures=10)
    runner = _runner(registry, fake_factory, config)

    outcome = runner.run([ExecutionUnit("broken", body)])

    assert outcome.failed == 1
    assert body.counter["runs"] == 2
    result = runner.results[0]
    assert result.attempts == 2
    assert isinstance(result.error, AssertionError)

    # one screenshot per failed execution, taken while the session was bound
    assert [session.screenshots for session in fake_factory.created] == [1, 1]
    assert len(list((tmp_path / "shots").glob("screenshot_*.png"))) >= 1
    assert all(session.terminate_calls == 1 for session in fake_factory.created)


def test_zero_retries(registry, fake_factory, tmp_path):
    config = RunConfig(max_retries=0, screenshots_dir=str(tmp_path))
    body = _flaky(failures=1)

    outcome = _runner(registry, fake_factory, config).run([ExecutionUnit("once", body)])

    assert outcome.failed == 1
    assert body.counter["runs"] == 1


def test_skipped_case_is_counted_and_not_retried(registry, fake_factory, config):
    calls = []

    def body(session):
        calls.append(1)
        raise CaseSkipped("feature flag off")

    outcome = _runner(registry, fake_factory, config).run([ExecutionUnit("skip", body)])

    assert outcome == SuiteOutcome("smoke", skipped=1)
    assert calls == [1]
    assert fake_factory.created[0].screenshots == 0


def test_parallel_workers_use_isolated_sessions(registry, fake_factory, config):
    barrier = threading.Barrier(4)
    observed = []
    lock = threading.Lock()

    def body(session):
        barrier.wait(timeout=5)
        with lock:
            observed.append((threading.current_thread().name, session, registry.current()))

    units = [ExecutionUnit(f"case-{i}", body) for i in range(4)]
    outcome = _runner(registry, fake_factory, config, workers=4).run(units)

    assert outcome.passed == 4
    assert len({id(session) for _, session, _ in observed}) == 4
    assert all(session is current for _, session, current in observed)
    assert all(name.startswith("ui-worker") for name, _, _ in observed)
    assert registry.active_count() == 0


def test_notifier_receives_outcome_and_sinks(registry, fake_factory, config):
    notifier = RecordingNotifier()
    sinks = (NotificationSink(SinkKind.WECOM, "https://wecom.example.com/hook"),)

    outcome = _runner(registry, fake_factory, config, notifier=notifier, sinks=sinks).run([
        ExecutionUnit("ok", lambda session: None),
    ])

    assert notifier.calls == [(outcome, sinks)]


def test_notification_failure_does_not_break_run(registry, fake_factory, config):
    notifier = RecordingNotifier(error=RuntimeError("webhook down"))
    finished = []
    hooks = session_hooks(registry, fake_factory, config)
    hooks.on_suite_finish(finished.append)

    runner = SuiteRunner("smoke", registry, hooks=hooks, notifier=notifier)
    outcome = runner.run([ExecutionUnit("ok", lambda session: None)])

    assert outcome.passed == 1
    assert finished == [outcome]


def test_hook_order_and_error_isolation(registry):
    events = []
    hooks = LifecycleHooks()

    @hooks.before_each
    def before(name):
        events.append(("before", name))

    @hooks.on_failure
    def failure(name, error):
        events.append(("failure", name, str(error)))

    @hooks.after_each
    def broken_after(name):
        raise RuntimeError("cleanup failed")

    @hooks.after_each
    def after(name):
        events.append(("after", name))

    runner = SuiteRunner("hooks", registry, hooks=hooks, retry_policy=RetryPolicy(0))

    def body(session):
        assert session is None
        raise ValueError("bad input")

    outcome = runner.run([ExecutionUnit("case", body)])

    assert outcome.failed == 1
    assert events == [("before", "case"), ("failure", "case", "bad input"), ("after", "case")]


def test_before_hook_error_fails_the_attempt(registry):
    hooks = LifecycleHooks()
    after_calls = []
    body_calls = []

    @hooks.before_each
    def broken_before(name):
        raise RuntimeError("browser did not start")

    hooks.after_each(after_calls.append)

    runner = SuiteRunner("hooks", registry, hooks=hooks, retry_policy=RetryPolicy(1))
    outcome = runner.run([ExecutionUnit("case", body_calls.append)])

    assert outcome.failed == 1
    assert body_calls == []
    assert after_calls == ["case", "case"]


def test_from_config_wires_retries_and_session_hooks(fake_factory, tmp_path):
    config = RunConfig(max_retries=2, screenshots_dir=str(tmp_path))

    runner = SuiteRunner.from_config("nightly", config, factory=fake_factory, notify=False)
    body = _flaky(failures=2)
    outcome = runner.run([ExecutionUnit("case", body)])

    assert isinstance(runner.registry, SessionRegistry)
    assert runner.notifier is None
    assert outcome.passed == 1
    assert runner.results[0].attempts == 3
    assert len(fake_factory.created) == 3


def test_invalid_worker_count(registry):
    with pytest.raises(ValueError):
        SuiteRunner("bad", registry, workers=0)
