import threading
import time

import pytest

from testsuites.ui_testing.framework.wait_engine import WaitEngine
from testsuites.unit.fakes import FakeElement, FakeSession
from uiauto_tools.common.exceptions import (
    InvalidArgumentError,
    SessionNotBoundError,
    WaitTimeoutError,
)
from uiauto_tools.common.run_config import RunConfig


@pytest.fixture
def session(registry):
    session = FakeSession()
    registry.bind(session)
    yield session
    registry.release()


@pytest.fixture
def waits(registry):
    return WaitEngine(registry, RunConfig(explicit_wait_seconds=1), poll_interval=0.02)


def _later(delay, action):
    timer = threading.Timer(delay, action)
    timer.start()
    return timer


def test_returns_as_soon_as_condition_holds(session, waits):
    session.page.elements["#submit"] = [FakeElement(enabled=False)]
    timer = _later(0.3, lambda: setattr(session.page.elements["#submit"][0], "enabled", True))

    start = time.monotonic()
    element = waits.until_clickable("#submit")
    elapsed = time.monotonic() - start
    timer.join()

    assert element is session.page.elements["#submit"][0]
    assert 0.25 <= elapsed < 0.8


def test_timeout_is_not_raised_before_deadline(session, waits):
    start = time.monotonic()
    with pytest.raises(WaitTimeoutError) as exc_info:
        waits.until_visible("#never", timeout=0.3)
    elapsed = time.monotonic() - start

    assert elapsed >= 0.29
    assert exc_info.value.timeout == 0.3
    assert exc_info.value.elapsed >= 0.29


def test_default_timeout_comes_from_config(session, registry):
    waits = WaitEngine(registry, RunConfig(explicit_wait_seconds=0), poll_interval=0.02)

    with pytest.raises(WaitTimeoutError) as exc_info:
        waits.until_present("#missing")

    assert exc_info.value.timeout == 0


def test_zero_timeout_evaluates_once(session, registry):
    waits = WaitEngine(registry, RunConfig(explicit_wait_seconds=0))
    session.page.elements["#ready"] = [FakeElement()]

    assert waits.until_present("#ready") is session.page.elements["#ready"][0]


def test_predicate_error_propagates_unchanged(session, waits):
    def broken(_session):
        raise LookupError("stale element")

    with pytest.raises(LookupError, match="stale element"):
        waits.until(broken)


def test_custom_predicate_value_is_returned(session, waits):
    assert waits.until(lambda s: s.current_url, timeout=0) == "about:blank"


def test_negative_timeout_is_rejected(session, waits):
    with pytest.raises(InvalidArgumentError):
        waits.until(lambda s: True, timeout=-1)


def test_no_bound_session_raises(waits):
    with pytest.raises(SessionNotBoundError):
        waits.until_visible("#anything")


def test_visibility_requires_visible_first_match(session, waits):
    session.page.elements["#banner"] = [FakeElement(visible=False)]

    with pytest.raises(WaitTimeoutError):
        waits.until_visible("#banner", timeout=0.1)

    session.page.elements["#banner"][0].visible = True
    assert waits.until_visible("#banner", timeout=0.1) is session.page.elements["#banner"][0]


def test_handle_targets_are_checked_directly(session, waits):
    handle = FakeElement(visible=True, enabled=False)

    with pytest.raises(WaitTimeoutError):
        waits.until_clickable(handle, timeout=0.1)

    handle.enabled = True
    assert waits.until_clickable(handle, timeout=0.1) is handle


def test_all_visible_returns_every_match_in_order(session, waits):
    items = [FakeElement(text="a"), FakeElement(text="b", visible=False), FakeElement(text="c")]
    session.page.elements["li"] = items

    with pytest.raises(WaitTimeoutError):
        waits.until_all_visible("li", timeout=0.1)

    items[1].visible = True
    assert [item.text for item in waits.until_all_visible("li", timeout=0.1)] == ["a", "b", "c"]


def test_all_visible_with_no_matches_times_out(session, waits):
    with pytest.raises(WaitTimeoutError):
        waits.until_all_visible("li", timeout=0.1)


def test_presence_ignores_visibility(session, waits):
    hidden = FakeElement(visible=False)
    session.page.elements["input[type=hidden]"] = [hidden]

    assert waits.until_present("input[type=hidden]", timeout=0.1) is hidden


def test_invisible_true_for_absent_or_hidden(session, waits):
    assert waits.until_invisible("#spinner", timeout=0.1) is True

    session.page.elements["#spinner"] = [FakeElement(visible=False)]
    assert waits.until_invisible("#spinner", timeout=0.1) is True


def test_invisible_returns_false_on_timeout(session, waits):
    session.page.elements["#spinner"] = [FakeElement(visible=True)]

    assert waits.until_invisible("#spinner", timeout=0.1) is False


def test_url_contains(session, waits):
    session.navigate("https://app.example.com/dashboard")

    assert waits.until_url_contains("/dashboard", timeout=0.5) is True
    assert waits.until_url_contains("/settings", timeout=0.1) is False


@pytest.mark.parametrize("fragment", ["", "   "])
def test_url_contains_rejects_empty_fragment(session, waits, fragment):
    with pytest.raises(InvalidArgumentError):
        waits.until_url_contains(fragment)


def test_waits_use_each_threads_own_session(registry, waits):
    results = {}

    def worker(name, url):
        session = FakeSession()
        session.navigate(url)
        registry.bind(session)
        try:
            results[name] = waits.until_url_contains(name, timeout=0.2)
        finally:
            registry.release()

    threads = [
        threading.Thread(target=worker, args=("alpha", "https://example.com/alpha")),
        threading.Thread(target=worker, args=("beta", "https://example.com/alpha")),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results == {"alpha": True, "beta": False}
