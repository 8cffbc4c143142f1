"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based browser session lifecycle and synchronization layer.

Components:
    - browser_manager: Session factory and the Session wrapper
    - session_registry: Per-thread binding of the active session
    - wait_engine: Explicit waits with a single configured timeout
    - retry_policy: Bounded re-execution of failed cases
    - suite_runner: Threaded suite execution with lifecycle hooks
    - pytest_plugin: Fixtures and hooks wiring the above into pytest

Author: Automation Team
License: MIT
================================================================================
"""

from .browser_manager import BackendKind, Session, SessionFactory
from .retry_policy import RetryPolicy, RetryState, RetryStatus
from .session_registry import SessionRegistry
from .suite_runner import ExecutionUnit, LifecycleHooks, SuiteRunner, session_hooks
from .wait_engine import WaitEngine

__all__ = [
    "BackendKind",
    "Session",
    "SessionFactory",
    "SessionRegistry",
    "WaitEngine",
    "RetryPolicy",
    "RetryState",
    "RetryStatus",
    "ExecutionUnit",
    "LifecycleHooks",
    "SuiteRunner",
    "session_hooks",
]
