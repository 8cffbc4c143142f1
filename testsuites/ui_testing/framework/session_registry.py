"""
================================================================================
Session Registry
================================================================================

Per-thread session slots.

Every worker thread owns at most one bound session; a thread only ever sees
its own slot. The registry object is created once per run and passed to the
components that need the "current session".

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Union

import allure
from loguru import logger

from .browser_manager import BackendKind, Session, SessionFactory


class SessionRegistry:
    """
    Maps the calling thread to its active session.

    Usage:
        registry = SessionRegistry()
        with registry.session_scope(factory, base_url="https://app.example.com") as session:
            session.page.click("#login")
        # session released here, even if the block raised
    """

    def __init__(self) -> None:
        self._slots: Dict[int, Session] = {}
        self._lock = threading.Lock()

    def bind(self, session: Session) -> None:
        """Bind session to the calling thread, replacing any previous one."""
        ident = threading.get_ident()
        with self._lock:
            previous = self._slots.get(ident)
            self._slots[ident] = session

        if previous is not None and previous is not session:
            logger.warning(f"Replaced bound session {previous!r} without releasing it")
        logger.debug(f"Bound {session!r} to thread {threading.current_thread().name}")

    def current(self) -> Optional[Session]:
        """Session bound to the calling thread, or None."""
        return self._slots.get(threading.get_ident())

    def release(self) -> None:
        """
        Terminate and unbind the calling thread's session.

        Termination errors are logged and swallowed; the slot is always
        cleared. Without a bound session this is a no-op.
        """
        ident = threading.get_ident()
        with self._lock:
            session = self._slots.pop(ident, None)

        if session is None:
            return

        try:
            session.terminate()
        except Exception as e:
            logger.error(f"Error while terminating {session!r}: {e}")

    def active_count(self) -> int:
        """Number of threads currently holding a session."""
        with self._lock:
            return len(self._slots)

    @contextmanager
    def session_scope(
        self,
        factory: SessionFactory,
        kind: Union[BackendKind, str, None] = None,
        base_url: Optional[str] = None,
    ) -> Iterator[Session]:
        """
        Create and bind a session for the duration of the block.

        Args:
            factory: Session factory
            kind: Backend override
            base_url: Opened right after binding when given

        Yields:
            The bound session
        """
        session = factory.create(kind)
        self.bind(session)
        try:
            if base_url:
                with allure.step(f"Open {base_url}"):
                    session.navigate(base_url)
            yield session
        finally:
            self.release()


__all__ = [
    "SessionRegistry",
]
