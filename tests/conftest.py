"""Pytest configuration.

The dispatch core marshals results through Qt signals, and the dialog tests
build real message boxes, so a single ``QApplication`` is created for the
whole session as early as possible and shut down cleanly at the end.
"""

from __future__ import annotations

import os
from typing import Any

import pytest

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    # Headless by default; CI has no window system.
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    # Keep a strong ref so it isn't GC'd mid-session.
    _APP = app if app is not None else QApplication([])


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


@pytest.fixture
def runner():
    from doc_actions.tasks import ExecutorLookup, MainThreadPoster, TaskRunner

    executors = ExecutorLookup(max_authorities=4)
    yield TaskRunner(executors, MainThreadPoster())
    executors.shutdown(wait=True)
