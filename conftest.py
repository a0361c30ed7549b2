"""Global test configuration and shared fixtures."""

from __future__ import annotations

import typing as t

import pytest

from job_mox.queue import InMemoryJobQueue

pytest_plugins = ("job_mox.pytest_plugin", "pytester")


@pytest.fixture(autouse=True)
def reset_active_queue_state() -> t.Generator[None, None, None]:
    """Ensure no job queue leaks between tests through the active slot."""
    InMemoryJobQueue.reset_active_queue()
    yield
    InMemoryJobQueue.reset_active_queue()
