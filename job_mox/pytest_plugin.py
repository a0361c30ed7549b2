"""Pytest plugin providing the ``job_queue`` and ``enqueue_job`` fixtures."""

from __future__ import annotations

import functools
import logging
import typing as t

import pytest

from .matcher import EnqueueMatcher
from .matcher import enqueue_job as _enqueue_job
from .queue import InMemoryJobQueue

logger = logging.getLogger(__name__)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("job_mox")
    group.addoption(
        "--job-mox-strict-args",
        action="store_true",
        dest="job_mox_strict_args",
        default=None,
        help=(
            "Reject job arguments that are not JSON-native when enqueuing "
            "onto the job_queue fixture. Overrides the pytest.ini setting."
        ),
    )
    group.addoption(
        "--no-job-mox-strict-args",
        action="store_false",
        dest="job_mox_strict_args",
        default=None,
        help=(
            "Coerce non JSON-native job arguments to strings instead of "
            "rejecting them. Overrides the pytest.ini setting."
        ),
    )
    parser.addini(
        "job_mox_strict_args",
        "Reject job arguments that are not JSON-native.",
        type="bool",
        default=False,
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register plugin-specific markers."""
    config.addinivalue_line(
        "markers",
        (
            "job_mox(strict_args: bool = False): override argument strictness "
            "of the job_queue fixture for a single test."
        ),
    )


_STRICT_ARGS = "strict_args"


def _strict_args_enabled(request: pytest.FixtureRequest) -> bool:
    """Return whether the queue should reject non JSON-native arguments."""
    # Priority order: marker > fixture param > CLI option > INI setting
    for override in (_marker_override, _param_override):
        value = override(request, _STRICT_ARGS)
        if value is not None:
            return value
    return _configured_flag(request.config, f"job_mox_{_STRICT_ARGS}")


def _configured_flag(config: pytest.Config, name: str) -> bool:
    """Return the CLI value of *name*, falling back to the ini setting."""
    cli_value = config.getoption(name)
    if cli_value is not None:
        return bool(cli_value)
    return bool(config.getini(name))


def _marker_override(request: pytest.FixtureRequest, key: str) -> bool | None:
    """Return the ``job_mox`` marker's value for *key* if present."""
    marker = request.node.get_closest_marker("job_mox")
    if marker is None or key not in marker.kwargs:
        return None
    return bool(marker.kwargs[key])


def _param_override(request: pytest.FixtureRequest, key: str) -> bool | None:
    """Return the indirect fixture parameter's value for *key* if present."""
    param = getattr(request, "param", None)
    if param is None:
        return None
    if isinstance(param, bool):
        return param
    if isinstance(param, dict):
        if key in param:
            return bool(param[key])
        msg = (
            f"job_queue fixture param dict must contain {key!r} key, "
            f"got keys: {list(param)}"
        )
        raise TypeError(msg)
    msg = (
        f"job_queue fixture param must be a bool or dict with {key!r} key, "
        f"got {type(param).__name__}"
    )
    raise TypeError(msg)


@pytest.fixture
def job_queue(
    request: pytest.FixtureRequest,
) -> t.Generator[InMemoryJobQueue, None, None]:
    """Provide an empty :class:`InMemoryJobQueue`, active for the test."""
    queue: InMemoryJobQueue | None = None
    try:
        queue = InMemoryJobQueue(strict_args=_strict_args_enabled(request))
        with queue.activate():
            yield queue
    except Exception:
        logger.exception("Error during job_queue fixture setup or teardown")
        raise
    finally:
        if queue is not None:
            _release_queue(queue)


def _release_queue(queue: InMemoryJobQueue) -> None:
    """Drop whatever the test left on *queue*."""
    if len(queue):
        logger.debug("Discarding %d job(s) left on %r", len(queue), queue)
    queue.clear()


@pytest.fixture
def enqueue_job(job_queue: InMemoryJobQueue) -> t.Callable[[object], EnqueueMatcher]:
    """Provide the ``enqueue_job`` matcher factory bound to ``job_queue``."""
    return functools.partial(_enqueue_job, queue=job_queue)
