"""In-memory job queue used as the observable side effect of enqueuing."""

from __future__ import annotations

import contextlib
import dataclasses as dc
import datetime as dt
import json
import logging
import secrets
import threading
import time
import typing as t
from collections import abc

from ._validators import epoch_seconds, interval_seconds
from .errors import ConfigurationError, JobArgumentError, MissingQueueError
from .matching import canonical_key

logger = logging.getLogger(__name__)

_JSON_SCALARS = (str, int, float, bool, type(None))


@dc.dataclass(slots=True, eq=False)
class JobRecord:
    """A job as stored by the queue.

    Records compare by identity: two pushes with the same payload are two
    distinct jobs.
    """

    job_type: object
    args: list[t.Any]
    at: float | None = None
    jid: str = dc.field(default_factory=lambda: secrets.token_hex(12))
    created_at: float = dc.field(default_factory=time.time)

    @property
    def scheduled(self) -> bool:
        """Return ``True`` when the job has a future run time."""
        return self.at is not None

    def to_dict(self) -> dict[str, t.Any]:
        """Return a JSON-serializable mapping of this job."""
        payload: dict[str, t.Any] = {
            "class": job_type_name(self.job_type),
            "args": list(self.args),
            "jid": self.jid,
            "created_at": self.created_at,
        }
        if self.at is not None:
            payload["at"] = self.at
        return payload


class JobQueue(t.Protocol):
    """Read access to enqueued jobs, the only contract the matcher needs."""

    def jobs(self, job_type: object) -> t.Sequence[JobRecord]:
        """Return the jobs currently enqueued for *job_type*, oldest first."""
        ...


def job_type_name(job_type: object) -> str:
    """Return a readable name for *job_type*."""
    if isinstance(job_type, type):
        return job_type.__name__
    return str(job_type)


def _check_native(value: object, path: str) -> None:
    """Raise :class:`JobArgumentError` unless *value* is JSON-native."""
    if isinstance(value, _JSON_SCALARS):
        return
    if isinstance(value, list):
        for index, item in enumerate(value):
            _check_native(item, f"{path}[{index}]")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                msg = f"{path} has non-string key {key!r}"
                raise JobArgumentError(msg)
            _check_native(item, f"{path}[{key!r}]")
        return
    msg = (
        f"{path}={value!r} is not JSON-native; "
        "job arguments must be str, int, float, bool, None, list or dict"
    )
    raise JobArgumentError(msg)


def _coerce_key(key: object) -> str:
    try:
        return str(canonical_key(key))
    except ConfigurationError as exc:
        raise JobArgumentError(str(exc)) from exc


def _coerce(value: object) -> object:
    """Convert *value* into something :func:`json.dumps` accepts."""
    if isinstance(value, abc.Mapping):
        return {_coerce_key(key): _coerce(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_coerce(item) for item in value]
    return value


class InMemoryJobQueue:
    """Store jobs per job type without executing them.

    Arguments go through a JSON round trip on push, so tuples come back as
    lists and mapping keys as strings, exactly as a real queue would hand
    them to a worker.
    """

    # Track the active queue per thread to avoid cross-thread interference.
    _state: t.ClassVar[threading.local] = threading.local()

    @classmethod
    def get_active_queue(cls) -> InMemoryJobQueue | None:
        """Return the active queue for the current thread, if any."""
        return getattr(cls._state, "active_queue", None)

    @classmethod
    def reset_active_queue(cls) -> None:
        """Clear any active queue for the current thread."""
        cls._state.active_queue = None

    @classmethod
    def _set_active_queue(cls, queue: InMemoryJobQueue | None) -> None:
        cls._state.active_queue = queue

    def __init__(
        self,
        *,
        strict_args: bool = False,
        clock: t.Callable[[], float] = time.time,
    ) -> None:
        self.strict_args = strict_args
        self._clock = clock
        self._jobs: dict[object, list[JobRecord]] = {}

    def __len__(self) -> int:
        """Return the number of jobs across all job types."""
        return sum(len(jobs) for jobs in self._jobs.values())

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"InMemoryJobQueue(jobs={len(self)}, strict_args={self.strict_args})"

    def now(self) -> float:
        """Return the current time according to the queue clock."""
        return self._clock()

    @contextlib.contextmanager
    def activate(self) -> t.Iterator[InMemoryJobQueue]:
        """Make this queue the active queue for the current thread."""
        cls = type(self)
        previous = cls.get_active_queue()
        cls._set_active_queue(self)
        try:
            yield self
        finally:
            cls._set_active_queue(previous)

    def push(
        self,
        job_type: object,
        args: t.Sequence[object] = (),
        *,
        at: dt.datetime | float | None = None,
    ) -> JobRecord:
        """Append a job for *job_type* and return its record.

        A run time that is not in the future is recorded as an immediate job.
        """
        stored_args = self._serialize(args)
        scheduled = None if at is None else epoch_seconds(at)
        now = self._clock()
        if scheduled is not None and scheduled <= now:
            scheduled = None
        record = JobRecord(job_type, stored_args, scheduled, created_at=now)
        self._jobs.setdefault(job_type, []).append(record)
        logger.debug(
            "Enqueued %s job %s args=%r at=%r",
            job_type_name(job_type),
            record.jid,
            record.args,
            record.at,
        )
        return record

    def jobs(self, job_type: object) -> list[JobRecord]:
        """Return the jobs enqueued for *job_type*, oldest first."""
        return list(self._jobs.get(job_type, ()))

    def all_jobs(self) -> list[JobRecord]:
        """Return every enqueued job, grouped by job type in first-seen order."""
        return [record for jobs in self._jobs.values() for record in jobs]

    def clear(self, job_type: object | None = None) -> None:
        """Drop the jobs of *job_type*, or of every type when omitted."""
        if job_type is None:
            self._jobs.clear()
        else:
            self._jobs.pop(job_type, None)

    def _serialize(self, args: t.Sequence[object]) -> list[t.Any]:
        if isinstance(args, str | bytes) or not isinstance(args, abc.Sequence):
            msg = f"job arguments must be a sequence, got {type(args).__name__}"
            raise JobArgumentError(msg)
        if self.strict_args:
            for index, arg in enumerate(args):
                _check_native(arg, f"args[{index}]")
            payload = json.dumps(list(args))
        else:
            payload = json.dumps(_coerce(args), default=str)
        return json.loads(payload)


def resolve_queue(queue: JobQueue | None = None) -> JobQueue:
    """Return *queue* or the active queue for the current thread."""
    if queue is not None:
        return queue
    active = InMemoryJobQueue.get_active_queue()
    if active is None:
        msg = (
            "no job queue is active; use the job_queue fixture, "
            "InMemoryJobQueue.activate() or pass queue= explicitly"
        )
        raise MissingQueueError(msg)
    return active


class Worker:
    """Base class giving job types ``perform_*`` enqueue helpers.

    Keyword arguments are appended to the positional arguments as a trailing
    mapping. Set ``queue`` on a subclass to pin it to a specific queue;
    otherwise the active queue is used.
    """

    queue: t.ClassVar[InMemoryJobQueue | None] = None

    @classmethod
    def _queue(cls) -> InMemoryJobQueue:
        queue = cls.queue if cls.queue is not None else resolve_queue()
        return t.cast("InMemoryJobQueue", queue)

    @staticmethod
    def _pack(args: tuple[object, ...], kwargs: dict[str, object]) -> list[object]:
        packed = list(args)
        if kwargs:
            packed.append(dict(kwargs))
        return packed

    @classmethod
    def perform_async(cls, *args: object, **kwargs: object) -> JobRecord:
        """Enqueue a job to run immediately."""
        return cls._queue().push(cls, cls._pack(args, kwargs))

    @classmethod
    def perform_in(
        cls, interval: dt.timedelta | float, *args: object, **kwargs: object
    ) -> JobRecord:
        """Enqueue a job to run *interval* from now."""
        queue = cls._queue()
        at = queue.now() + interval_seconds(interval)
        return queue.push(cls, cls._pack(args, kwargs), at=at)

    @classmethod
    def perform_at(
        cls, when: dt.datetime | float, *args: object, **kwargs: object
    ) -> JobRecord:
        """Enqueue a job to run at *when*."""
        return cls._queue().push(cls, cls._pack(args, kwargs), at=when)

    @classmethod
    def jobs(cls) -> list[JobRecord]:
        """Return the jobs enqueued for this job type."""
        return list(resolve_queue(cls.queue).jobs(cls))


__all__ = [
    "InMemoryJobQueue",
    "JobQueue",
    "JobRecord",
    "Worker",
    "job_type_name",
    "resolve_queue",
]
