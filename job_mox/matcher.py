"""Block matcher asserting that a job was enqueued."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import logging
import time
import typing as t

from . import messages
from ._validators import epoch_seconds, interval_seconds, validate_count
from .errors import ConfigurationError, ContractViolationError
from .matching import is_predicate, normalize_arguments, values_match
from .queue import job_type_name, resolve_queue

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .queue import JobQueue, JobRecord

logger = logging.getLogger(__name__)

_MIXED_ARGUMENTS = (
    "setting arguments both literally and from a callable is not supported"
)
_AT_AND_IN = "setting expectations with both `at` and `in_` is not supported"


@dc.dataclass(slots=True)
class EnqueueMatcher:
    """Check that a block enqueues a job of ``job_type``.

    Examples
    --------
    ::

        expect(lambda: Mailer.perform_async(42, "David")).to(
            enqueue_job(Mailer).with_args(42, "David")
        )
        expect(lambda: Mailer.perform_in(300)).to(enqueue_job(Mailer).in_(300))
        expect(noop).not_to(enqueue_job(Mailer))

    A matcher is configured by chaining, evaluated once against a block and
    then discarded. Relative schedules are measured with ``clock``, which
    defaults to the queue's own ``now``.
    """

    job_type: object
    queue: JobQueue | None = dc.field(default=None, kw_only=True)
    clock: t.Callable[[], float] | None = dc.field(
        default=None, kw_only=True, repr=False
    )
    expected_arguments: list[object] | None = dc.field(default=None, init=False)
    arguments_from: t.Callable[[t.Any], object] | None = dc.field(
        default=None, init=False
    )
    expected_at: object | None = dc.field(default=None, init=False)
    expected_in: object | None = dc.field(default=None, init=False)
    expected_count: int | None = dc.field(default=None, init=False)
    _at_seconds: float | None = dc.field(default=None, init=False, repr=False)
    _in_seconds: float | None = dc.field(default=None, init=False, repr=False)
    _evaluated: bool = dc.field(default=False, init=False, repr=False)
    _enqueued: list[JobRecord] = dc.field(
        default_factory=list, init=False, repr=False
    )
    _matched: list[JobRecord] = dc.field(default_factory=list, init=False, repr=False)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def with_args(self, *args: object, **kwargs: object) -> EnqueueMatcher:
        """Require the job arguments to match ``args``.

        Keyword arguments form a trailing mapping whose keys compare in their
        canonical string form. Any argument may be a predicate.
        """
        self._ensure_configurable()
        if self.arguments_from is not None:
            raise ConfigurationError(_MIXED_ARGUMENTS)
        arguments = list(args)
        if kwargs:
            arguments.append(dict(kwargs))
        self.expected_arguments = normalize_arguments(arguments)
        return self

    def with_args_from(self, func: t.Callable[[t.Any], object]) -> EnqueueMatcher:
        """Compute expected arguments by calling ``func`` with the block result."""
        self._ensure_configurable()
        if self.expected_arguments is not None:
            raise ConfigurationError(_MIXED_ARGUMENTS)
        if not callable(func):
            msg = f"with_args_from() expects a callable, got {func!r}"
            raise ConfigurationError(msg)
        self.arguments_from = func
        return self

    def at(self, when: object) -> EnqueueMatcher:
        """Require the job to be scheduled for ``when``.

        ``when`` is a datetime, epoch seconds or a predicate receiving the
        scheduled time as an aware UTC datetime.
        """
        self._ensure_configurable()
        if self.expected_in is not None:
            raise ConfigurationError(_AT_AND_IN)
        seconds = None
        if not is_predicate(when):
            seconds = epoch_seconds(t.cast("dt.datetime | float", when))
        self._at_seconds = seconds
        self.expected_at = when
        return self

    def in_(self, interval: object) -> EnqueueMatcher:
        """Require the job to be scheduled ``interval`` from now.

        ``interval`` is a timedelta, seconds or a predicate receiving the
        remaining delay as a timedelta.
        """
        self._ensure_configurable()
        if self.expected_at is not None:
            raise ConfigurationError(_AT_AND_IN)
        seconds = None
        if not is_predicate(interval):
            seconds = interval_seconds(t.cast("dt.timedelta | float", interval))
        self._in_seconds = seconds
        self.expected_in = interval
        return self

    def exactly(self, count: int) -> EnqueueMatcher:
        """Require exactly ``count`` matching jobs."""
        self._ensure_configurable()
        validate_count(count)
        self.expected_count = count
        return self

    def times(self, count: int | None = None) -> EnqueueMatcher:
        """Alias for :meth:`exactly`, or a no-op to end ``exactly(n).times()``."""
        if count is None:
            self._ensure_configurable()
            return self
        return self.exactly(count)

    def once(self) -> EnqueueMatcher:
        """Require exactly one matching job."""
        return self.exactly(1)

    def twice(self) -> EnqueueMatcher:
        """Require exactly two matching jobs."""
        return self.exactly(2)

    # ------------------------------------------------------------------
    # Matcher protocol
    # ------------------------------------------------------------------
    def supports_block_expectations(self) -> bool:
        """Return ``True``; the matcher is evaluated against callables."""
        return True

    def supports_value_expectations(self) -> bool:
        """Return ``False``; plain values cannot enqueue anything."""
        return False

    def matches(self, block: t.Callable[[], object]) -> bool:
        """Run *block* and return whether the expected jobs were enqueued."""
        self._begin(block)
        matched = self._evaluate(block)
        expected = 1 if self.expected_count is None else self.expected_count
        return len(matched) == expected

    def does_not_match(self, block: t.Callable[[], object]) -> bool:
        """Run *block* and return whether no matching job was enqueued."""
        if self.expected_count is not None:
            msg = "counts are not supported with negation"
            raise ConfigurationError(msg)
        self._begin(block)
        return not self._evaluate(block)

    @property
    def failure_message(self) -> str:
        """Describe why a positive assertion failed."""
        return messages.failure_message(self._constraints(), self._enqueued)

    @property
    def failure_message_when_negated(self) -> str:
        """Describe why a negated assertion failed."""
        return messages.failure_message(
            self._constraints(), self._enqueued, negated=True
        )

    @property
    def enqueued(self) -> list[JobRecord]:
        """Return the target-type jobs enqueued by the evaluated block."""
        return list(self._enqueued)

    @property
    def matched(self) -> list[JobRecord]:
        """Return the enqueued jobs that satisfied every constraint."""
        return list(self._matched)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def _ensure_configurable(self) -> None:
        if self._evaluated:
            msg = "matcher has already been evaluated; create a new one"
            raise ConfigurationError(msg)

    def _begin(self, block: object) -> None:
        """Reject misuse before *block* runs."""
        if not callable(block):
            msg = (
                "enqueue_job only supports block expectations; "
                f"wrap the code in a callable instead of passing {block!r}"
            )
            raise ConfigurationError(msg)
        self._ensure_configurable()
        self._evaluated = True

    def _evaluate(self, block: t.Callable[[], object]) -> list[JobRecord]:
        queue = resolve_queue(self.queue)
        before = list(queue.jobs(self.job_type))
        result = block()

        if self.arguments_from is not None:
            self.expected_arguments = self._compute_arguments(result)

        seen = {id(job) for job in before}
        self._enqueued = [
            job for job in queue.jobs(self.job_type) if id(job) not in seen
        ]
        clock = self.clock or getattr(queue, "now", time.time)
        self._matched = self._filter(self._enqueued, clock)
        logger.debug(
            "%s: %d job(s) before block, %d enqueued, %d matched",
            job_type_name(self.job_type),
            len(before),
            len(self._enqueued),
            len(self._matched),
        )
        return self._matched

    def _compute_arguments(self, result: object) -> list[object]:
        func = t.cast("t.Callable[[object], object]", self.arguments_from)
        arguments = func(result)
        if not isinstance(arguments, list | tuple):
            msg = (
                "`with_args_from` callable is expected to return a list, "
                f"got {type(arguments).__name__}"
            )
            raise ContractViolationError(msg)
        return normalize_arguments(arguments)

    def _filter(
        self, jobs: list[JobRecord], clock: t.Callable[[], float]
    ) -> list[JobRecord]:
        if self.expected_at is not None:
            jobs = [job for job in jobs if self._at_matches(job.at)]
        if self.expected_in is not None:
            jobs = [job for job in jobs if self._in_matches(job.at, clock)]
        if self.expected_arguments is not None:
            expected = self.expected_arguments
            jobs = [
                job
                for job in jobs
                if values_match(expected, normalize_arguments(job.args))
            ]
        return jobs

    # Scheduled times lose sub-second precision on the way through a queue,
    # so both sides are truncated to whole seconds.
    def _at_matches(self, actual: float | None) -> bool:
        if actual is None:
            return False
        actual_time = dt.datetime.fromtimestamp(actual, tz=dt.UTC)
        if values_match(self.expected_at, actual_time):
            return True
        return self._at_seconds is not None and int(self._at_seconds) == int(actual)

    def _in_matches(
        self, actual: float | None, clock: t.Callable[[], float]
    ) -> bool:
        if actual is None:
            return False
        now = clock()
        if self._in_seconds is None:
            return values_match(
                self.expected_in, dt.timedelta(seconds=int(actual) - int(now))
            )
        return int(now + self._in_seconds) == int(actual)

    def _constraints(self) -> messages.Constraints:
        return messages.Constraints(
            job_type=self.job_type,
            arguments=self.expected_arguments,
            expected_in=self.expected_in,
            expected_at=self.expected_at,
            expected_count=self.expected_count,
        )


def enqueue_job(job_type: object, *, queue: JobQueue | None = None) -> EnqueueMatcher:
    """Return a matcher checking that a block enqueues a ``job_type`` job."""
    return EnqueueMatcher(job_type, queue=queue)


__all__ = ["EnqueueMatcher", "enqueue_job"]
