"""Python-native assertions on background jobs enqueued by a block of code.

``job_mox`` snapshots a job queue, runs the code under test, and checks the
jobs it enqueued against argument, schedule and count expectations::

    expect(lambda: Mailer.perform_async(42, "David")).to(
        enqueue_job(Mailer).with_args(42, "David")
    )
"""

from __future__ import annotations

from .comparators import (
    Any,
    Contains,
    GreaterThan,
    IsA,
    LessThan,
    Predicate,
    Regex,
    StartsWith,
    Within,
)
from .errors import (
    ConfigurationError,
    ContractViolationError,
    JobArgumentError,
    JobMoxError,
    MissingQueueError,
)
from .expect import BlockMatcher, ExpectationTarget, expect
from .matcher import EnqueueMatcher, enqueue_job
from .matching import values_match
from .queue import InMemoryJobQueue, JobQueue, JobRecord, Worker

__all__ = [
    "Any",
    "BlockMatcher",
    "ConfigurationError",
    "Contains",
    "ContractViolationError",
    "EnqueueMatcher",
    "ExpectationTarget",
    "GreaterThan",
    "InMemoryJobQueue",
    "IsA",
    "JobArgumentError",
    "JobMoxError",
    "JobQueue",
    "JobRecord",
    "LessThan",
    "MissingQueueError",
    "Predicate",
    "Regex",
    "StartsWith",
    "Within",
    "Worker",
    "enqueue_job",
    "expect",
    "values_match",
]
