"""Exception hierarchy for job_mox."""

from __future__ import annotations


class JobMoxError(Exception):
    """Base class for all job_mox errors."""


class ConfigurationError(JobMoxError, ValueError):
    """Raised when a matcher or queue is misused.

    Configuration errors are reported at the point of misuse and never
    deferred until after the asserted block has run.
    """


class MissingQueueError(ConfigurationError):
    """Raised when no job queue was injected and none is active."""


class ContractViolationError(JobMoxError, TypeError):
    """Raised when a ``with_args_from`` callable returns a non-sequence."""


class JobArgumentError(JobMoxError, TypeError):
    """Raised when a strict queue receives a non JSON-native argument."""


__all__ = [
    "ConfigurationError",
    "ContractViolationError",
    "JobArgumentError",
    "JobMoxError",
    "MissingQueueError",
]
