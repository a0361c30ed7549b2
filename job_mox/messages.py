"""Failure message formatting for :class:`~job_mox.matcher.EnqueueMatcher`."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import typing as t
from textwrap import indent

from .matching import is_predicate
from .queue import job_type_name

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .queue import JobRecord


@dc.dataclass(slots=True, frozen=True)
class Constraints:
    """Snapshot of the active constraints of a matcher."""

    job_type: object
    arguments: list[object] | None = None
    expected_in: object | None = None
    expected_at: object | None = None
    expected_count: int | None = None


def _format_args(args: t.Sequence[object]) -> str:
    return ", ".join(repr(arg) for arg in args)


def _format_call(name: str, args_repr: str) -> str:
    return f"{name}({args_repr})"


def format_time(value: object) -> str:
    """Return a readable rendering of an absolute time expectation."""
    if isinstance(value, dt.datetime):
        return str(value)
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(dt.datetime.fromtimestamp(value, tz=dt.UTC))
    return repr(value)


def format_interval(value: object) -> str:
    """Return a readable rendering of a relative time expectation."""
    if isinstance(value, dt.timedelta):
        return str(value)
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(dt.timedelta(seconds=value))
    return repr(value)


def _numbered(entries: t.Sequence[str], *, start: int = 1) -> str:
    if not entries:
        return "(none)"
    return "\n".join(
        f"{index}. {entry}" for index, entry in enumerate(entries, start=start)
    )


def describe_job(job: JobRecord) -> str:
    """Return a one-line representation of *job*."""
    line = _format_call(job_type_name(job.job_type), _format_args(job.args))
    if job.at is not None:
        line = f"{line} at={format_time(job.at)}"
    return line


def _constraint_lines(constraints: Constraints) -> list[str]:
    lines: list[str] = []
    if constraints.arguments is not None:
        lines.append(f"arguments: {constraints.arguments!r}")
    if constraints.expected_in is not None:
        lines.append(f"in: {format_interval(constraints.expected_in)}")
    if constraints.expected_at is not None:
        at = constraints.expected_at
        rendered = repr(at) if is_predicate(at) else format_time(at)
        lines.append(f"at: {rendered}")
    if constraints.expected_count is not None:
        lines.append(f"exactly {constraints.expected_count} times")
    return lines


def failure_message(
    constraints: Constraints,
    enqueued: t.Sequence[JobRecord],
    *,
    negated: bool = False,
) -> str:
    """Return the diagnostic for a failed (or failed negated) assertion.

    The first line names the job type, followed by one indented line per
    active constraint and the list of matching-type jobs the block enqueued.
    """
    verb = "not to enqueue" if negated else "to enqueue"
    title = f"expected {verb} {job_type_name(constraints.job_type)} job"
    parts = [title]
    parts.extend(indent(line, "  ") for line in _constraint_lines(constraints))
    parts.append("")
    parts.append("Enqueued in block:")
    parts.append(indent(_numbered([describe_job(job) for job in enqueued]), "  "))
    return "\n".join(parts)


__all__ = [
    "Constraints",
    "describe_job",
    "failure_message",
    "format_interval",
    "format_time",
]
