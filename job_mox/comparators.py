"""Comparator classes used as embedded argument and time matchers.

Any non-class callable works as a matcher wherever a literal value is
accepted; these classes add readable reprs for failure messages.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import re
import typing as t


class Comparator(t.Protocol):
    """Callable returning ``True`` when a value matches."""

    def __call__(self, value: t.Any) -> bool:  # noqa: ANN401 - any job value
        """Return ``True`` if *value* satisfies the comparison."""
        ...


@dc.dataclass(frozen=True, slots=True)
class Any:
    """Match any value."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` for any input."""
        return True


@dc.dataclass(frozen=True, slots=True)
class IsA:
    """Match instances of ``typ``."""

    typ: type | tuple[type, ...]

    def __call__(self, value: object) -> bool:
        """Return ``True`` when *value* is an instance of ``typ``."""
        return isinstance(value, self.typ)


@dc.dataclass(frozen=True, slots=True)
class Regex:
    """Match strings searched by ``pattern``."""

    pattern: str
    _compiled: re.Pattern[str] = dc.field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(self.pattern))

    def __call__(self, value: object) -> bool:
        """Return ``True`` if the regex matches *value*."""
        if not isinstance(value, str):
            return False
        return bool(self._compiled.search(value))


@dc.dataclass(frozen=True, slots=True)
class Contains:
    """Match if ``item`` is found in *value*."""

    item: object

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``item in value``."""
        try:
            return self.item in value  # type: ignore[operator]
        except TypeError:
            return False


@dc.dataclass(frozen=True, slots=True)
class StartsWith:
    """Match strings beginning with ``prefix``."""

    prefix: str

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* starts with ``prefix``."""
        return isinstance(value, str) and value.startswith(self.prefix)


@dc.dataclass(frozen=True, slots=True)
class GreaterThan:
    """Match values strictly greater than ``bound``."""

    bound: t.Any

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``value > bound``."""
        try:
            return bool(value > self.bound)  # type: ignore[operator]
        except TypeError:
            return False


@dc.dataclass(frozen=True, slots=True)
class LessThan:
    """Match values strictly less than ``bound``."""

    bound: t.Any

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``value < bound``."""
        try:
            return bool(value < self.bound)  # type: ignore[operator]
        except TypeError:
            return False


def _as_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, dt.datetime):
        return value.timestamp()
    if isinstance(value, dt.timedelta):
        return value.total_seconds()
    if isinstance(value, int | float):
        return float(value)
    return None


@dc.dataclass(frozen=True, slots=True)
class Within:
    """Match values no further than ``delta`` from ``of``.

    Datetimes compare as epoch seconds and timedeltas as seconds, so a
    scheduled time can be matched loosely::

        enqueue_job(Worker).at(Within(dt.timedelta(seconds=5), of=future))
    """

    delta: dt.timedelta | float
    of: dt.datetime | float

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``abs(value - of) <= delta``."""
        actual = _as_number(value)
        target = _as_number(self.of)
        tolerance = _as_number(self.delta)
        if actual is None or target is None or tolerance is None:
            return False
        return abs(actual - target) <= tolerance


@dc.dataclass(frozen=True, slots=True)
class Predicate:
    """Use a custom ``func`` to determine a match."""

    func: t.Callable[[t.Any], object]

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``func(value)`` is truthy."""
        return bool(self.func(value))


__all__ = [
    "Any",
    "Comparator",
    "Contains",
    "GreaterThan",
    "IsA",
    "LessThan",
    "Predicate",
    "Regex",
    "StartsWith",
    "Within",
]
