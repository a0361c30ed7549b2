"""Deep value matching with embedded predicates."""

from __future__ import annotations

import enum
import typing as t
from collections import abc

from .errors import ConfigurationError


def is_predicate(expected: object) -> bool:
    """Return ``True`` when *expected* should be called rather than compared.

    Classes are callable but are treated as literal values so that a job
    type can itself appear as an expected argument.
    """
    return callable(expected) and not isinstance(expected, type)


def _is_sequence(value: object) -> bool:
    return isinstance(value, list | tuple)


def canonical_key(key: object) -> object:
    """Return the canonical ``str`` spelling of a mapping key.

    String enum members and bytes collapse onto the text they spell, other
    enum members onto their name. Any other key is returned unchanged.
    """
    if isinstance(key, enum.Enum):
        return key.value if isinstance(key.value, str) else key.name
    if isinstance(key, bytes):
        try:
            return key.decode()
        except UnicodeDecodeError as exc:
            msg = f"mapping key {key!r} is not valid UTF-8"
            raise ConfigurationError(msg) from exc
    if isinstance(key, str):
        return str(key)
    return key


def canonical_mapping(mapping: t.Mapping[object, object]) -> dict[object, object]:
    """Return a copy of *mapping* keyed by :func:`canonical_key`."""
    return {canonical_key(key): value for key, value in mapping.items()}


def normalize_arguments(arguments: t.Sequence[object]) -> list[object]:
    """Return *arguments* as a list with a canonical trailing mapping."""
    normalized = list(arguments)
    if normalized and isinstance(normalized[-1], abc.Mapping):
        normalized[-1] = canonical_mapping(normalized[-1])
    return normalized


def values_match(expected: object, actual: object) -> bool:
    """Return ``True`` when *actual* satisfies *expected*.

    *expected* may embed predicates at any depth. Lists and tuples are
    interchangeable and mapping keys are compared in canonical form.
    """
    if is_predicate(expected):
        return bool(expected(actual))  # type: ignore[operator]
    if _is_sequence(expected) and _is_sequence(actual):
        return _sequences_match(
            t.cast("t.Sequence[object]", expected),
            t.cast("t.Sequence[object]", actual),
        )
    if isinstance(expected, abc.Mapping) and isinstance(actual, abc.Mapping):
        return _mappings_match(expected, actual)
    # JSON keeps booleans apart from numbers even though Python does not.
    if isinstance(expected, bool) != isinstance(actual, bool):
        return False
    return bool(expected == actual)


def _sequences_match(expected: t.Sequence[object], actual: t.Sequence[object]) -> bool:
    if len(expected) != len(actual):
        return False
    return all(
        values_match(exp, act) for exp, act in zip(expected, actual, strict=True)
    )


def _mappings_match(
    expected: t.Mapping[object, object], actual: t.Mapping[object, object]
) -> bool:
    exp = canonical_mapping(expected)
    act = canonical_mapping(actual)
    if exp.keys() != act.keys():
        return False
    return all(values_match(value, act[key]) for key, value in exp.items())


__all__ = [
    "canonical_key",
    "canonical_mapping",
    "is_predicate",
    "normalize_arguments",
    "values_match",
]
