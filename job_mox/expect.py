"""Minimal ``expect(...).to(...)`` entry point driving block matchers."""

from __future__ import annotations

import typing as t

from .errors import ConfigurationError


class BlockMatcher(t.Protocol):
    """Protocol implemented by matchers usable with :func:`expect`."""

    @property
    def failure_message(self) -> str:
        """Describe why a positive assertion failed."""
        ...

    @property
    def failure_message_when_negated(self) -> str:
        """Describe why a negated assertion failed."""
        ...

    def matches(self, block: t.Callable[[], object]) -> bool:
        """Return ``True`` when the positive assertion holds."""
        ...

    def does_not_match(self, block: t.Callable[[], object]) -> bool:
        """Return ``True`` when the negated assertion holds."""
        ...

    def supports_block_expectations(self) -> bool:
        """Return ``True`` if the matcher accepts callables."""
        ...

    def supports_value_expectations(self) -> bool:
        """Return ``True`` if the matcher accepts plain values."""
        ...


class ExpectationTarget:
    """Wrap the code under test so a matcher can be applied to it."""

    def __init__(self, target: object) -> None:
        self.target = target

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"ExpectationTarget({self.target!r})"

    def to(self, matcher: BlockMatcher) -> None:
        """Assert that *matcher* matches the target."""
        block = self._block_for(matcher)
        if not matcher.matches(block):
            raise AssertionError(matcher.failure_message)

    def not_to(self, matcher: BlockMatcher) -> None:
        """Assert that *matcher* does not match the target."""
        block = self._block_for(matcher)
        if not matcher.does_not_match(block):
            raise AssertionError(matcher.failure_message_when_negated)

    to_not = not_to

    def _block_for(self, matcher: BlockMatcher) -> t.Callable[[], object]:
        if callable(self.target):
            if not matcher.supports_block_expectations():
                msg = f"{type(matcher).__name__} does not support block expectations"
                raise ConfigurationError(msg)
            return t.cast("t.Callable[[], object]", self.target)
        if not matcher.supports_value_expectations():
            msg = (
                f"{type(matcher).__name__} only supports block expectations; "
                "pass a callable such as `lambda: Worker.perform_async()`"
            )
            raise ConfigurationError(msg)
        return t.cast("t.Callable[[], object]", self.target)


def expect(target: object) -> ExpectationTarget:
    """Return an :class:`ExpectationTarget` for *target*.

    Pass a zero-argument callable for block matchers::

        expect(lambda: Worker.perform_async(1)).to(enqueue_job(Worker))
    """
    return ExpectationTarget(target)


__all__ = ["BlockMatcher", "ExpectationTarget", "expect"]
