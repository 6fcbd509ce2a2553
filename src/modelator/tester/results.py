"""Verdicts produced by predicates and by tester dispatch."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Verdict:
    """Base class of the three possible outcomes."""

    @property
    def passed(self) -> bool:
        return isinstance(self, Success)

    @property
    def failed(self) -> bool:
        return isinstance(self, Failure)

    @property
    def handled(self) -> bool:
        return not isinstance(self, Unhandled)


@dataclass(frozen=True)
class Success(Verdict):
    """The predicate returned normally.

    Attributes:
        message: The predicate's return value rendered as pretty JSON.
    """

    message: str


@dataclass(frozen=True)
class Failure(Verdict):
    """The predicate raised.

    Attributes:
        message: Text of the exception, or its class name when empty.
        location: ``file:line`` where the exception was raised, may be empty.
    """

    message: str
    location: str = ""


@dataclass(frozen=True)
class Unhandled(Verdict):
    """No predicate could interpret the input."""


UNHANDLED = Unhandled()
