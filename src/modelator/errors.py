"""Exceptions raised outside the tester core."""

from __future__ import annotations


class ModelatorError(Exception):
    """Base class for modelator errors."""


class TlcError(ModelatorError):
    """TLC could not be run or reported an error."""

    def __init__(
        self,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode


class NoTraceFound(ModelatorError):
    """The model checker finished without producing a counterexample."""


class TraceError(ModelatorError):
    """A trace file is not in a supported format."""
