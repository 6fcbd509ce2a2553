"""Model-based testing helpers: run TLC, replay traces, check them with typed predicates."""

from modelator.tester import (
    UNHANDLED,
    Failure,
    StatefulTester,
    Success,
    Tester,
    Unhandled,
    Verdict,
    Wrapped,
)

__all__ = [
    "Failure",
    "StatefulTester",
    "Success",
    "Tester",
    "UNHANDLED",
    "Unhandled",
    "Verdict",
    "Wrapped",
]
