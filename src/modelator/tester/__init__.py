"""Typed test dispatch over opaque trace steps."""

from modelator.tester.capture import (
    FailureInfo,
    capture_test,
    failure_hook,
    get_failure_hook,
    set_failure_hook,
    take_failure_hook,
)
from modelator.tester.inputs import Wrapped, convert_to, interpret_as
from modelator.tester.results import UNHANDLED, Failure, Success, Unhandled, Verdict
from modelator.tester.tester import StatefulTester, Tester, fold_verdicts

__all__ = [
    "Failure",
    "FailureInfo",
    "StatefulTester",
    "Success",
    "Tester",
    "UNHANDLED",
    "Unhandled",
    "Verdict",
    "Wrapped",
    "capture_test",
    "convert_to",
    "failure_hook",
    "fold_verdicts",
    "get_failure_hook",
    "interpret_as",
    "set_failure_hook",
    "take_failure_hook",
]
