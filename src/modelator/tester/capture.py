"""Run predicates so that raised exceptions become ``Failure`` verdicts.

A single process-wide failure hook observes predicate failures. While a
predicate runs, ``capture_test`` swaps in a hook that records the failure,
and puts the previous hook back afterwards, so the installed hook never sees
failures raised under capture. The default hook logs a warning; it is only
reached through ``report_failure`` calls made outside ``capture_test``.
Testers report captured failures as verdicts and log them at debug level.
The swap is guarded by a process-wide re-entrant lock, so only one
predicate runs under capture at a time; nested dispatch from inside a
predicate on the same thread is fine.
"""

from __future__ import annotations

import logging
import threading
import traceback
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from pydantic_core import to_json

from modelator.tester.results import Failure, Success, Verdict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailureInfo:
    message: str
    location: str
    exception: BaseException


FailureHook = Callable[[FailureInfo], None]


def default_failure_hook(info: FailureInfo) -> None:
    logger.warning(f"Predicate failed at {info.location or '<unknown>'}: {info.message}")


_hook_lock = threading.RLock()
_hook: FailureHook = default_failure_hook


def get_failure_hook() -> FailureHook:
    return _hook


def set_failure_hook(hook: FailureHook) -> None:
    global _hook
    with _hook_lock:
        _hook = hook


def take_failure_hook() -> FailureHook:
    """Return the installed hook and reinstall the default one."""
    global _hook
    with _hook_lock:
        previous = _hook
        _hook = default_failure_hook
        return previous


@contextmanager
def failure_hook(hook: FailureHook) -> Iterator[FailureHook]:
    """Install ``hook`` for the duration of the block."""
    with _hook_lock:
        previous = take_failure_hook()
        set_failure_hook(hook)
        try:
            yield hook
        finally:
            set_failure_hook(previous)


def describe_failure(exc: BaseException) -> FailureInfo:
    message = str(exc) or type(exc).__name__
    frames = traceback.extract_tb(exc.__traceback__)
    location = f"{frames[-1].filename}:{frames[-1].lineno}" if frames else ""
    return FailureInfo(message=message, location=location, exception=exc)


def report_failure(exc: BaseException) -> FailureInfo:
    """Send ``exc`` to the installed failure hook."""
    info = describe_failure(exc)
    get_failure_hook()(info)
    return info


def render(result: Any) -> str:
    return to_json(result, indent=2, serialize_unknown=True).decode()


def capture_test(test: Callable[..., Any], *args: Any, **kwargs: Any) -> Verdict:
    """Call ``test`` and turn its outcome into a verdict.

    Never raises for ``Exception`` subclasses. ``KeyboardInterrupt`` and
    other ``BaseException``-only signals still propagate, and the previous
    failure hook is restored on every path.
    """
    captured: list[FailureInfo] = []
    with failure_hook(captured.append):
        try:
            return Success(render(test(*args, **kwargs)))
        except Exception as exc:
            report_failure(exc)
    if not captured:
        return Failure(message="Unknown error", location="")
    return Failure(message=captured[-1].message, location=captured[-1].location)
