"""Replay trace steps through a tester and collect one verdict per step."""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, Iterable

from modelator.tester import Failure, StatefulTester, Tester, Unhandled, Verdict

_NO_STATE = object()


@dataclass(frozen=True)
class StepResult:
    index: int
    verdict: Verdict

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"index": self.index, "verdict": type(self.verdict).__name__}
        if isinstance(self.verdict, Failure):
            data["message"] = self.verdict.message
            data["location"] = self.verdict.location
        return data


@dataclass
class ReplayReport:
    name: str
    steps: list[StepResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for s in self.steps if s.verdict.passed)

    @property
    def failed(self) -> int:
        return sum(1 for s in self.steps if s.verdict.failed)

    @property
    def unhandled(self) -> int:
        return sum(1 for s in self.steps if isinstance(s.verdict, Unhandled))

    def ok(self, strict: bool = False) -> bool:
        if self.failed:
            return False
        return not (strict and self.unhandled)

    def summary(self) -> dict[str, Any]:
        return {
            "trace": self.name,
            "steps": len(self.steps),
            "passed": self.passed,
            "failed": self.failed,
            "unhandled": self.unhandled,
            "failures": [s.to_dict() for s in self.steps if s.verdict.failed],
        }


def replay(
    tester: Tester | StatefulTester[Any],
    steps: Iterable[Any],
    state: Any = _NO_STATE,
    *,
    name: str = "trace",
    stop_on_failure: bool = False,
    logger: logging.Logger | None = None,
) -> ReplayReport:
    """Dispatch every step in order.

    ``state`` is required for a ``StatefulTester`` and rejected for a
    plain ``Tester``.
    """
    if not isinstance(tester, (Tester, StatefulTester)):
        raise TypeError(f"Expected a Tester or StatefulTester, got {type(tester).__name__}")
    logger = logger or logging.getLogger(__name__)
    stateful = isinstance(tester, StatefulTester)
    if stateful and state is _NO_STATE:
        raise TypeError("A StatefulTester needs a state to replay against")
    if not stateful and state is not _NO_STATE:
        raise TypeError("A stateless Tester does not take a state")

    report = ReplayReport(name=name)
    for index, step in enumerate(steps):
        if stateful:
            verdict = tester.dispatch(state, step)
        else:
            verdict = tester.dispatch(step)
        report.steps.append(StepResult(index=index, verdict=verdict))

        status = type(verdict).__name__.upper()
        logger.info(f"{name} step {index}: {status}")
        if isinstance(verdict, Failure):
            logger.info(f"  {verdict.message} ({verdict.location or 'unknown location'})")
            if stop_on_failure:
                break

    logger.debug(
        f"Replayed {len(report.steps)} step(s) of {name}: "
        f"{report.passed} passed, {report.failed} failed, {report.unhandled} unhandled"
    )
    return report


def _load_file(path: Path) -> ModuleType:
    resolved = path.resolve()
    # Private name so user files never shadow installed modules.
    name = f"_modelator_{path.stem}_{hashlib.sha1(str(resolved).encode()).hexdigest()[:10]}"
    # Reuse the module when --tests and --state name the same file.
    if name in sys.modules:
        return sys.modules[name]

    spec = importlib.util.spec_from_file_location(name, resolved)
    if spec is None or spec.loader is None:
        raise ValueError(f"Cannot load module from {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return module


def load_object(reference: str) -> Any:
    """Import ``module:attr`` or ``path/to/file.py:attr``."""
    module_ref, sep, attr = reference.rpartition(":")
    if not sep or not module_ref or not attr:
        raise ValueError(f"Expected 'module:attribute', got {reference!r}")

    if module_ref.endswith(".py"):
        path = Path(module_ref)
        if not path.is_file():
            raise FileNotFoundError(f"Module file not found: {path}")
        module = _load_file(path)
    else:
        module = importlib.import_module(module_ref)

    try:
        obj = module
        for part in attr.split("."):
            obj = getattr(obj, part)
    except AttributeError as e:
        raise ValueError(f"{module_ref!r} has no attribute {attr!r}") from e
    return obj
