from __future__ import annotations

from pathlib import Path

from junitparser import Failure, JUnitXml, Skipped, TestCase, TestSuite

from modelator.replay import ReplayReport
from modelator.tester import Failure as FailureVerdict
from modelator.tester import Success, Unhandled


def write_junit(
    path: Path, reports: list[ReplayReport], strict: bool = False
) -> Path:
    """Write junit.xml with one suite per replayed trace, return path."""
    xml = JUnitXml()

    for report in reports:
        suite = TestSuite(report.name)
        suite.add_property("steps", str(len(report.steps)))
        suite.add_property("unhandled", str(report.unhandled))

        for step in report.steps:
            case = TestCase(f"step-{step.index}")
            case.classname = report.name
            verdict = step.verdict
            if isinstance(verdict, FailureVerdict):
                failure = Failure(verdict.message)
                failure.text = verdict.location
                case.result = [failure]
            elif isinstance(verdict, Unhandled):
                message = "no predicate handled this step"
                case.result = [Failure(message) if strict else Skipped(message)]
            elif isinstance(verdict, Success):
                case.system_out = verdict.message
            suite.add_testcase(case)

        # Use append (not +=) to preserve properties
        xml.append(suite)

    path.parent.mkdir(parents=True, exist_ok=True)
    xml.write(str(path), pretty=True)
    return path
