"""Testers: ordered chains of typed predicates applied to opaque inputs."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Generic, Iterable, TypeVar

from modelator.tester.capture import capture_test
from modelator.tester.inputs import NO_MATCH, Converter, direct_converter, schema_converter
from modelator.tester.results import UNHANDLED, Failure, Unhandled, Verdict

S = TypeVar("S")

SimpleTest = Callable[[Any], Verdict]
SystemTest = Callable[[Any, Any], Verdict]


def fold_verdicts(verdicts: Iterable[Verdict]) -> Verdict:
    """Combine per-predicate verdicts in registration order.

    The first ``Failure`` is returned at once and the rest of ``verdicts``
    is not consumed. Otherwise the first handled verdict wins, and
    ``UNHANDLED`` is returned when nothing handled the input.
    """
    last: Verdict = UNHANDLED
    for verdict in verdicts:
        if isinstance(verdict, Failure):
            return verdict
        if isinstance(last, Unhandled):
            last = verdict
    return last


def accepted_type(predicate: Callable[..., Any], position: int) -> Any:
    """Read the annotated type of the predicate's input parameter."""
    try:
        signature = inspect.signature(predicate, eval_str=True)
    except (TypeError, ValueError, NameError) as e:
        raise TypeError(f"Cannot inspect predicate {predicate!r}: {e}") from e

    params = [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if len(params) <= position:
        raise TypeError(
            f"Predicate {predicate!r} takes {len(params)} positional argument(s), "
            f"expected at least {position + 1}"
        )
    annotation = params[position].annotation
    if annotation is inspect.Parameter.empty:
        raise TypeError(
            f"Predicate {predicate!r} has no annotation on parameter "
            f"'{params[position].name}'; pass accepts= explicitly"
        )
    return annotation


def _name(predicate: Callable[..., Any]) -> str:
    return getattr(predicate, "__qualname__", None) or repr(predicate)


def _convert(
    convert: Converter, value: Any, predicate: Callable[..., Any], logger: logging.Logger
) -> Any:
    # Inputs that break conversion (user validators, uncopyable values) are
    # declined like inputs of the wrong shape.
    try:
        return convert(value)
    except Exception as e:
        logger.debug(f"Conversion for {_name(predicate)} raised {type(e).__name__}: {e}")
        return NO_MATCH


class Tester:
    """Stateless tester.

    Predicates take one typed argument. ``register`` accepts predicates
    whose input may also arrive as JSON text or a JSON-shaped tree;
    ``register_direct`` is for types that only make sense as live objects.

    Example::

        tester = Tester()
        tester.register(check_transfer)
        tester.dispatch('{"amount": 5}')
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self._tests: list[SimpleTest] = []

    def __len__(self) -> int:
        return len(self._tests)

    def register(
        self, predicate: Callable[[Any], Any], accepts: Any = None
    ) -> Callable[[Any], Any]:
        target = accepts if accepts is not None else accepted_type(predicate, 0)
        self._add(predicate, schema_converter(target))
        return predicate

    def register_direct(
        self, predicate: Callable[[Any], Any], accepts: Any = None
    ) -> Callable[[Any], Any]:
        target = accepts if accepts is not None else accepted_type(predicate, 0)
        self._add(predicate, direct_converter(target))
        return predicate

    def _add(self, predicate: Callable[[Any], Any], convert: Converter) -> None:
        def test(value: Any) -> Verdict:
            test_case = _convert(convert, value, predicate, self.logger)
            if test_case is NO_MATCH:
                return UNHANDLED
            return capture_test(predicate, test_case)

        self._tests.append(test)
        self.logger.debug(f"Registered predicate {_name(predicate)}")

    def dispatch(self, value: Any) -> Verdict:
        verdict = fold_verdicts(test(value) for test in self._tests)
        self.logger.debug(f"Dispatch over {len(self._tests)} predicate(s): {verdict!r}")
        return verdict


class StatefulTester(Generic[S]):
    """Tester whose predicates take ``(state, value)``.

    The caller owns the state; ``dispatch`` passes the same object to every
    predicate in order, so mutations by earlier predicates are visible to
    later ones. The tester keeps no reference to it between calls.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self._tests: list[SystemTest] = []

    def __len__(self) -> int:
        return len(self._tests)

    def register(
        self, predicate: Callable[[S, Any], Any], accepts: Any = None
    ) -> Callable[[S, Any], Any]:
        target = accepts if accepts is not None else accepted_type(predicate, 1)
        self._add(predicate, schema_converter(target))
        return predicate

    def register_direct(
        self, predicate: Callable[[S, Any], Any], accepts: Any = None
    ) -> Callable[[S, Any], Any]:
        target = accepts if accepts is not None else accepted_type(predicate, 1)
        self._add(predicate, direct_converter(target))
        return predicate

    def _add(self, predicate: Callable[[S, Any], Any], convert: Converter) -> None:
        def test(state: S, value: Any) -> Verdict:
            test_case = _convert(convert, value, predicate, self.logger)
            if test_case is NO_MATCH:
                return UNHANDLED
            return capture_test(predicate, state, test_case)

        self._tests.append(test)
        self.logger.debug(f"Registered stateful predicate {_name(predicate)}")

    def dispatch(self, state: S, value: Any) -> Verdict:
        verdict = fold_verdicts(test(state, value) for test in self._tests)
        self.logger.debug(f"Dispatch over {len(self._tests)} predicate(s): {verdict!r}")
        return verdict
