"""Best-effort conversion of opaque trace steps into typed predicate inputs.

A trace step can arrive as a live Python object, as JSON text, as a
JSON-shaped tree (dicts, lists and scalars), or nested inside any number
of ``Wrapped`` layers. Schema converters try, in order:

1. the value already is an instance of the target type;
2. the value is text: parse it as JSON into the target type;
3. the value is a structured tree: validate it into the target type;
4. the value is ``Wrapped``: unwrap and start over.

For targets that are not plain classes (unions, generic aliases) step 1
is replaced by pydantic validation of the live object.

Direct converters only do steps 1 and 4.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

T = TypeVar("T")

_STRUCTURED = (dict, list, int, float, bool, type(None))


class _NoMatch(Enum):
    NO_MATCH = 0


NO_MATCH = _NoMatch.NO_MATCH
"""Returned by converters when the input cannot be read as the target type."""


@dataclass(frozen=True)
class Wrapped(Generic[T]):
    """Opaque wrapper around another input. Nesting is allowed."""

    value: T


Converter = Callable[[Any], Any]


def _is_instance(value: Any, target: Any) -> bool:
    if target is Any:
        return True
    if not isinstance(target, type):
        # Generic aliases, unions etc. cannot be checked natively.
        return False
    return isinstance(value, target)


def schema_converter(target: Any) -> Converter:
    """Build a converter for ``target`` that also parses text and trees.

    Raises the pydantic schema error right away when ``target`` has no
    schema, so unusable registrations fail before any dispatch.
    """
    adapter: TypeAdapter[Any] = TypeAdapter(target)

    def convert(value: Any) -> Any:
        while True:
            if _is_instance(value, target):
                return copy.deepcopy(value)
            if isinstance(value, str):
                try:
                    return adapter.validate_json(value)
                except ValidationError:
                    return NO_MATCH
            if isinstance(value, Wrapped):
                value = value.value
                continue
            if isinstance(value, _STRUCTURED):
                try:
                    return adapter.validate_python(value)
                except ValidationError:
                    return NO_MATCH
            if not isinstance(target, type):
                # Unions and aliases: let pydantic decide whether a live
                # object fits one of the members.
                try:
                    return adapter.validate_python(copy.deepcopy(value))
                except ValidationError:
                    return NO_MATCH
            return NO_MATCH

    return convert


def direct_converter(target: Any) -> Converter:
    """Build a converter for ``target`` that never parses."""

    def convert(value: Any) -> Any:
        while True:
            if _is_instance(value, target):
                return value
            if isinstance(value, Wrapped):
                value = value.value
                continue
            return NO_MATCH

    return convert


def convert_to(value: Any, target: type[T]) -> T | None:
    """One-off schema conversion. Returns ``None`` when nothing matches."""
    result = schema_converter(target)(value)
    return None if result is NO_MATCH else result


def interpret_as(value: Any, target: type[T]) -> T | None:
    """One-off direct conversion. Returns ``None`` when nothing matches."""
    result = direct_converter(target)(value)
    return None if result is NO_MATCH else result
