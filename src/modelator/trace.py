"""Trace artifacts: TLA+ traces from TLC and JSON traces for replay."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from modelator.errors import TraceError


@dataclass
class TlaTrace:
    """A counterexample as printed by TLC, one TLA+ state text per step."""

    states: list[str] = field(default_factory=list)

    def add(self, state: str) -> None:
        self.states.append(state)

    def __len__(self) -> int:
        return len(self.states)

    def __str__(self) -> str:
        blocks = [
            f"(* State {index} *)\n{state.strip()}"
            for index, state in enumerate(self.states, start=1)
        ]
        return "\n\n".join(blocks) + "\n"


def _strip_meta(state: Any, index: int) -> dict[str, Any]:
    if not isinstance(state, dict):
        raise TraceError(f"State {index} is not a JSON object")
    return {k: v for k, v in state.items() if k != "#meta"}


def parse_json_trace(raw: Any) -> list[dict[str, Any]]:
    """Return the states of a JSON trace.

    Accepts a plain array of states or an ITF-style object whose ``states``
    key holds the array.
    """
    if isinstance(raw, dict):
        if "states" not in raw:
            raise TraceError("Trace object has no 'states' key")
        raw = raw["states"]
    if not isinstance(raw, list):
        raise TraceError("Trace must be a JSON array or an object with 'states'")
    return [_strip_meta(state, index) for index, state in enumerate(raw)]


def load_json_trace(path: Path) -> list[dict[str, Any]]:
    if not path.is_file():
        raise FileNotFoundError(f"Trace file not found: {path}")
    try:
        raw = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise TraceError(f"{path} is not valid JSON: {e}") from e
    return parse_json_trace(raw)
