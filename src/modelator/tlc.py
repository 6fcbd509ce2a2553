"""Run the TLC model checker and collect the traces it reports."""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path

from modelator.config import TlcOptions
from modelator.errors import NoTraceFound, TlcError
from modelator.trace import TlaTrace

logger = logging.getLogger(__name__)

# Message framing used by `tlc2.TLC -tool`.
_MESSAGE_RE = re.compile(
    r"@!@!@STARTMSG (?P<code>\d+):(?P<kind>\d+) @!@!@\n"
    r"(?P<body>.*?)"
    r"@!@!@ENDMSG (?P=code) @!@!@",
    re.DOTALL,
)
_STATE_HEADER_RE = re.compile(r"^(?P<index>\d+): ")

KIND_ERROR = 1
CODE_STATE_PRINT = 2217
# Error-kind messages that announce a counterexample rather than a crash.
VIOLATION_CODES = frozenset(
    {
        2107,  # invariant violated in the initial state
        2110,  # invariant violated by a behavior
        2111,  # action property violated
        2114,  # deadlock reached
        2116,  # temporal property violated
        2121,  # behavior up to this point
    }
)


def build_command(model_file: Path, config_file: Path, options: TlcOptions) -> list[str]:
    classpath = f"{options.tla2tools_jar}:{options.community_modules_jar}"
    cmd = [
        options.java,
        "-cp",
        classpath,
        "tlc2.TLC",
        model_file.name,
        "-config",
        str(config_file.resolve()),
        "-tool",
        "-workers",
        options.workers_arg(),
    ]
    logger.debug(" ".join(cmd))
    return cmd


def parse_output(stdout: str) -> list[TlaTrace]:
    """Split TLC tool output into traces.

    A state print numbered 1 starts a new trace; the following state
    prints extend it.
    """
    traces: list[TlaTrace] = []
    for match in _MESSAGE_RE.finditer(stdout):
        code = int(match["code"])
        kind = int(match["kind"])
        body = match["body"]

        if code == CODE_STATE_PRINT:
            header = _STATE_HEADER_RE.match(body)
            if header is None:
                raise TlcError(f"Unexpected TLC state message: {body.strip()}")
            _, _, state = body.partition("\n")
            if int(header["index"]) == 1 or not traces:
                traces.append(TlaTrace())
            traces[-1].add(state)
        elif kind == KIND_ERROR and code not in VIOLATION_CODES:
            raise TlcError(body.strip(), stdout=stdout)
    return traces


def run(
    model_file: Path,
    config_file: Path,
    options: TlcOptions,
    logger: logging.Logger | None = None,
) -> list[TlaTrace]:
    """Run TLC on ``model_file`` and return every counterexample found."""
    logger = logger or logging.getLogger(__name__)
    for path in (model_file, config_file):
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

    workdir = model_file.parent.resolve()
    cmd = build_command(model_file, config_file, options)
    try:
        result = subprocess.run(
            cmd,
            cwd=workdir,
            capture_output=True,
            text=True,
            timeout=options.timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise TlcError(f"TLC timed out after {options.timeout}s") from e
    except FileNotFoundError as e:
        raise TlcError(f"Could not start TLC with '{options.java}': {e}") from e

    stdout, stderr = result.stdout, result.stderr
    logger.debug(f"TLC stdout:\n{stdout}")
    logger.debug(f"TLC stderr:\n{stderr}")

    if stdout and not stderr:
        options.log.parent.mkdir(parents=True, exist_ok=True)
        options.log.write_text(stdout)
        # TLC names its scratch folder by the current second; a second run
        # within the same second fails if it is left behind.
        shutil.rmtree(workdir / "states", ignore_errors=True)
        return parse_output(stdout)
    if stderr and not stdout:
        raise TlcError(stderr, stderr=stderr, returncode=result.returncode)
    raise TlcError(
        f"Unexpected TLC output (exit code {result.returncode}, "
        f"stdout {'empty' if not stdout else 'non-empty'}, "
        f"stderr {'empty' if not stderr else 'non-empty'})",
        stdout=stdout,
        stderr=stderr,
        returncode=result.returncode,
    )


def test(
    model_file: Path,
    config_file: Path,
    options: TlcOptions,
    logger: logging.Logger | None = None,
) -> TlaTrace:
    """Return the first trace TLC finds for a TLA+ test."""
    traces = run(model_file, config_file, options, logger=logger)
    if not traces:
        raise NoTraceFound(f"TLC found no trace for {model_file}")
    return traces[0]
