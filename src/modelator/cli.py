from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any, NoReturn

import typer

app = typer.Typer(name="modelator", help="Model-based testing with TLA+ traces")
tlc_app = typer.Typer(name="tlc", help="Generate TLA+ traces using TLC")
trace_app = typer.Typer(name="trace", help="Replay traces against Python predicates")
app.add_typer(tlc_app, name="tlc")
app.add_typer(trace_app, name="trace")


def _success(result: Any) -> None:
    typer.echo(json.dumps({"status": "success", "result": result}, indent=2))


def _error(message: str) -> NoReturn:
    typer.echo(json.dumps({"status": "error", "message": message}, indent=2))
    raise typer.Exit(1)


def _run_logger(command: str, verbose: bool):
    from modelator.verbose import setup_logger

    # logger name must be unique per run to avoid handler collision
    run_id = uuid.uuid4().hex[:8]
    return setup_logger(None, verbose=verbose, logger_name=f"modelator_{command}_{run_id}")


def _load_options(config: str | None):
    from modelator.config import DEFAULT_CONFIG_NAME, ModelatorConfig, load_config

    if config is not None:
        config_path = Path(config)
        if not config_path.exists():
            _error(f"config file not found: {config}")
        return load_config(config_path).tlc
    default = Path(DEFAULT_CONFIG_NAME)
    if default.exists():
        return load_config(default).tlc
    return ModelatorConfig().tlc


@app.command()
def init(
    dir: str = typer.Option(".", "--dir", help="Directory to write modelator.yaml in"),
):
    """Write an example modelator.yaml."""
    from modelator.config import DEFAULT_CONFIG_NAME

    project_dir = Path(dir)
    project_dir.mkdir(parents=True, exist_ok=True)

    example = project_dir / DEFAULT_CONFIG_NAME
    if example.exists():
        typer.echo(f"{DEFAULT_CONFIG_NAME} already exists in {dir}, skipping.")
        return

    example.write_text("""\
tlc:
  java: java
  jar_dir: ${MODELATOR_DIR:-~/.modelator}
  workers: auto
  timeout: 600
  log: tlc.log
""")
    typer.echo(f"Wrote {example}")


@tlc_app.command("test")
def tlc_test(
    tla_file: str = typer.Argument(help="TLA+ file with the test"),
    tla_config_file: str = typer.Argument(help="TLA+ config file with CONSTANTS, INIT and NEXT"),
    config: str | None = typer.Option(None, help="Path to modelator.yaml"),
    output: str = typer.Option("trace.tla", help="Where to write the TLA+ trace"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output to terminal"
    ),
):
    """Generate a TLA+ trace from a TLA+ test using TLC."""
    from modelator import tlc
    from modelator.errors import ModelatorError
    logger = _run_logger("tlc", verbose)

    try:
        options = _load_options(config)
        trace = tlc.test(Path(tla_file), Path(tla_config_file), options, logger=logger)
    except (ModelatorError, FileNotFoundError, ValueError) as e:
        _error(str(e))

    output_path = Path(output)
    output_path.write_text(str(trace))
    _success({"tla_trace_file": str(output_path.resolve())})


@trace_app.command("test")
def trace_test(
    trace: str = typer.Argument(help="JSON trace file (array of states or ITF object)"),
    tests: str = typer.Option(
        ..., "--tests", help="Tester to replay against, as module:attr or file.py:attr"
    ),
    state: str | None = typer.Option(
        None, "--state", help="State factory for a StatefulTester, as module:attr"
    ),
    junit: str | None = typer.Option(None, "--junit", help="Write a JUnit XML report here"),
    strict: bool = typer.Option(
        False, "--strict", help="Treat steps no predicate handled as failures"
    ),
    stop_on_failure: bool = typer.Option(
        False, "--stop-on-failure", help="Stop replaying at the first failing step"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output to terminal"
    ),
):
    """Replay a JSON trace against a tester and report one verdict per step."""
    from modelator.errors import ModelatorError
    from modelator.replay import load_object, replay
    from modelator.trace import load_json_trace
    logger = _run_logger("trace", verbose)
    trace_path = Path(trace)

    try:
        steps = load_json_trace(trace_path)
        tester = load_object(tests)
        if state is not None:
            report = replay(
                tester,
                steps,
                load_object(state)(),
                name=trace_path.stem,
                stop_on_failure=stop_on_failure,
                logger=logger,
            )
        else:
            report = replay(
                tester,
                steps,
                name=trace_path.stem,
                stop_on_failure=stop_on_failure,
                logger=logger,
            )
    except (ModelatorError, FileNotFoundError, ImportError, TypeError, ValueError) as e:
        _error(str(e))

    if junit is not None:
        from modelator.reporting.junit import write_junit

        write_junit(Path(junit), [report], strict=strict)

    summary = report.summary()
    if not report.ok(strict=strict):
        typer.echo(json.dumps({"status": "failure", "result": summary}, indent=2))
        raise typer.Exit(1)
    _success(summary)
