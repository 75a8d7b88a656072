"""Worker process: runs one group of test units and streams results back."""

import socket
import sys
import time
from typing import Optional, Sequence

import typer
from pydantic import ValidationError

from ..core.enums import ExecutionOutcome, ExitCode
from ..core.errors import ClassResolutionError, ConfigurationError, MutineerError, TransportFailure
from ..core.log import configure_logging, get_logger, log_context, log_test_event
from ..core.types import CoverageResult, WorkerArguments
from ..core.value_objects import TestUnit
from ..discovery.classpath import ClassLoader, ImportClassLoader
from ..execution.unit_runner import execute_unit, format_exception
from ..utils.codec import encode_frame
from .tracer import LineCoverageTracer

CONNECT_RETRY_INTERVAL = 0.1

app = typer.Typer(
    name="mutineer-worker",
    help="Run test units and stream coverage results to the controller",
    add_completion=False,
)
logger = get_logger(__name__)


def connect(host: str, port: int, timeout: float) -> socket.socket:
    """Connect to the controller, retrying until ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        try:
            sock = socket.create_connection((host, port), timeout=max(remaining, CONNECT_RETRY_INTERVAL))
        except OSError as e:
            if time.monotonic() >= deadline:
                raise TransportFailure(
                    f"Could not connect to {host}:{port} within {timeout}s: {e}"
                ) from e
            time.sleep(CONNECT_RETRY_INTERVAL)
            continue
        sock.settimeout(None)
        return sock


def run_traced_unit(
    unit_id: str, loader: ClassLoader, include: Sequence[str] = ()
) -> CoverageResult:
    """Execute one unit under the line tracer."""
    try:
        unit = TestUnit.from_id(unit_id)
        clazz = loader.load(unit.class_name).clazz
    except (ValueError, ClassResolutionError) as e:
        logger.error("Cannot run %s: %s", unit_id, e)
        return CoverageResult(
            unit_id=unit_id, outcome=ExecutionOutcome.ERROR, error_message=format_exception(e)
        )

    log_test_event(logger, "start", unit_id)
    with LineCoverageTracer(include) as tracer:
        outcome, message, duration = execute_unit(clazz, unit.method_name)
    log_test_event(logger, outcome.value, unit_id, duration=duration)
    return CoverageResult(
        unit_id=unit_id,
        outcome=outcome,
        duration=duration,
        covered=tracer.covered(),
        error_message=message,
    )


def run_worker(arguments: WorkerArguments, loader: Optional[ClassLoader] = None) -> int:
    """Run every unit and write one framed result per unit. Returns the exit code."""
    loader = loader or ImportClassLoader(arguments.python_path)
    try:
        sock = connect(arguments.host, arguments.port, arguments.handshake_timeout)
    except TransportFailure as e:
        logger.error("%s", e)
        return ExitCode.HANDSHAKE_TIMEOUT

    include = tuple(arguments.coverage_include)
    with sock, sock.makefile("wb") as stream:
        for unit_id in arguments.units:
            with log_context(unit_id=unit_id):
                result = run_traced_unit(unit_id, loader, include)
            try:
                stream.write(encode_frame(result))
                stream.flush()
            except OSError as e:
                logger.error("Controller connection lost after %s: %s", unit_id, e)
                return ExitCode.UNKNOWN_ERROR
    return ExitCode.OK


def _read_arguments(raw: Optional[str]) -> WorkerArguments:
    payload = raw if raw is not None else sys.stdin.read()
    try:
        return WorkerArguments.model_validate_json(payload)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid worker arguments: {e}") from e


@app.command()
def main(
    arguments: Optional[str] = typer.Option(
        None, "--arguments", help="WorkerArguments as JSON (read from stdin when omitted)"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Worker logging level"),
) -> None:
    """Run the units named in the arguments and stream their results."""
    try:
        worker_arguments = _read_arguments(arguments)
    except ConfigurationError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(int(ExitCode.UNKNOWN_ERROR)) from e

    level = log_level or worker_arguments.options.get("log_level", "WARNING")
    configure_logging(level=level, enable_console=True, enable_json=False)

    try:
        code = run_worker(worker_arguments)
    except MutineerError as e:
        logger.error("Worker failed: %s", e)
        code = ExitCode.UNKNOWN_ERROR
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.exception("Unexpected worker failure: %s", format_exception(e))
        code = ExitCode.UNKNOWN_ERROR
    raise typer.Exit(int(code))
