"""Runs single test units with unittest."""

import time
import traceback
import unittest
from typing import Optional, Tuple

from ..core.enums import ExecutionOutcome
from ..core.errors import ClassResolutionError
from ..core.log import get_logger, log_test_event
from ..core.types import TestResult
from ..core.value_objects import TestUnit
from ..discovery.classpath import ClassLoader, ImportClassLoader

logger = get_logger(__name__)

UnitOutcome = Tuple[ExecutionOutcome, Optional[str], float]


def _summarise(result: unittest.TestResult) -> Tuple[ExecutionOutcome, Optional[str]]:
    if result.errors:
        return ExecutionOutcome.ERROR, result.errors[-1][1].strip().splitlines()[-1]
    if result.failures:
        return ExecutionOutcome.FAILED, result.failures[-1][1].strip().splitlines()[-1]
    if result.unexpectedSuccesses:
        return ExecutionOutcome.FAILED, "unexpected success"
    if result.skipped:
        return ExecutionOutcome.SKIPPED, result.skipped[-1][1]
    return ExecutionOutcome.PASSED, None


def execute_unit(clazz: type, method_name: str) -> UnitOutcome:
    """Run one test method and report its outcome, message and duration."""
    start = time.perf_counter()
    result = unittest.TestResult()
    try:
        case = clazz(method_name)
    except (TypeError, ValueError) as e:
        return ExecutionOutcome.ERROR, f"Cannot instantiate {clazz.__qualname__}.{method_name}: {e}", 0.0
    case.run(result)
    outcome, message = _summarise(result)
    return outcome, message, time.perf_counter() - start


def run_test_unit(unit: TestUnit, loader: Optional[ClassLoader] = None) -> TestResult:
    """Execute a unit in the current process.

    A class that cannot be loaded produces an error result so the rest of
    the group still runs.
    """
    loader = loader or ImportClassLoader()
    try:
        clazz = loader.load(unit.class_name).clazz
    except ClassResolutionError as e:
        logger.error("Cannot load %s: %s", unit.class_name, e)
        return TestResult(unit_id=unit.id, outcome=ExecutionOutcome.ERROR, error_message=str(e))

    log_test_event(logger, "start", unit.id)
    outcome, message, duration = execute_unit(clazz, unit.method_name)
    log_test_event(logger, outcome.value, unit.id, duration=duration)
    return TestResult(unit_id=unit.id, outcome=outcome, duration=duration, error_message=message)


def format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception_only(type(error), error)).strip()
