"""Tests for the line coverage tracer."""

import inspect
import os
import sys
import threading

from mutineer.worker.tracer import LineCoverageTracer

from sampletests import worker_cases

CASES_FILE = os.path.abspath(worker_cases.__file__)


def _body_lines(func):
    lines, start = inspect.getsourcelines(func)
    return set(range(start + 1, start + len(lines)))


class TestLineCoverageTracer:
    """Test line collection and file filtering."""

    def test_records_lines_of_included_files(self) -> None:
        tracer = LineCoverageTracer([os.path.dirname(CASES_FILE)])
        with tracer:
            worker_cases.triple(2)

        covered = tracer.covered()
        assert list(covered) == [CASES_FILE]
        assert _body_lines(worker_cases.triple) <= set(covered[CASES_FILE])

    def test_files_outside_include_are_ignored(self, temp_dir) -> None:
        tracer = LineCoverageTracer([str(temp_dir)])
        with tracer:
            worker_cases.triple(2)
        assert tracer.covered() == {}

    def test_standard_library_is_ignored_without_include(self) -> None:
        tracer = LineCoverageTracer()
        with tracer:
            os.path.join("a", "b")
            worker_cases.triple(1)
        assert CASES_FILE in tracer.covered()
        assert os.path.abspath(os.path.__file__) not in tracer.covered()

    def test_own_package_is_never_traced(self) -> None:
        import mutineer

        package_root = os.path.dirname(os.path.abspath(mutineer.__file__))
        tracer = LineCoverageTracer([package_root])
        assert not tracer.wants(os.path.join(package_root, "core", "types.py"))

    def test_pseudo_files_are_ignored(self) -> None:
        assert not LineCoverageTracer().wants("<string>")
        assert not LineCoverageTracer().wants("")

    def test_threads_started_while_active_are_traced(self) -> None:
        tracer = LineCoverageTracer([os.path.dirname(CASES_FILE)])
        with tracer:
            thread = threading.Thread(target=worker_cases.triple, args=(5,))
            thread.start()
            thread.join()
        assert CASES_FILE in tracer.covered()

    def test_previous_trace_function_is_restored(self) -> None:
        previous = sys.gettrace()
        with LineCoverageTracer():
            pass
        assert sys.gettrace() is previous
