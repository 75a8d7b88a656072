"""Line coverage collection through the interpreter's trace hooks."""

import os
import sys
import sysconfig
import threading
from collections import defaultdict
from types import FrameType
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

TraceFunction = Callable[[FrameType, str, Any], Optional[Callable[..., Any]]]

_PACKAGE_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _excluded_roots() -> Tuple[str, ...]:
    roots: Set[str] = set()
    for key in ("stdlib", "platstdlib"):
        path = sysconfig.get_paths().get(key)
        if path:
            roots.add(os.path.abspath(path))
    return tuple(sorted(roots))


class LineCoverageTracer:
    """Records executed lines of traced source files.

    With ``include`` set, only files under one of those path prefixes are
    traced; otherwise everything outside the standard library is. This
    package itself is never traced.
    Usable as a context manager; covers threads started while active.
    """

    def __init__(self, include: Sequence[str] = ()) -> None:
        self.include = tuple(os.path.abspath(path) for path in include)
        self._excluded = _excluded_roots()
        self._decisions: Dict[str, bool] = {}
        self._lines: Dict[str, Set[int]] = defaultdict(set)
        self._previous: Optional[TraceFunction] = None
        self._active = False

    def wants(self, filename: str) -> bool:
        decision = self._decisions.get(filename)
        if decision is None:
            decision = self._decide(filename)
            self._decisions[filename] = decision
        return decision

    def _decide(self, filename: str) -> bool:
        if not filename or filename.startswith("<"):
            return False
        path = os.path.abspath(filename)
        if _under(path, _PACKAGE_ROOT):
            return False
        if self.include:
            return any(_under(path, root) for root in self.include)
        return not any(_under(path, root) for root in self._excluded)

    def _global_trace(self, frame: FrameType, event: str, arg: Any) -> Optional[TraceFunction]:
        if event != "call" or not self.wants(frame.f_code.co_filename):
            return None
        return self._local_trace

    def _local_trace(self, frame: FrameType, event: str, arg: Any) -> Optional[TraceFunction]:
        if event == "line":
            self._lines[frame.f_code.co_filename].add(frame.f_lineno)
        return self._local_trace

    def start(self) -> None:
        if self._active:
            return
        self._previous = sys.gettrace()
        self._active = True
        threading.settrace(self._global_trace)
        sys.settrace(self._global_trace)

    def stop(self) -> None:
        if not self._active:
            return
        sys.settrace(self._previous)
        threading.settrace(self._previous)  # type: ignore[arg-type]
        self._active = False

    def __enter__(self) -> "LineCoverageTracer":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    def covered(self) -> Dict[str, List[int]]:
        """Executed line numbers per file, sorted."""
        return {filename: sorted(lines) for filename, lines in sorted(self._lines.items())}


def _under(path: str, root: str) -> bool:
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)
