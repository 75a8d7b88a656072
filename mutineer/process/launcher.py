"""Spawning worker processes and tearing down their process trees."""

import os
import signal
import subprocess
import sys
import time
from typing import Dict, List, Optional, Protocol, Sequence

import psutil

from ..core.errors import ProcessStartupError
from ..core.log import get_logger, log_process_event

logger = get_logger(__name__)


class ProcessHandle(Protocol):
    """Live handle on a spawned process."""

    pid: int

    def poll(self) -> Optional[int]:
        """Exit code, or None while running."""

    def wait(self, timeout: Optional[float] = None) -> int:
        """Block until exit and return the exit code."""

    def kill(self) -> None:
        """Forcefully terminate the process."""


class ProcessLauncher(Protocol):
    """Starts an isolated process running a Python entry point."""

    def launch(self, entry_point: str, payload: str, python_path: Sequence[str]) -> ProcessHandle:
        """Spawn ``entry_point`` and hand it ``payload``."""


class SubprocessLauncher:
    """Runs ``python -m <entry_point>`` with the payload on stdin.

    Classpath entries are prepended to PYTHONPATH. Each worker gets its own
    session so its whole tree can be killed at once.
    """

    def __init__(
        self,
        python_executable: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> None:
        self.python_executable = python_executable or sys.executable
        self.env = dict(env or {})
        self.cwd = cwd

    def build_command(self, entry_point: str) -> List[str]:
        return [self.python_executable, "-m", entry_point]

    def build_env(self, python_path: Sequence[str]) -> Dict[str, str]:
        env = dict(os.environ)
        env.update(self.env)
        entries = [str(p) for p in python_path]
        if env.get("PYTHONPATH"):
            entries.append(env["PYTHONPATH"])
        if entries:
            env["PYTHONPATH"] = os.pathsep.join(entries)
        return env

    def launch(self, entry_point: str, payload: str, python_path: Sequence[str]) -> subprocess.Popen:
        command = self.build_command(entry_point)
        log_process_event(logger, "launch.start", command=command)
        try:
            process = subprocess.Popen(  # pylint: disable=consider-using-with
                command,
                cwd=self.cwd,
                env=self.build_env(python_path),
                stdin=subprocess.PIPE,
                start_new_session=True,
            )
        except (OSError, subprocess.SubprocessError, ValueError) as e:
            raise ProcessStartupError(
                f"Failed to launch worker {entry_point}: {e}",
                details={"command": command},
            ) from e

        try:
            assert process.stdin is not None
            process.stdin.write(payload.encode("utf-8"))
            process.stdin.close()
        except (BrokenPipeError, OSError) as e:
            # The worker died before reading its arguments; its exit code tells the story
            logger.warning("Worker %s closed stdin early: %s", process.pid, e)

        log_process_event(logger, "launch.ok", pid=process.pid)
        return process


def get_child_pids(parent_pid: int) -> List[int]:
    """All live descendant PIDs of a process."""
    try:
        parent = psutil.Process(parent_pid)
        return [child.pid for child in parent.children(recursive=True) if child.is_running()]
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess) as e:
        logger.debug("Could not get children for PID %s: %s", parent_pid, e)
    except (psutil.Error, OSError) as e:
        logger.warning("Error getting child PIDs for %s: %s", parent_pid, e)
    return []


def kill_process_tree(
    root_pid: int,
    signal_num: int = signal.SIGKILL,
    timeout: float = 5.0,
    include_root: bool = True,
) -> bool:
    """Signal a process and all its descendants, then wait for them to go.

    Pass ``include_root=False`` when the root is our own child: waiting on
    it here would reap it behind the back of its Popen object.

    Returns:
        True if every signalled process is gone
    """
    all_pids = get_child_pids(root_pid)
    if include_root:
        all_pids.insert(0, root_pid)
    logger.debug("Killing process tree %s with signal %s", all_pids, signal_num)
    for pid in all_pids:
        try:
            os.kill(pid, signal_num)
        except (OSError, ProcessLookupError):
            logger.debug("PID %s already dead or inaccessible", pid)

    _, alive = psutil.wait_procs(_existing(all_pids), timeout=timeout)
    if alive:
        logger.warning(
            "Processes %s in tree rooted at %s survived signal %s",
            [p.pid for p in alive],
            root_pid,
            signal_num,
        )
        return False
    return True


def _existing(pids: Sequence[int]) -> List[psutil.Process]:
    processes = []
    for pid in pids:
        try:
            processes.append(psutil.Process(pid))
        except psutil.NoSuchProcess:
            continue
    return processes


def wait_quietly(handle: ProcessHandle, timeout: float) -> Optional[int]:
    """Wait up to ``timeout`` for an exit code, None if still running."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        code = handle.poll()
        if code is not None:
            return code
        time.sleep(0.05)
    return handle.poll()
