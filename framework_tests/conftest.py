"""Test configuration and fixtures shared by unit and integration tests."""

import shutil
import sys
import tempfile
from pathlib import Path

import pytest

from mutineer.core.config import reset_config
from mutineer.core.log import clear_log_context, shutdown_logging
from mutineer.core.types import MutineerConfig, TimeoutConfig, WorkerConfig

REPO_ROOT = Path(__file__).resolve().parent.parent
SAMPLE_PROJECT = Path(__file__).resolve().parent / "fixtures" / "sample_project"

# Sample test classes are imported by name during discovery tests
if str(SAMPLE_PROJECT) not in sys.path:
    sys.path.insert(0, str(SAMPLE_PROJECT))


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp(prefix="mutineer_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_project():
    """Import root holding the ``sampletests`` package."""
    return SAMPLE_PROJECT


@pytest.fixture
def worker_config():
    """Configuration for running real worker processes against the sample project."""
    return MutineerConfig(
        timeouts=TimeoutConfig(handshake_timeout=20.0, process_kill=5.0),
        worker=WorkerConfig(
            python_path=[str(REPO_ROOT), str(SAMPLE_PROJECT)],
            coverage_include=[str(SAMPLE_PROJECT)],
        ),
    )


@pytest.fixture(autouse=True)
def reset_global_state():
    """Forget cached configuration, log handlers and thread-local log context between tests."""
    yield
    reset_config()
    clear_log_context()
    shutdown_logging()
