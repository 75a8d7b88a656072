"""
Pytest configuration and fixtures for framework unit tests.
Unit tests use fake launchers and process handles instead of real workers.
"""

import pytest

from fakes import FakeHandle, FakeLauncher


@pytest.fixture
def fake_handle():
    return FakeHandle()


@pytest.fixture
def fake_launcher(fake_handle):
    return FakeLauncher(fake_handle)
