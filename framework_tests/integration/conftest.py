"""Fixtures for integration tests that run real worker processes."""

import pytest

from mutineer.utils.ports import PortManager


def pytest_collection_modifyitems(items):
    for item in items:
        if "integration/" in item.nodeid:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def port_manager():
    return PortManager(base_port=23000, max_ports=1000)
