"""Pytest Configuration and Shared Fixtures

This file is automatically loaded by pytest and makes all fixtures available to all tests.
"""
import os
import sys
import tempfile
from pathlib import Path

import pytest

# Keep config and log files of the test run out of the real home directory.
# Must happen before coins_cli.config.settings is imported.
os.environ.setdefault("COINS_CLI_HOME", tempfile.mkdtemp(prefix="coins-cli-tests-"))

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Import all fixture modules to register them
pytest_plugins = [
    "tests.fixtures.api_fixtures",
]


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: Unit tests with mocks only (fast)"
    )
    config.addinivalue_line(
        "markers",
        "integration: CLI tests driving whole commands over a mock transport"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
