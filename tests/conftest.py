"""
tests/conftest.py — Shared fixtures and path setup for all tests.

Adds the project root to sys.path so tests can import without installing:
    from dcos_checks.settings import Settings
    from dcos_checks.health import CheckResult
    from tests.fixtures.fakes import FakeClient
"""
import logging
import pathlib
import sys

import pytest

# Make project root importable without installing as a package
PROJECT_ROOT = pathlib.Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """main() reconfigures the root logger; put it back after every test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
