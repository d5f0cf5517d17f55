import logging
import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'cassandra_lifecycle'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

pytest_plugins = ["pytester"]

from cassandra_lifecycle.core.config import ENV_PREFIX
from cassandra_lifecycle.core.lifecycle import process_owner, reset_process_owner_for_tests
from cassandra_lifecycle.core.server import reset_lookup_roots_for_tests
from cassandra_lifecycle.core.stdlib_logging import reset_stdlib_logging_for_tests
from helpers.cassandra_yaml import free_port, write_cassandra_yaml
from helpers.fake_daemon import FakeDaemonFactory


@pytest.fixture(autouse=True)
def _isolate_lifecycle_state(monkeypatch: pytest.MonkeyPatch):
    """Reset process-wide registries so tests never see each other's servers."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    reset_lookup_roots_for_tests()
    reset_process_owner_for_tests()
    yield
    leftover = process_owner()
    if leftover is not None:
        leftover.stop()
    reset_process_owner_for_tests()
    reset_lookup_roots_for_tests()
    reset_stdlib_logging_for_tests()


@pytest.fixture
def cassandra_yaml(tmp_path: Path) -> Path:
    """A cassandra.yaml on a free loopback port with data dirs under tmp_path."""
    return write_cassandra_yaml(tmp_path / "conf", port=free_port(), data_root=tmp_path / "data")


@pytest.fixture
def fake_daemons() -> FakeDaemonFactory:
    return FakeDaemonFactory()


@pytest.fixture
def exit_hooks() -> list:
    """Collects exit callbacks instead of registering them with the interpreter."""
    return []


@pytest.fixture
def caplog_info(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.INFO, logger="cassandra_lifecycle")
    return caplog
