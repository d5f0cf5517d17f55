"""pytest integration: one Cassandra server for the whole test session.

Enabled when a Cassandra config is supplied (``--cassandra-config``, the
``cassandra_config`` ini key, a settings file, or
``CASSANDRA_LIFECYCLE_CASSANDRA_CONFIG``). The server is started in
``pytest_sessionstart`` before collection and stopped in
``pytest_sessionfinish``.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import pytest

from cassandra_lifecycle.core.config import ENV_PREFIX, load_lifecycle_config
from cassandra_lifecycle.core.exceptions import LifecycleError
from cassandra_lifecycle.core.lifecycle import CassandraLifecycleController

logger = logging.getLogger(__name__)

CONTROLLER_KEY = pytest.StashKey[Optional[CassandraLifecycleController]]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("cassandra", "Cassandra lifecycle for integration tests")
    group.addoption(
        "--cassandra-config",
        dest="cassandra_config",
        default=None,
        help="Path to cassandra.yaml; starts Cassandra for the test session",
    )
    group.addoption(
        "--cassandra-settings",
        dest="cassandra_settings",
        default=None,
        help="YAML settings file for the lifecycle controller",
    )
    group.addoption(
        "--cassandra-load-schema",
        dest="cassandra_load_schema",
        action="store_true",
        default=False,
        help="Trigger loadSchemaFromYAML after Cassandra starts",
    )
    parser.addini("cassandra_config", "Path to cassandra.yaml", default=None)
    parser.addini("cassandra_settings", "YAML settings file for the lifecycle controller", default=None)
    parser.addini("cassandra_load_schema", "Trigger loadSchemaFromYAML after start", type="bool", default=False)


def _option(config: pytest.Config, name: str) -> Any:
    value = config.getoption(name)
    if value:
        return value
    return config.getini(name) or None


def _path_option(config: pytest.Config, name: str) -> Optional[str]:
    """Command-line paths are relative to the invocation dir, ini paths to the rootdir."""
    value = config.getoption(name)
    base = config.invocation_params.dir
    if not value:
        value = config.getini(name) or None
        base = config.rootpath
    if not value:
        return None
    if os.path.isabs(value):
        return str(value)
    return str(base / value)


def _settings_sources(config: pytest.Config) -> tuple[Optional[str], Dict[str, Any]]:
    overrides: Dict[str, Any] = {}
    cassandra_config = _path_option(config, "cassandra_config")
    if cassandra_config:
        overrides["cassandra_config"] = cassandra_config
    if _option(config, "cassandra_load_schema"):
        overrides["reload_schema_from_seed_file"] = True
    return _path_option(config, "cassandra_settings"), overrides


def _is_configured(settings: Optional[str], overrides: Dict[str, Any]) -> bool:
    return bool(settings or overrides.get("cassandra_config") or os.environ.get(f"{ENV_PREFIX}CASSANDRA_CONFIG"))


@pytest.hookimpl(trylast=True)
def pytest_sessionstart(session: pytest.Session) -> None:
    config = session.config
    if CONTROLLER_KEY in config.stash:
        logger.info("Cassandra lifecycle controller is already in the plugin context...")
        return

    settings, overrides = _settings_sources(config)
    if not _is_configured(settings, overrides):
        config.stash[CONTROLLER_KEY] = None
        return

    try:
        lifecycle_config = load_lifecycle_config(settings_path=settings, overrides=overrides)
        controller = CassandraLifecycleController.from_config(lifecycle_config)
        controller.start()
    except LifecycleError as exc:
        config.stash[CONTROLLER_KEY] = None
        raise pytest.UsageError(f"Cassandra lifecycle: {exc}") from exc

    config.stash[CONTROLLER_KEY] = controller


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    controller = session.config.stash.get(CONTROLLER_KEY, None)
    if controller is not None:
        controller.stop()


@pytest.fixture(scope="session")
def cassandra_controller(request: pytest.FixtureRequest) -> CassandraLifecycleController:
    """The session's lifecycle controller; skips when no Cassandra is configured."""
    controller = request.config.stash.get(CONTROLLER_KEY, None)
    if controller is None:
        pytest.skip("Cassandra not configured (use --cassandra-config)")
    return controller
