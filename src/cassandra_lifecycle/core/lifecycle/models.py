from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from cassandra_lifecycle.core.exceptions import ConfigurationError, EnvironmentPreparationError
from cassandra_lifecycle.core.server import (
    CONFIG_FILENAME,
    DatabaseDescriptor,
    EmbeddedServer,
    register_lookup_root,
)

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


def _validate_config_path(config_path: Path) -> None:
    if not config_path.exists() or not config_path.is_file():
        raise ConfigurationError(
            f"{config_path} does not exist or it's not a file",
            context={"path": str(config_path), "violation": "not_a_file"},
        )
    if config_path.name != CONFIG_FILENAME:
        raise ConfigurationError(
            f"{config_path} is a file but it's not the correctly named '{CONFIG_FILENAME}'",
            context={"path": str(config_path), "violation": "wrong_name"},
        )


@dataclass(frozen=True)
class ServerConfig:
    """Validated location of ``cassandra.yaml`` plus the options bound to it."""

    config_path: Path
    reload_schema_from_seed_file: bool
    descriptor: DatabaseDescriptor

    @classmethod
    def create(cls, config_path: str | Path, *, reload_schema_from_seed_file: bool = False) -> ServerConfig:
        """Validate ``config_path`` and register its directory as a lookup root.

        Raises:
            ConfigurationError: missing file, a directory, or the wrong file name.
            EnvironmentPreparationError: the lookup root could not be registered
                or the configuration could not be loaded from it.
        """
        path = Path(config_path).expanduser().absolute()
        _validate_config_path(path)

        try:
            register_lookup_root(path.parent)
            descriptor = DatabaseDescriptor.load()
        except (OSError, ValueError) as exc:
            raise EnvironmentPreparationError(
                f"Failed to register {path.parent} as a configuration lookup root: {exc}",
                context={"path": str(path)},
            ) from exc

        if descriptor.config_path != path.resolve():
            logger.warning(
                "%s is shadowed by %s registered earlier in this process",
                path,
                descriptor.config_path,
            )

        return cls(
            config_path=path,
            reload_schema_from_seed_file=bool(reload_schema_from_seed_file),
            descriptor=descriptor,
        )


class ServerWorker(threading.Thread):
    """Non-daemon thread that owns the server's blocking run loop."""

    def __init__(self, server: EmbeddedServer) -> None:
        super().__init__(name="cassandra-daemon", daemon=False)
        self._server = server
        self.error: BaseException | None = None

    def run(self) -> None:
        logger.info("Start Cassandra...")
        try:
            self._server.start()
        except BaseException as exc:  # noqa: BLE001 - recorded for the owner to inspect
            self.error = exc
            logger.exception("Cassandra run loop failed")


@dataclass
class ServerProcessHandle:
    server: EmbeddedServer
    worker: ServerWorker
    descriptor: DatabaseDescriptor

    @property
    def alive(self) -> bool:
        return self.worker.is_alive()


__all__ = [
    "LifecycleState",
    "ServerConfig",
    "ServerProcessHandle",
    "ServerWorker",
]
