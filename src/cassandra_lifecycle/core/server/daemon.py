from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Any, Callable, Protocol

import psutil

from .descriptor import DatabaseDescriptor

logger = logging.getLogger(__name__)

CASSANDRA_CONF_ENV = "CASSANDRA_CONF"
CASSANDRA_HOME_ENV = "CASSANDRA_HOME"


class EmbeddedServer(Protocol):
    """Lifecycle surface of an in-process server object."""

    def init(self) -> None: ...

    def start(self) -> None:
        """Serve until stopped. Blocks the calling thread."""
        ...

    def stop(self) -> None: ...

    def destroy(self) -> None: ...


DaemonFactory = Callable[[DatabaseDescriptor], EmbeddedServer]


def resolve_executable(explicit: str | None = None) -> Path:
    """Locate the ``cassandra`` launcher script.

    Order: explicit path, ``$CASSANDRA_HOME/bin/cassandra``, ``cassandra`` on PATH.
    """
    if explicit:
        candidate = Path(explicit).expanduser()
        if candidate.is_file():
            return candidate.resolve()
        found = shutil.which(explicit)
        if found:
            return Path(found)
        raise FileNotFoundError(f"Cassandra launcher not found: {explicit}")

    home = os.environ.get(CASSANDRA_HOME_ENV)
    if home:
        candidate = Path(home).expanduser() / "bin" / "cassandra"
        if candidate.is_file():
            return candidate.resolve()

    found = shutil.which("cassandra")
    if found:
        return Path(found)
    raise FileNotFoundError(
        f"Cassandra launcher not found: set {CASSANDRA_HOME_ENV} or put 'cassandra' on PATH"
    )


def _popen_kwargs() -> dict[str, Any]:
    if os.name == "posix":
        return {"start_new_session": True}
    if os.name == "nt":
        creationflags = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", None)
        if isinstance(creationflags, int):
            return {"creationflags": creationflags}
    return {}


def _terminate_tree(pid: int, *, timeout_seconds: float) -> None:
    """SIGTERM ``pid`` and its children, then SIGKILL whatever outlives the timeout."""
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return

    try:
        procs = [*parent.children(recursive=True), parent]
    except psutil.NoSuchProcess:
        procs = [parent]

    for proc in procs:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            continue

    _, alive = psutil.wait_procs(procs, timeout=max(0.1, float(timeout_seconds)))
    for proc in alive:
        logger.warning("Cassandra process %s ignored SIGTERM, killing it", proc.pid)
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue


class CassandraDaemon:
    """Runs the Cassandra launcher in the foreground as a child process.

    ``start()`` blocks until the process exits, so callers run it on a
    dedicated worker. ``stop()`` may be called from any thread, including
    before the worker got around to spawning the process.
    """

    def __init__(
        self,
        descriptor: DatabaseDescriptor,
        *,
        executable: str | None = None,
        shutdown_timeout_seconds: float = 10.0,
    ) -> None:
        self.descriptor = descriptor
        self._explicit_executable = executable
        self._shutdown_timeout_seconds = shutdown_timeout_seconds
        self._executable: Path | None = None
        self._process: subprocess.Popen[bytes] | None = None
        self._stopped = False
        self._lock = threading.Lock()

    @property
    def pid(self) -> int | None:
        proc = self._process
        return proc.pid if proc is not None else None

    def init(self) -> None:
        self._executable = resolve_executable(self._explicit_executable)
        if not self.descriptor.config_path.is_file():
            raise FileNotFoundError(f"Cassandra config disappeared: {self.descriptor.config_path}")
        logger.debug("Using Cassandra launcher %s", self._executable)

    def _environment(self) -> dict[str, str]:
        env = dict(os.environ)
        env[CASSANDRA_CONF_ENV] = str(self.descriptor.config_dir)
        return env

    def start(self) -> None:
        if self._executable is None:
            raise RuntimeError("CassandraDaemon.start() called before init()")

        with self._lock:
            if self._stopped:
                return
            self._process = subprocess.Popen(  # noqa: S603
                [str(self._executable), "-f"],
                cwd=str(self.descriptor.config_dir),
                env=self._environment(),
                stdin=subprocess.DEVNULL,
                **_popen_kwargs(),
            )
            proc = self._process

        exit_code = proc.wait()
        if exit_code != 0 and not self._stopped:
            logger.error("Cassandra exited with code %s", exit_code)

    def stop(self) -> None:
        with self._lock:
            self._stopped = True
            proc = self._process
        if proc is None or proc.poll() is not None:
            return
        _terminate_tree(proc.pid, timeout_seconds=self._shutdown_timeout_seconds)

    def destroy(self) -> None:
        with self._lock:
            proc = self._process
            self._process = None
        if proc is not None and proc.poll() is None:
            _terminate_tree(proc.pid, timeout_seconds=self._shutdown_timeout_seconds)


def default_daemon_factory(
    *, executable: str | None = None, shutdown_timeout_seconds: float = 10.0
) -> DaemonFactory:
    def _factory(descriptor: DatabaseDescriptor) -> EmbeddedServer:
        return CassandraDaemon(
            descriptor,
            executable=executable,
            shutdown_timeout_seconds=shutdown_timeout_seconds,
        )

    return _factory


__all__ = [
    "CASSANDRA_CONF_ENV",
    "CASSANDRA_HOME_ENV",
    "CassandraDaemon",
    "DaemonFactory",
    "EmbeddedServer",
    "default_daemon_factory",
    "resolve_executable",
]
