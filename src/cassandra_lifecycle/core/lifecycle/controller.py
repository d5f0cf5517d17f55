"""Lifecycle controller for a single Cassandra server.

``start()`` is idempotent and returns once the server is launched (and, when
requested, the schema reload was triggered). ``stop()`` blocks until the
server worker is gone. Only one live server may exist per process: the
server library cannot be initialized twice in the same interpreter.
"""
from __future__ import annotations

import atexit
import logging
import threading
import time
from typing import TYPE_CHECKING, Callable, Optional

from cassandra_lifecycle.core.exceptions import InitializationError
from cassandra_lifecycle.core.server import DaemonFactory, default_daemon_factory

from .cleanup import clean_dirs
from .models import LifecycleState, ServerConfig, ServerProcessHandle, ServerWorker
from .probe import DEFAULT_MANAGEMENT_PORT, is_server_running, load_schema_url, wait_for_schema_load

if TYPE_CHECKING:
    from cassandra_lifecycle.core.config import LifecycleConfig

logger = logging.getLogger(__name__)

_PROCESS_LOCK = threading.Lock()
_PROCESS_OWNER: Optional["CassandraLifecycleController"] = None


def _claim_process_slot(owner: CassandraLifecycleController) -> bool:
    global _PROCESS_OWNER
    with _PROCESS_LOCK:
        if _PROCESS_OWNER is not None and _PROCESS_OWNER is not owner:
            return False
        _PROCESS_OWNER = owner
        return True


def _release_process_slot(owner: CassandraLifecycleController) -> None:
    global _PROCESS_OWNER
    with _PROCESS_LOCK:
        if _PROCESS_OWNER is owner:
            _PROCESS_OWNER = None


def process_owner() -> Optional[CassandraLifecycleController]:
    """Return the controller holding this process's live server, if any."""
    with _PROCESS_LOCK:
        return _PROCESS_OWNER


def reset_process_owner_for_tests() -> None:
    """Test-only: forget the process-wide server owner."""
    global _PROCESS_OWNER
    with _PROCESS_LOCK:
        _PROCESS_OWNER = None


def _logged(callback: Callable[[], None]) -> Callable[[], None]:
    def _run() -> None:
        try:
            callback()
        except Exception:
            logger.exception("Cassandra exit hook failed")

    return _run


def register_exit_hook(callback: Callable[[], None]) -> None:
    # Non-daemon workers are joined before atexit handlers run, so the hook
    # must fire from the threading shutdown sequence where the interpreter has one.
    hook = _logged(callback)
    register = getattr(threading, "_register_atexit", None)
    if register is None:
        atexit.register(hook)
        return
    register(hook)


class CassandraLifecycleController:
    """Owns the one Cassandra server started for an integration-test run."""

    def __init__(
        self,
        server_config: ServerConfig,
        *,
        daemon_factory: DaemonFactory | None = None,
        probe_timeout_seconds: float = 0.75,
        poll_interval_seconds: float = 1.0,
        schema_load_timeout_seconds: float | None = None,
        management_port: int = DEFAULT_MANAGEMENT_PORT,
        stop_timeout_seconds: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
        exit_hook_registrar: Callable[[Callable[[], None]], None] = register_exit_hook,
    ) -> None:
        self.server_config = server_config
        self._daemon_factory = daemon_factory or default_daemon_factory()
        self._probe_timeout_seconds = probe_timeout_seconds
        self._poll_interval_seconds = poll_interval_seconds
        self._schema_load_timeout_seconds = schema_load_timeout_seconds
        self._management_port = management_port
        self._stop_timeout_seconds = stop_timeout_seconds
        self._sleep = sleep
        self._exit_hook_registrar = exit_hook_registrar

        self._lock = threading.RLock()
        self._state = LifecycleState.NOT_STARTED
        self._handle: Optional[ServerProcessHandle] = None
        self._exit_hook_registered = False

    @classmethod
    def from_config(cls, config: LifecycleConfig, **kwargs) -> CassandraLifecycleController:
        """Build a controller from merged :class:`LifecycleConfig` settings."""
        server_config = ServerConfig.create(
            config.cassandra_config,
            reload_schema_from_seed_file=config.reload_schema_from_seed_file,
        )
        kwargs.setdefault(
            "daemon_factory",
            default_daemon_factory(
                executable=config.cassandra_executable,
                shutdown_timeout_seconds=config.shutdown_timeout_seconds,
            ),
        )
        return cls(
            server_config,
            probe_timeout_seconds=config.probe_timeout_seconds,
            poll_interval_seconds=config.poll_interval_seconds,
            schema_load_timeout_seconds=config.schema_load_timeout_seconds,
            management_port=config.management_port,
            stop_timeout_seconds=config.shutdown_timeout_seconds,
            **kwargs,
        )

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def handle(self) -> Optional[ServerProcessHandle]:
        return self._handle

    @property
    def host(self) -> str:
        return self.server_config.descriptor.rpc_address

    @property
    def port(self) -> int:
        return self.server_config.descriptor.client_port

    def is_server_running(self) -> bool:
        return is_server_running(self.host, self.port, timeout_seconds=self._probe_timeout_seconds)

    def start(self) -> None:
        with self._lock:
            if self._handle is not None or process_owner() is not None:
                logger.info("Cassandra lifecycle controller is already started...")
                return
            if self._state is not LifecycleState.NOT_STARTED:
                logger.warning("Cassandra cannot be restarted in the same process (state=%s)", self._state.value)
                return

            if self.is_server_running():
                logger.info("Cassandra instance is already running...")
                return

            if not _claim_process_slot(self):
                logger.info("Cassandra lifecycle controller is already started...")
                return

            self._state = LifecycleState.STARTING
            logger.info("Starting Cassandra...")
            try:
                self._handle = self._launch()
            except BaseException:
                _release_process_slot(self)
                self._state = LifecycleState.NOT_STARTED
                raise
            self._state = LifecycleState.RUNNING

            # The exit hook must cover the server even if the schema wait raises.
            if not self._exit_hook_registered:
                self._exit_hook_registrar(self.stop)
                self._exit_hook_registered = True

            if self.server_config.reload_schema_from_seed_file:
                self.load_schema_from_seed_file()

    def _launch(self) -> ServerProcessHandle:
        descriptor = self.server_config.descriptor
        clean_dirs(descriptor)

        server = self._daemon_factory(descriptor)
        try:
            server.init()
        except Exception as exc:
            raise InitializationError(
                "Failed to init cassandra",
                context={"config": str(self.server_config.config_path)},
            ) from exc

        worker = ServerWorker(server)
        worker.start()
        return ServerProcessHandle(server=server, worker=worker, descriptor=descriptor)

    def load_schema_from_seed_file(self) -> bool:
        url = load_schema_url(self.host, port=self._management_port)
        return wait_for_schema_load(
            url,
            poll_interval_seconds=self._poll_interval_seconds,
            timeout_seconds=self._schema_load_timeout_seconds,
            sleep=self._sleep,
        )

    def stop(self) -> None:
        """Tear the server down and wait for its worker to exit.

        When the server's ``stop()`` or ``destroy()`` raises, the worker is
        given ``stop_timeout_seconds`` to exit and the error is re-raised. A
        worker that is still alive keeps the controller RUNNING and the
        process slot claimed, so a later ``stop()`` can retry.
        """
        with self._lock:
            if self._state is not LifecycleState.RUNNING or self._handle is None:
                logger.debug("Stop ignored, controller is %s", self._state.value)
                return
            self._state = LifecycleState.STOPPING
            handle = self._handle

        logger.info("Stopping Cassandra...")
        try:
            try:
                handle.server.stop()
            finally:
                handle.server.destroy()
        except BaseException:
            self._join_worker(handle, timeout=self._stop_timeout_seconds)
            self._finish_stop(handle)
            raise
        self._join_worker(handle)
        self._finish_stop(handle)

    def _join_worker(self, handle: ServerProcessHandle, *, timeout: float | None = None) -> None:
        try:
            handle.worker.join(timeout)
        except KeyboardInterrupt:
            logger.error("Interrupted while stopping Cassandra...")

    def _finish_stop(self, handle: ServerProcessHandle) -> None:
        with self._lock:
            if handle.alive:
                logger.error("Cassandra worker is still running after stop, keeping it registered")
                self._state = LifecycleState.RUNNING
                return
            _release_process_slot(self)
            self._handle = None
            self._state = LifecycleState.STOPPED

    def run_until_interrupted(self, *, poll_interval_seconds: float = 1.0) -> None:
        """Block until interrupted, then stop the server."""
        logger.info("Entering endless mode...")
        try:
            while True:
                handle = self._handle
                if handle is not None and not handle.alive:
                    logger.error("Cassandra worker exited on its own, leaving endless mode")
                    break
                self._sleep(poll_interval_seconds)
        finally:
            self.stop()


__all__ = [
    "CassandraLifecycleController",
    "process_owner",
    "register_exit_hook",
    "reset_process_owner_for_tests",
]
