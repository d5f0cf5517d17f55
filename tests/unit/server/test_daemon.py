"""CassandraDaemon against an executable stand-in for the launcher script."""
from __future__ import annotations

import threading
from pathlib import Path

import pytest

from cassandra_lifecycle.core.lifecycle import is_server_running
from cassandra_lifecycle.core.server import (
    CassandraDaemon,
    DatabaseDescriptor,
    default_daemon_factory,
    resolve_executable,
)
from helpers.fake_launcher import write_fake_launcher
from helpers.timeouts import PROCESS_WAIT_TIMEOUT, THREAD_JOIN_TIMEOUT, wait_for


class TestResolveExecutable:
    pytestmark = pytest.mark.fast

    def test_explicit_path(self, tmp_path: Path) -> None:
        launcher = write_fake_launcher(tmp_path / "bin")

        assert resolve_executable(str(launcher)) == launcher.resolve()

    def test_explicit_path_must_exist(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            resolve_executable(str(tmp_path / "nope" / "cassandra"))

    def test_cassandra_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        launcher = write_fake_launcher(tmp_path / "home" / "bin")
        monkeypatch.setenv("CASSANDRA_HOME", str(tmp_path / "home"))

        assert resolve_executable() == launcher.resolve()

    def test_path_lookup(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        launcher = write_fake_launcher(tmp_path / "bin")
        monkeypatch.delenv("CASSANDRA_HOME", raising=False)
        monkeypatch.setenv("PATH", str(launcher.parent))

        assert resolve_executable() == launcher

    def test_nothing_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CASSANDRA_HOME", raising=False)
        monkeypatch.setenv("PATH", str(tmp_path))

        with pytest.raises(FileNotFoundError, match="CASSANDRA_HOME"):
            resolve_executable()


@pytest.mark.slow
class TestDaemonProcess:
    def test_start_serves_until_stopped(self, cassandra_yaml: Path, tmp_path: Path) -> None:
        descriptor = DatabaseDescriptor.from_file(cassandra_yaml)
        launcher = write_fake_launcher(tmp_path / "bin")
        daemon = default_daemon_factory(executable=str(launcher), shutdown_timeout_seconds=5.0)(descriptor)
        assert isinstance(daemon, CassandraDaemon)

        daemon.init()
        worker = threading.Thread(target=daemon.start)
        worker.start()
        try:
            assert wait_for(
                lambda: is_server_running(descriptor.rpc_address, descriptor.client_port),
                timeout=PROCESS_WAIT_TIMEOUT,
            )
            assert daemon.pid is not None
        finally:
            daemon.stop()
            daemon.destroy()
            worker.join(THREAD_JOIN_TIMEOUT)

        assert not worker.is_alive()
        assert is_server_running(descriptor.rpc_address, descriptor.client_port) is False

    def test_stop_before_start_prevents_spawn(self, cassandra_yaml: Path, tmp_path: Path) -> None:
        descriptor = DatabaseDescriptor.from_file(cassandra_yaml)
        daemon = CassandraDaemon(descriptor, executable=str(write_fake_launcher(tmp_path / "bin")))
        daemon.init()

        daemon.stop()
        daemon.start()

        assert daemon.pid is None

    def test_start_requires_init(self, cassandra_yaml: Path) -> None:
        daemon = CassandraDaemon(DatabaseDescriptor.from_file(cassandra_yaml))

        with pytest.raises(RuntimeError, match="before init"):
            daemon.start()
