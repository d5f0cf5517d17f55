"""loadSchemaFromYAML invocation through the MX4J management interface."""
from __future__ import annotations

import http.client
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Iterator, List
from urllib.error import URLError

import pytest

from cassandra_lifecycle.core.exceptions import ManagementUnreachableError
from cassandra_lifecycle.core.lifecycle import load_schema_url, wait_for_schema_load
from cassandra_lifecycle.core.lifecycle import probe as probe_module
from helpers.cassandra_yaml import LOOPBACK, free_port
from helpers.management import non_http_listener

pytestmark = pytest.mark.fast


class _Response:
    def __enter__(self) -> "_Response":
        return self

    def __exit__(self, *exc) -> None:
        return None

    def read(self) -> bytes:
        return b"<html>ok</html>"


class _ScriptedUrlopen:
    """Raises the scripted errors in order, then answers."""

    def __init__(self, errors: List[BaseException]) -> None:
        self.errors = list(errors)
        self.urls: List[str] = []

    def __call__(self, request, timeout=None):
        self.urls.append(request.full_url)
        if self.errors:
            raise self.errors.pop(0)
        return _Response()


def _refused() -> URLError:
    return URLError(ConnectionRefusedError(111, "Connection refused"))


@pytest.fixture
def management_server() -> Iterator[tuple[int, List[str]]]:
    paths: List[str] = []

    class _Handler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # noqa: N802
            paths.append(self.path)
            body = b"invoked"
            self.send_response(200)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, *args) -> None:
            return None

    server = ThreadingHTTPServer((LOOPBACK, 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server.server_address[1], paths
    finally:
        server.shutdown()
        server.server_close()
        thread.join()


def test_url_targets_storage_service() -> None:
    url = load_schema_url("localhost")

    assert url == (
        "http://localhost:8081/invoke?operation=loadSchemaFromYAML"
        "&objectname=org.apache.cassandra.service:type%3DStorageService"
    )


def test_refusals_are_retried_with_one_sleep_each(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _ScriptedUrlopen([_refused(), _refused(), _refused()])
    monkeypatch.setattr(probe_module, "urlopen", fake)
    sleeps: List[float] = []

    assert wait_for_schema_load("http://x/invoke", poll_interval_seconds=0.5, sleep=sleeps.append) is True

    assert sleeps == [0.5, 0.5, 0.5]
    assert len(fake.urls) == 4


def test_first_success_does_not_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(probe_module, "urlopen", _ScriptedUrlopen([]))
    sleeps: List[float] = []

    assert wait_for_schema_load("http://x/invoke", sleep=sleeps.append) is True
    assert sleeps == []


def test_non_refused_failure_ends_the_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _ScriptedUrlopen([_refused(), URLError(OSError(113, "No route to host"))])
    monkeypatch.setattr(probe_module, "urlopen", fake)
    sleeps: List[float] = []

    assert wait_for_schema_load("http://x/invoke", sleep=sleeps.append) is False

    assert sleeps == [1.0]
    assert len(fake.urls) == 2


def test_bounded_wait_raises_after_deadline(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(probe_module, "urlopen", _ScriptedUrlopen([_refused()] * 10))
    now = [0.0]

    def _sleep(seconds: float) -> None:
        now[0] += seconds

    with pytest.raises(ManagementUnreachableError) as excinfo:
        wait_for_schema_load(
            "http://x/invoke",
            poll_interval_seconds=1.0,
            timeout_seconds=2.5,
            sleep=_sleep,
            clock=lambda: now[0],
        )

    assert excinfo.value.context["attempts"] == 4
    assert isinstance(excinfo.value, TimeoutError)


def test_retry_is_logged(monkeypatch: pytest.MonkeyPatch, caplog_info: pytest.LogCaptureFixture) -> None:
    monkeypatch.setattr(probe_module, "urlopen", _ScriptedUrlopen([_refused()]))

    wait_for_schema_load("http://x/invoke", sleep=lambda _: None)

    assert "Invoking http://x/invoke to load schema from YAML" in caplog_info.text
    assert "Could not connect, waiting for MX4J server to start" in caplog_info.text


def test_real_refused_port_is_retried_until_timeout() -> None:
    url = load_schema_url(LOOPBACK, port=free_port())

    with pytest.raises(ManagementUnreachableError):
        wait_for_schema_load(url, poll_interval_seconds=0.01, timeout_seconds=0.05)


def test_invokes_management_endpoint(management_server) -> None:
    port, paths = management_server

    assert wait_for_schema_load(load_schema_url(LOOPBACK, port=port)) is True

    assert paths == [
        "/invoke?operation=loadSchemaFromYAML&objectname=org.apache.cassandra.service:type%3DStorageService"
    ]


def test_non_http_reply_ends_the_wait() -> None:
    sleeps: List[float] = []

    with non_http_listener() as port:
        result = wait_for_schema_load(load_schema_url(LOOPBACK, port=port), sleep=sleeps.append)

    assert result is False
    assert sleeps == []


def test_protocol_error_is_not_retried(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _ScriptedUrlopen([http.client.BadStatusLine("garbage")])
    monkeypatch.setattr(probe_module, "urlopen", fake)

    assert wait_for_schema_load("http://x/invoke", sleep=lambda _: None) is False
    assert len(fake.urls) == 1
