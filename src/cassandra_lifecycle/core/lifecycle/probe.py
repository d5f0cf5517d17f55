from __future__ import annotations

import http.client
import logging
import socket
import time
from typing import Callable
from urllib.error import URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from cassandra_lifecycle.core.exceptions import ManagementUnreachableError

logger = logging.getLogger(__name__)

DEFAULT_MANAGEMENT_PORT = 8081
STORAGE_SERVICE_OBJECT_NAME = "org.apache.cassandra.service:type=StorageService"


def is_server_running(host: str, port: int, *, timeout_seconds: float = 0.75) -> bool:
    """Return True when something accepts TCP connections on ``host:port``."""
    try:
        with socket.create_connection((host, int(port)), timeout=max(0.01, float(timeout_seconds))):
            return True
    except OSError:
        return False


def load_schema_url(
    host: str,
    *,
    port: int = DEFAULT_MANAGEMENT_PORT,
    object_name: str = STORAGE_SERVICE_OBJECT_NAME,
) -> str:
    objectname = quote(object_name, safe=":")
    return f"http://{host}:{port}/invoke?operation=loadSchemaFromYAML&objectname={objectname}"


def _is_connection_refused(exc: BaseException) -> bool:
    if isinstance(exc, ConnectionRefusedError):
        return True
    if isinstance(exc, URLError):
        return isinstance(exc.reason, ConnectionRefusedError)
    return False


def wait_for_schema_load(
    url: str,
    *,
    poll_interval_seconds: float = 1.0,
    request_timeout_seconds: float = 10.0,
    timeout_seconds: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Invoke the loadSchemaFromYAML management operation, waiting for it to come up.

    A refused connection means the management interface is not up yet and is
    retried every ``poll_interval_seconds``. Any other I/O failure ends the
    wait. With ``timeout_seconds`` unset the wait has no deadline.

    Returns:
        True when the operation was invoked, False when the wait ended on a
        non-retryable failure.

    Raises:
        ManagementUnreachableError: ``timeout_seconds`` elapsed while the
            connection was still being refused.
    """
    deadline = None if timeout_seconds is None else clock() + max(0.0, float(timeout_seconds))
    attempts = 0

    while True:
        attempts += 1
        try:
            logger.info("Invoking %s to load schema from YAML", url)
            with urlopen(Request(url, method="GET"), timeout=request_timeout_seconds) as resp:
                resp.read()
            return True
        except (OSError, http.client.HTTPException) as exc:
            # URLError and HTTPError are OSError subclasses; a non-HTTP reply
            # surfaces as an unwrapped HTTPException.
            if not _is_connection_refused(exc):
                logger.debug("Schema load via %s not applicable: %s", url, exc)
                return False

        if deadline is not None and clock() >= deadline:
            raise ManagementUnreachableError(
                f"Management interface unreachable after {attempts} attempt(s): {url}",
                context={"url": url, "attempts": attempts},
            )
        logger.info("Could not connect, waiting for MX4J server to start")
        sleep(poll_interval_seconds)


__all__ = [
    "DEFAULT_MANAGEMENT_PORT",
    "STORAGE_SERVICE_OBJECT_NAME",
    "is_server_running",
    "load_schema_url",
    "wait_for_schema_load",
]
