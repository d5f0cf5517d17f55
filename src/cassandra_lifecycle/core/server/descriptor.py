"""Cassandra configuration loader.

The server locates ``cassandra.yaml`` by scanning registered lookup roots
rather than by explicit path, mirroring how the Cassandra launcher resolves
its configuration from ``CASSANDRA_CONF``. Lookup roots are process-wide:
register a directory once with :func:`register_lookup_root`, then build a
:class:`DatabaseDescriptor` with :meth:`DatabaseDescriptor.load`.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple

import yaml

from cassandra_lifecycle.core.utils.io import read_yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "cassandra.yaml"

DEFAULT_RPC_ADDRESS = "localhost"
DEFAULT_CLIENT_PORT = 9042
DEFAULT_COMMITLOG_DIRECTORY = "data/commitlog"
DEFAULT_DATA_FILE_DIRECTORY = "data/data"

_LOOKUP_ROOTS: List[Path] = []
_LOOKUP_LOCK = threading.Lock()


def register_lookup_root(directory: Path) -> bool:
    """Register ``directory`` as a configuration lookup root.

    Returns False when the directory was already registered.
    """
    resolved = Path(directory).expanduser().resolve()
    if not resolved.is_dir():
        raise NotADirectoryError(f"Lookup root is not a directory: {resolved}")

    with _LOOKUP_LOCK:
        if resolved in _LOOKUP_ROOTS:
            logger.debug("Lookup root already registered: %s", resolved)
            return False
        _LOOKUP_ROOTS.append(resolved)
    logger.debug("Registered lookup root: %s", resolved)
    return True


def lookup_roots() -> Tuple[Path, ...]:
    with _LOOKUP_LOCK:
        return tuple(_LOOKUP_ROOTS)


def find_config(filename: str = CONFIG_FILENAME) -> Optional[Path]:
    """Return the first ``filename`` found under the registered lookup roots."""
    for root in lookup_roots():
        candidate = root / filename
        if candidate.is_file():
            return candidate
    return None


def reset_lookup_roots_for_tests() -> None:
    """Test-only: forget every registered lookup root."""
    with _LOOKUP_LOCK:
        _LOOKUP_ROOTS.clear()


def _resolve_dir(base: Path, raw: Any, default: str) -> Path:
    value = str(raw).strip() if raw is not None else ""
    path = Path(value or default).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def _as_port(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class DatabaseDescriptor:
    """Server settings read from ``cassandra.yaml``.

    Only the values the lifecycle controller needs are exposed; everything
    else in the file is left to the server itself.
    """

    config_path: Path
    rpc_address: str
    client_port: int
    commitlog_directory: Path
    data_file_directories: Tuple[Path, ...]

    @property
    def config_dir(self) -> Path:
        return self.config_path.parent

    @classmethod
    def load(cls, filename: str = CONFIG_FILENAME) -> DatabaseDescriptor:
        """Load the descriptor from the first matching lookup root."""
        path = find_config(filename)
        if path is None:
            searched = "\n".join(f"- {p}" for p in lookup_roots()) or "- (no lookup roots registered)"
            raise FileNotFoundError(f"{filename} not found in lookup roots:\n{searched}")
        return cls.from_file(path)

    @classmethod
    def from_file(cls, path: Path) -> DatabaseDescriptor:
        path = Path(path).resolve()
        try:
            raw = read_yaml(path, default={}, raise_on_error=True)
        except yaml.YAMLError as exc:
            raise ValueError(f"{path} is not valid YAML: {exc}") from exc
        if not isinstance(raw, dict):
            raise ValueError(f"{path} must contain a YAML mapping, got {type(raw).__name__}")

        base = path.parent
        rpc_address = str(raw.get("rpc_address") or "").strip() or DEFAULT_RPC_ADDRESS

        # Thrift-era configs carry rpc_port; newer ones only the native port.
        port = _as_port(raw.get("rpc_port"))
        if port is None:
            port = _as_port(raw.get("native_transport_port"))
        if port is None:
            port = DEFAULT_CLIENT_PORT

        data_raw = raw.get("data_file_directories")
        if isinstance(data_raw, str):
            data_raw = [data_raw]
        if not isinstance(data_raw, list) or not data_raw:
            data_raw = [DEFAULT_DATA_FILE_DIRECTORY]

        return cls(
            config_path=path,
            rpc_address=rpc_address,
            client_port=port,
            commitlog_directory=_resolve_dir(base, raw.get("commitlog_directory"), DEFAULT_COMMITLOG_DIRECTORY),
            data_file_directories=tuple(
                _resolve_dir(base, item, DEFAULT_DATA_FILE_DIRECTORY) for item in data_raw
            ),
        )

    def all_data_file_locations(self) -> Tuple[Path, ...]:
        return self.data_file_directories


__all__ = [
    "CONFIG_FILENAME",
    "DatabaseDescriptor",
    "find_config",
    "lookup_roots",
    "register_lookup_root",
    "reset_lookup_roots_for_tests",
]
