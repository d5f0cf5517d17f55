from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_LEGACY_KEY_HINTS: dict[str, str] = {
    "cassandraConfig": "cassandra_config",
    "loadSchemaFromYaml": "reload_schema_from_seed_file",
    "load_schema_from_yaml": "reload_schema_from_seed_file",
    "reloadSchemaFromSeedFile": "reload_schema_from_seed_file",
    "endless": "block_until_manually_stopped",
    "blockUntilManuallyStopped": "block_until_manually_stopped",
    "probeTimeoutSeconds": "probe_timeout_seconds",
    "pollIntervalSeconds": "poll_interval_seconds",
    "managementPort": "management_port",
    "shutdownTimeoutSeconds": "shutdown_timeout_seconds",
}


def _raise_on_legacy_keys(raw: dict[str, Any]) -> None:
    found: list[str] = []
    for key in _LEGACY_KEY_HINTS.keys():
        if key not in raw:
            continue
        val = raw.get(key)
        if val is None:
            continue
        if isinstance(val, str) and not val.strip():
            continue
        found.append(key)

    if not found:
        return

    hints = ", ".join(f"{k} -> {_LEGACY_KEY_HINTS[k]}" for k in found)
    raise ValueError(f"Unsupported legacy cassandra_lifecycle keys: {hints}")


def _as_float(v: Any, default: float | None) -> float | None:
    if v is None:
        return default
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def _as_int(v: Any, default: int) -> int:
    if v is None:
        return default
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _as_optional_str(v: Any) -> str | None:
    if v is None:
        return None
    text = os.path.expandvars(str(v).strip())
    return text or None


@dataclass(frozen=True)
class LifecycleConfig:
    """Settings for starting and stopping the integration-test Cassandra."""

    cassandra_config: Path
    reload_schema_from_seed_file: bool = False
    block_until_manually_stopped: bool = False
    probe_timeout_seconds: float = 0.75
    poll_interval_seconds: float = 1.0
    schema_load_timeout_seconds: float | None = None
    management_port: int = 8081
    shutdown_timeout_seconds: float = 10.0
    cassandra_executable: str | None = None
    log_level: str = "INFO"
    log_file: Path | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> LifecycleConfig | None:
        """Build settings from a mapping; None when no config path is present."""
        if not isinstance(raw, dict):
            return None

        _raise_on_legacy_keys(raw)

        config_path = _as_optional_str(raw.get("cassandra_config"))
        if not config_path:
            return None

        log_file = _as_optional_str(raw.get("log_file"))

        return cls(
            cassandra_config=Path(config_path).expanduser(),
            reload_schema_from_seed_file=bool(raw.get("reload_schema_from_seed_file", False)),
            block_until_manually_stopped=bool(raw.get("block_until_manually_stopped", False)),
            probe_timeout_seconds=_as_float(raw.get("probe_timeout_seconds"), 0.75) or 0.75,
            poll_interval_seconds=_as_float(raw.get("poll_interval_seconds"), 1.0) or 1.0,
            schema_load_timeout_seconds=_as_float(raw.get("schema_load_timeout_seconds"), None),
            management_port=_as_int(raw.get("management_port"), 8081),
            shutdown_timeout_seconds=_as_float(raw.get("shutdown_timeout_seconds"), 10.0) or 10.0,
            cassandra_executable=_as_optional_str(raw.get("cassandra_executable")),
            log_level=str(raw.get("log_level") or "INFO").upper(),
            log_file=Path(log_file).expanduser() if log_file else None,
        )


__all__ = ["LifecycleConfig"]
