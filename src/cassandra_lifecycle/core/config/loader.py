"""
Settings loading for the lifecycle controller (YAML + environment overrides).

Sources (highest to lowest priority):
1. Explicit overrides (CLI flags, pytest options)
2. Environment variables: CASSANDRA_LIFECYCLE_<KEY>
3. Settings file: a YAML mapping, optionally nested under ``cassandra_lifecycle:``
4. Dataclass defaults in :class:`LifecycleConfig`
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from cassandra_lifecycle.core.exceptions import ConfigurationError
from cassandra_lifecycle.core.schemas import SchemaValidationError, validate_payload
from cassandra_lifecycle.core.utils.io import read_yaml

from .models import LifecycleConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "CASSANDRA_LIFECYCLE_"
SECTION_KEY = "cassandra_lifecycle"
SCHEMA_NAME = "config/lifecycle.schema"


def _as_bool(v: str) -> Optional[bool]:
    low = v.strip().lower()
    if low in {"true", "false"}:
        return low == "true"
    return None


def _as_int(v: str) -> Optional[int]:
    if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
        return int(v)
    return None


def _as_float(v: str) -> Optional[float]:
    s = v.strip()
    if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
        return float(s)
    return None


def _coerce_type(value: str) -> Any:
    if value.strip().lower() in {"", "null", "none"}:
        return None
    for caster in (_as_bool, _as_int, _as_float):
        result = caster(value)
        if result is not None:
            return result
    return value.strip()


def env_overrides(environ: Mapping[str, str] | None = None) -> Dict[str, Any]:
    """Collect ``CASSANDRA_LIFECYCLE_*`` variables as lower-case settings keys."""
    env = os.environ if environ is None else environ
    out: Dict[str, Any] = {}
    for key in sorted(env.keys()):
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if not name:
            continue
        out[name] = _coerce_type(env[key])
    return out


def _read_settings_file(path: Path) -> Dict[str, Any]:
    try:
        data = read_yaml(path, default={}, raise_on_error=True)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Settings file not found: {path}", context={"path": str(path)}) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Settings file is not valid YAML: {path}: {exc}", context={"path": str(path)}) from exc

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Settings file must contain a YAML mapping: {path}",
            context={"path": str(path)},
        )
    section = data.get(SECTION_KEY, data)
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"'{SECTION_KEY}' in {path} must be a mapping",
            context={"path": str(path)},
        )

    # Relative paths in a settings file are relative to that file.
    base = path.resolve().parent
    resolved = dict(section)
    for key in ("cassandra_config", "log_file"):
        value = resolved.get(key)
        if isinstance(value, str) and value.strip() and not Path(value).expanduser().is_absolute():
            resolved[key] = str(base / value)
    return resolved


def _jsonable(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    return value


def load_lifecycle_config(
    *,
    settings_path: Path | str | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> LifecycleConfig:
    """Merge every settings source and return validated :class:`LifecycleConfig`.

    Raises:
        ConfigurationError: invalid file, unknown/legacy keys, schema violations,
            or no ``cassandra_config`` in any source.
    """
    merged: Dict[str, Any] = {}
    if settings_path is not None:
        merged.update(_read_settings_file(Path(settings_path).expanduser()))
    merged.update(env_overrides(environ))
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value

    payload = {k: _jsonable(v) for k, v in merged.items()}
    logger.debug("Lifecycle settings: %s", json.dumps(payload, sort_keys=True, default=str))

    try:
        config = LifecycleConfig.from_raw(payload)
    except ValueError as exc:
        raise ConfigurationError(str(exc), context={"keys": sorted(payload)}) from exc

    if config is None:
        raise ConfigurationError(
            "cassandra_config is required (settings file, CASSANDRA_LIFECYCLE_CASSANDRA_CONFIG, or --config)"
        )

    try:
        validate_payload(payload, SCHEMA_NAME)
    except SchemaValidationError as exc:
        raise ConfigurationError(str(exc), context={"errors": exc.errors}) from exc

    return config


__all__ = ["ENV_PREFIX", "env_overrides", "load_lifecycle_config"]
