"""Shared CLI utility functions."""
from __future__ import annotations

import argparse
from typing import Any, Dict

from cassandra_lifecycle.core.config import LifecycleConfig, load_lifecycle_config
from cassandra_lifecycle.core.stdlib_logging import configure_console_logging, configure_stdlib_logging


def settings_overrides(args: argparse.Namespace, *keys: str) -> Dict[str, Any]:
    """Collect explicitly-set CLI values; unset flags leave lower layers alone."""
    out: Dict[str, Any] = {}
    for key in ("cassandra_config", "log_level", *keys):
        value = getattr(args, key, None)
        if value is None or value is False:
            continue
        out[key] = value
    return out


def load_config_from_args(args: argparse.Namespace, *keys: str) -> LifecycleConfig:
    config = load_lifecycle_config(
        settings_path=getattr(args, "settings", None),
        overrides=settings_overrides(args, *keys),
    )
    configure_console_logging(level=config.log_level)
    if config.log_file is not None:
        configure_stdlib_logging(log_path=config.log_file, level=config.log_level)
    return config


__all__ = ["load_config_from_args", "settings_overrides"]
