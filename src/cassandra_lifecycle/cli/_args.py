"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_settings_args(parser: argparse.ArgumentParser) -> None:
    """Add --config/--settings, the inputs every command resolves settings from."""
    parser.add_argument(
        "--config",
        dest="cassandra_config",
        help="Path to cassandra.yaml (overrides settings file and environment)",
    )
    parser.add_argument(
        "--settings",
        dest="settings",
        help="YAML settings file for the lifecycle controller",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    )


__all__ = ["add_json_flag", "add_settings_args"]
