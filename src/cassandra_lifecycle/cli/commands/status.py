"""
cassandra-lifecycle status command.

SUMMARY: Check whether Cassandra accepts connections on the configured port
"""
from __future__ import annotations

import argparse
import sys

from cassandra_lifecycle.cli import OutputFormatter, add_json_flag, add_settings_args, load_config_from_args
from cassandra_lifecycle.core.lifecycle import ServerConfig, is_server_running

SUMMARY = "Check whether Cassandra accepts connections on the configured port"

EXIT_NOT_RUNNING = 3


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_settings_args(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        config = load_config_from_args(args)
        server_config = ServerConfig.create(config.cassandra_config)
    except Exception as e:
        formatter.error(e, error_code="status_error")
        return 1

    descriptor = server_config.descriptor
    running = is_server_running(
        descriptor.rpc_address,
        descriptor.client_port,
        timeout_seconds=config.probe_timeout_seconds,
    )
    label = "running" if running else "not running"
    formatter.success(
        {"running": running, "host": descriptor.rpc_address, "port": descriptor.client_port},
        f"Cassandra is {label} on {descriptor.rpc_address}:{descriptor.client_port}",
    )
    return 0 if running else EXIT_NOT_RUNNING


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    cli_args = parser.parse_args()
    sys.exit(main(cli_args))
