"""
cassandra-lifecycle start command.

SUMMARY: Start Cassandra (optionally blocking until interrupted)
"""
from __future__ import annotations

import argparse
import signal
import sys

from cassandra_lifecycle.cli import OutputFormatter, add_json_flag, add_settings_args, load_config_from_args
from cassandra_lifecycle.core.lifecycle import CassandraLifecycleController, LifecycleState

SUMMARY = "Start Cassandra (optionally blocking until interrupted)"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_settings_args(parser)
    parser.add_argument(
        "--load-schema-from-yaml",
        dest="reload_schema_from_seed_file",
        action="store_true",
        help="Trigger loadSchemaFromYAML over the management interface after start",
    )
    parser.add_argument(
        "--endless",
        dest="block_until_manually_stopped",
        action="store_true",
        help="Keep the server running until interrupted (Ctrl+C / SIGTERM)",
    )
    add_json_flag(parser)


def _raise_keyboard_interrupt(_signum, _frame) -> None:
    raise KeyboardInterrupt


def main(args: argparse.Namespace) -> int:
    """Start Cassandra; the server is stopped again when this process exits."""
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        config = load_config_from_args(args, "reload_schema_from_seed_file", "block_until_manually_stopped")
        controller = CassandraLifecycleController.from_config(config)
        controller.start()
    except Exception as e:
        formatter.error(e, error_code="start_error")
        return 1

    external = controller.state is LifecycleState.NOT_STARTED
    label = "already running" if external else controller.state.value
    payload = {
        "state": controller.state.value,
        "already_running": external,
        "host": controller.host,
        "port": controller.port,
        "config": str(controller.server_config.config_path),
    }
    formatter.success(payload, f"Cassandra {label} on {controller.host}:{controller.port}")

    if config.block_until_manually_stopped and not external:
        signal.signal(signal.SIGTERM, _raise_keyboard_interrupt)
        try:
            controller.run_until_interrupted()
        except KeyboardInterrupt:
            pass

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    cli_args = parser.parse_args()
    sys.exit(main(cli_args))
