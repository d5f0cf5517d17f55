"""
cassandra-lifecycle CLI package.

Commands are auto-discovered from ``cli/commands/*.py``; each module exposes
``SUMMARY``, ``register_args(parser)`` and ``main(args) -> int``.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Settings loading from parsed arguments
"""
from ._args import add_json_flag, add_settings_args
from ._output import OutputFormatter
from ._utils import load_config_from_args, settings_overrides

__all__ = [
    "OutputFormatter",
    "add_json_flag",
    "add_settings_args",
    "load_config_from_args",
    "settings_overrides",
]
