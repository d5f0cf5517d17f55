from __future__ import annotations

import logging
import sys
from pathlib import Path

_CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_CONFIGURED_LOG_PATH: str | None = None
_FILE_HANDLER: logging.Handler | None = None
_CONSOLE_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int:
    try:
        return int(getattr(logging, name.upper()))
    except Exception:
        return logging.INFO


def configure_console_logging(*, level: str = "INFO", stream=None) -> None:
    """Emit console-style log lines (``[INFO] Starting Cassandra...``).

    Idempotent per-process: a second call only adjusts the level.
    """
    global _CONSOLE_HANDLER

    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    if _CONSOLE_HANDLER is not None:
        _CONSOLE_HANDLER.setLevel(_level_from_name(level))
        return

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(_level_from_name(level))
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    root.addHandler(handler)
    _CONSOLE_HANDLER = handler


def configure_stdlib_logging(*, log_path: Path, level: str = "INFO") -> None:
    """Configure Python stdlib logging to also write to `log_path`.

    Idempotent per-process: if already configured for the same file, no-op.
    """
    global _CONFIGURED_LOG_PATH, _FILE_HANDLER

    resolved = str(Path(log_path).resolve())
    if _CONFIGURED_LOG_PATH == resolved and _FILE_HANDLER is not None:
        return

    Path(resolved).parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    # Replace the previously installed file handler when switching paths.
    if _FILE_HANDLER is not None:
        root.removeHandler(_FILE_HANDLER)
        _FILE_HANDLER.close()
        _FILE_HANDLER = None

    fh = logging.FileHandler(resolved, encoding="utf-8")
    fh.setLevel(_level_from_name(level))
    fh.setFormatter(logging.Formatter(_FILE_FORMAT))
    root.addHandler(fh)

    _FILE_HANDLER = fh
    _CONFIGURED_LOG_PATH = resolved


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: remove the handlers installed by this module."""
    global _CONFIGURED_LOG_PATH, _FILE_HANDLER, _CONSOLE_HANDLER
    root = logging.getLogger()
    for h in (_FILE_HANDLER, _CONSOLE_HANDLER):
        if h is None:
            continue
        root.removeHandler(h)
        h.close()
    _CONFIGURED_LOG_PATH = None
    _FILE_HANDLER = None
    _CONSOLE_HANDLER = None


__all__ = [
    "configure_console_logging",
    "configure_stdlib_logging",
    "reset_stdlib_logging_for_tests",
]
