from __future__ import annotations

import logging
import shutil
from pathlib import Path

from cassandra_lifecycle.core.exceptions import EnvironmentPreparationError
from cassandra_lifecycle.core.server import DatabaseDescriptor

logger = logging.getLogger(__name__)


def delete_dir(path: Path) -> None:
    logger.info("Deleting directory: %s", path)
    path = Path(path)
    if not path.exists():
        return
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as exc:
        raise EnvironmentPreparationError(
            f"Failed to delete cassandra dir: {path}",
            context={"path": str(path)},
        ) from exc


def clean_dirs(descriptor: DatabaseDescriptor) -> None:
    """Remove the commit log and every data directory for a clean-state start."""
    logger.info("Cleaning Cassandra data directories...")
    delete_dir(descriptor.commitlog_directory)
    for location in descriptor.all_data_file_locations():
        delete_dir(location)


__all__ = ["clean_dirs", "delete_dir"]
