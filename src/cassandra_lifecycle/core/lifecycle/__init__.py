"""Cassandra lifecycle management for integration-test runs.

Provides:
- Pre-flight validation of ``cassandra.yaml`` (:class:`ServerConfig`)
- A TCP liveness probe for already-running instances
- Clean-state preparation of commit log and data directories
- The start/stop state machine (:class:`CassandraLifecycleController`)
"""

from .cleanup import clean_dirs, delete_dir
from .controller import (
    CassandraLifecycleController,
    process_owner,
    register_exit_hook,
    reset_process_owner_for_tests,
)
from .models import LifecycleState, ServerConfig, ServerProcessHandle, ServerWorker
from .probe import (
    DEFAULT_MANAGEMENT_PORT,
    is_server_running,
    load_schema_url,
    wait_for_schema_load,
)

__all__ = [
    "CassandraLifecycleController",
    "DEFAULT_MANAGEMENT_PORT",
    "LifecycleState",
    "ServerConfig",
    "ServerProcessHandle",
    "ServerWorker",
    "clean_dirs",
    "delete_dir",
    "is_server_running",
    "load_schema_url",
    "process_owner",
    "register_exit_hook",
    "reset_process_owner_for_tests",
    "wait_for_schema_load",
]
