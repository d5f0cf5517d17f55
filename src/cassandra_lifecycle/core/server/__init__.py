"""Server-side pieces: the configuration loader and the server object.

The lifecycle controller treats these as the embedded server library: it
registers a lookup root, loads a :class:`DatabaseDescriptor`, and drives an
:class:`EmbeddedServer` through ``init/start/stop/destroy``.
"""

from .daemon import (
    CASSANDRA_CONF_ENV,
    CassandraDaemon,
    DaemonFactory,
    EmbeddedServer,
    default_daemon_factory,
    resolve_executable,
)
from .descriptor import (
    CONFIG_FILENAME,
    DatabaseDescriptor,
    find_config,
    lookup_roots,
    register_lookup_root,
    reset_lookup_roots_for_tests,
)

__all__ = [
    "CASSANDRA_CONF_ENV",
    "CONFIG_FILENAME",
    "CassandraDaemon",
    "DaemonFactory",
    "DatabaseDescriptor",
    "EmbeddedServer",
    "default_daemon_factory",
    "find_config",
    "lookup_roots",
    "register_lookup_root",
    "reset_lookup_roots_for_tests",
    "resolve_executable",
]
