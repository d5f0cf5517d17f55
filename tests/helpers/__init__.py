"""Test helper modules for the cassandra-lifecycle test suite.

- cassandra_yaml: writes a cassandra.yaml (free port, tmp data dirs)
- fake_daemon: in-process server object bound to the configured port
- fake_launcher: executable stand-in for the ``cassandra`` launcher script
- management: non-HTTP listener in place of the MX4J interface
- timeouts: env-tunable timeouts and polling helpers
"""
