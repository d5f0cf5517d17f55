"""
cassandra-lifecycle - embedded Cassandra lifecycle for integration tests

Starts a single Cassandra server before an integration-test phase, optionally
keeps it running for the whole build session, and stops it afterwards.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
