"""Top-level CLI commands (auto-discovered)."""
