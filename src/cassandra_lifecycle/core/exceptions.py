from __future__ import annotations

from typing import Any, Dict, Mapping


class LifecycleError(Exception):
    """Base exception for the Cassandra lifecycle controller."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigurationError(LifecycleError, ValueError):
    """Raised when the server config file or controller settings are invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LifecycleError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class EnvironmentPreparationError(LifecycleError, RuntimeError):
    """Raised when the environment cannot be prepared for a fresh server.

    Covers lookup-root registration and data directory cleanup.
    """

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LifecycleError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class InitializationError(LifecycleError, RuntimeError):
    """Raised when the server object fails to initialize."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LifecycleError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class ManagementUnreachableError(LifecycleError, TimeoutError):
    """Raised when a bounded schema-load wait gives up on the management interface."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LifecycleError.__init__(self, message, context=context)
        TimeoutError.__init__(self, message)


__all__ = [
    "LifecycleError",
    "ConfigurationError",
    "EnvironmentPreparationError",
    "InitializationError",
    "ManagementUnreachableError",
]
