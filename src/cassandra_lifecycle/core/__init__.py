"""Core library: lifecycle controller, server object, settings, errors."""
