"""Exception hierarchy for protoclass.

All protoclass exceptions inherit from ProtoclassError, allowing catch-all handling:

    try:
        Worker = create_class(config)
    except ProtoclassError as e:
        print(f"protoclass error: {e}")

Exception hierarchy:
    ProtoclassError (base)
    ├── ConfigError          - Invalid property or class configuration
    │   └── UnknownType      - Kind that cannot be resolved to a descriptor
    ├── TypeMismatch         - Value rejected by a kind's validate-and-coerce rule
    └── InvalidSignature     - Generated method called with unrecognized arguments

A load() that finds no row is not an error: it returns None.
Failures raised by the query service pass through unchanged.
"""

from __future__ import annotations

from typing import Any


class ProtoclassError(Exception):
    """Base exception for all protoclass-related errors."""


class ConfigError(ProtoclassError, ValueError):
    """Raised when a property or class configuration is invalid."""


class UnknownType(ConfigError):
    """Raised when a kind cannot be resolved in the type registry."""


class TypeMismatch(ProtoclassError, TypeError):
    """Raised when a written value does not satisfy the declared kind."""

    def __init__(
        self,
        message: str,
        *,
        property_name: str | None = None,
        expected: str | None = None,
        received: Any = None,
    ):
        super().__init__(message)
        self.property_name = property_name
        self.expected = expected
        self.received = received


class InvalidSignature(ProtoclassError, TypeError):
    """Raised when a generated method is called with an unsupported argument shape."""


__all__ = [
    "ProtoclassError",
    "ConfigError",
    "UnknownType",
    "TypeMismatch",
    "InvalidSignature",
]
