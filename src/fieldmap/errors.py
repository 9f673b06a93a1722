# fieldmap/errors.py

from __future__ import annotations


class MapError(Exception):
    """Base class for errors that abort a mapping call."""


class ConstructionError(MapError):
    """
    The destination type could not be instantiated with zero arguments.

    Always raised ``from`` the underlying failure, so ``__cause__`` holds
    the underlying exception.
    """

    def __init__(self, destination_type: type, message: str) -> None:
        super().__init__(f"Cannot construct {destination_type.__qualname__}: {message}")
        self.destination_type = destination_type


class EmbeddedJsonError(MapError):
    """A JSON-bearing source value is malformed or not JSON at all."""

    def __init__(self, message: str, *, source_field: str | None = None) -> None:
        super().__init__(message)
        self.source_field = source_field


class DescriptorTableError(MapError):
    """A declarative descriptor table (YAML) is structurally invalid."""
