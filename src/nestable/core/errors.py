"""
Error taxonomy for the note store.

Every adapter translates storage-engine failures into one of these types and
attaches the operation context (which call, which identifier), so callers can
report a useful message without knowing anything about SQLite.
"""

from typing import Any


class NestableError(Exception):
    """Base class for every error raised by nestable."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class NotFoundError(NestableError):
    """Unknown note, blob, config key or nest file."""


class IntegrityViolation(NestableError):
    """The store rejected a write that would break referential integrity."""


class StoreIOError(NestableError):
    """The nest file could not be read or written (disk full, corruption, locking)."""


class SchemaMigrationError(NestableError):
    """The nest has an incompatible or partially applied schema."""


class InvalidQueryError(NestableError):
    """A full-text query could not be parsed by the index."""


class EditorError(NestableError):
    """The external editor could not be started or exited unsuccessfully."""
