from __future__ import annotations


class DuplicityError(Exception):
    """Base class for errors raised by the duplicity orchestration layer."""


class ToolNotFoundError(DuplicityError):
    """Raised when the duplicity binary is absent or its version cannot be probed."""


class InvalidArgumentError(DuplicityError, ValueError):
    """Raised for caller-fixable input, before any process is spawned."""


class DirectoryNotFoundError(InvalidArgumentError):
    """Raised when a directory path does not exist."""


class DirectoryNotReadableError(InvalidArgumentError):
    """Raised when a directory exists but cannot be read."""


class DirectoryNotEmptyError(InvalidArgumentError):
    """Raised when a restore target already contains entries."""


class ConfigurationError(DuplicityError):
    """Raised when the backup configuration is missing or invalid."""


class UnsupportedOptionWarning(UserWarning):
    """Emitted when an enabled option needs a newer duplicity than the one installed."""
