"""Exception types raised by the collection and reading pipeline."""

from typing import Optional


class PMPError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(PMPError, ValueError):
    """Invalid core configuration (bad size string, malformed .pmprc, ...)."""


class TraversalError(PMPError):
    """The root directory could not be walked."""


class FileReadError(PMPError):
    """A file could not be read, possibly after several attempts."""

    def __init__(self, path: str, attempts: int, last_error: Optional[BaseException] = None):
        self.path = path
        self.attempts = attempts
        self.last_error = last_error
        plural = "attempt" if attempts == 1 else "attempts"
        super().__init__(f"Failed to read {path} after {attempts} {plural}: {last_error}")
