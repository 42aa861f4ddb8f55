"""Error types for dir-mon."""
from __future__ import annotations


class DirMonError(Exception):
    """Base class for errors that end the process."""

    exit_code = 1


class ConfigurationError(DirMonError):
    """Missing, invalid or conflicting input."""


class MissingArgument(ConfigurationError):
    pass


class InvalidDirectory(ConfigurationError):
    pass


class InvalidArgument(ConfigurationError):
    def __init__(self, flag: str, message: str) -> None:
        super().__init__(f"{flag}: {message}" if flag else message)
        self.flag = flag


class ConflictingOptions(ConfigurationError):
    pass


class FatalScanError(DirMonError):
    """The target directory could not be read."""


class LogInitError(DirMonError):
    """The log directory or log file could not be created."""
