"""Exceptions raised by filewatch."""


class FileWatchError(Exception):
    """Base class for all filewatch errors."""


class ConfigurationError(FileWatchError):
    """Invalid command-line arguments or config file."""


class HashingError(FileWatchError):
    """The watched file could not be read and hashed."""

    def __init__(self, path, reason: str = "file is missing or unreadable"):
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to hash file {path}: {reason}")


class BackupError(FileWatchError):
    """A backup copy of the watched file could not be written."""

    def __init__(self, source, destination, reason: str):
        self.source = source
        self.destination = destination
        self.reason = reason
        super().__init__(f"Unable to copy a backup of file {source} to {destination}: {reason}")
