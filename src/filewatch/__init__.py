"""Watch a file and make backups whenever a change is detected."""

__version__ = "0.1.0"
