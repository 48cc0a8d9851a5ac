"""Change-detection core: hashing, detection, backups, scheduling."""
from .backup import BackupWriter, backup_path
from .detector import ChangeDetector
from .hasher import hash_file, hash_stream
from .models import BackupArtifact, ChangeEvent, ChangeKind, Fingerprint, PollState, WatchTarget
from .scheduler import PollScheduler
from .timestamps import format_timestamp, parse_timestamp

__all__ = [
    "BackupWriter", "backup_path", "ChangeDetector", "hash_file", "hash_stream",
    "BackupArtifact", "ChangeEvent", "ChangeKind", "Fingerprint", "PollState", "WatchTarget",
    "PollScheduler", "format_timestamp", "parse_timestamp",
]
