"""Data model for the change-detection loop."""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


FINGERPRINT_BITS = 128


@dataclass(frozen=True)
class WatchTarget:
    """The file being monitored. Fixed for the lifetime of a watcher."""
    path: Path

    def __post_init__(self):
        object.__setattr__(self, "path", Path(self.path))

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class Fingerprint:
    """128-bit digest of a file's full byte content."""
    value: int

    def __post_init__(self):
        if not 0 <= self.value < (1 << FINGERPRINT_BITS):
            raise ValueError(f"Fingerprint out of range: {self.value!r}")

    @classmethod
    def from_digest(cls, digest: bytes) -> "Fingerprint":
        if len(digest) * 8 != FINGERPRINT_BITS:
            raise ValueError(f"Expected a {FINGERPRINT_BITS}-bit digest, got {len(digest) * 8} bits")
        return cls(int.from_bytes(digest, "big"))

    @property
    def hex(self) -> str:
        """Fixed-width rendering: 0x followed by 32 hex digits."""
        return f"{self.value:#034x}"

    def __str__(self) -> str:
        return self.hex


@dataclass
class PollState:
    """State carried across poll ticks, owned by a single ChangeDetector."""
    fingerprint: Optional[Fingerprint] = None
    force_backup: bool = False

    @property
    def has_baseline(self) -> bool:
        return self.fingerprint is not None


@dataclass(frozen=True)
class BackupArtifact:
    """A backup copy written for one detected change."""
    source: Path
    path: Path
    timestamp: str


class ChangeKind(str, Enum):
    """Why a backup was made."""
    STARTING = "starting"
    CHANGED = "changed"


@dataclass(frozen=True)
class ChangeEvent:
    """One backup action taken by the detector."""
    kind: ChangeKind
    timestamp: str
    fingerprint: Fingerprint
    artifact: BackupArtifact
    previous: Optional[Fingerprint] = field(default=None, compare=False)

    @property
    def label(self) -> str:
        if self.kind is ChangeKind.STARTING:
            return "Making a starting backup."
        return "File changed!"

    def describe(self) -> str:
        return f"{self.label} {self.timestamp}: {self.fingerprint.hex}"
