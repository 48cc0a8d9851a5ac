"""Backup writer - copies the watched file to timestamped artifacts."""
import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO

from filewatch.errors import BackupError
from .models import BackupArtifact


logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = "bak"


def backup_path(source: Path, timestamp: str, attempt: int = 0, suffix: str = DEFAULT_SUFFIX) -> Path:
    """
    Build the artifact path for a backup of source.

    Args:
        source: Watched file
        timestamp: 17-digit timestamp of the detection
        attempt: Disambiguation counter, 0 for the plain name
        suffix: Artifact extension without the dot

    Returns:
        <source>.<timestamp>.<suffix>, or <source>.<timestamp>_<attempt:03d>.<suffix>
    """
    stamp = timestamp if attempt == 0 else f"{timestamp}_{attempt:03d}"
    source = Path(source)
    return source.with_name(f"{source.name}.{stamp}.{suffix}")


class BackupWriter:
    """Writes byte-identical copies of a file next to it."""

    def __init__(self, suffix: str = DEFAULT_SUFFIX, atomic: bool = True):
        if not suffix or "/" in suffix or os.sep in suffix:
            raise ValueError(f"Invalid backup suffix: {suffix!r}")
        self.suffix = suffix
        self.atomic = atomic

    def write(self, source: Path, timestamp: str) -> BackupArtifact:
        """
        Copy source to a new artifact for timestamp.

        An existing artifact is never overwritten: the destination is created
        exclusively, and if the plain name is taken the first free _001,
        _002, ... variant is used instead.

        Raises:
            BackupError: source unreadable or destination unwritable
        """
        source = Path(source)
        destination = backup_path(source, timestamp, 0, self.suffix)

        try:
            with open(source, "rb") as src:
                if self.atomic:
                    destination = self._copy_atomic(src, source, timestamp)
                else:
                    destination = self._copy_direct(src, source, timestamp)
        except OSError as e:
            raise BackupError(source, destination, e.strerror or str(e)) from e

        logger.debug(f"Backup written: {destination}")
        return BackupArtifact(source=source, path=destination, timestamp=timestamp)

    def _candidates(self, source: Path, timestamp: str):
        attempt = 0
        while True:
            candidate = backup_path(source, timestamp, attempt, self.suffix)
            if attempt:
                logger.warning(f"Backup name collision for {timestamp}, trying {candidate.name}")
            yield candidate
            attempt += 1

    def _copy_direct(self, src: BinaryIO, source: Path, timestamp: str) -> Path:
        """Copy straight into the first destination that can be created exclusively."""
        for candidate in self._candidates(source, timestamp):
            try:
                dst = open(candidate, "xb")
            except FileExistsError:
                continue
            with dst:
                shutil.copyfileobj(src, dst)
            return candidate

    def _copy_atomic(self, src: BinaryIO, source: Path, timestamp: str) -> Path:
        """Copy into a temp file in the destination directory, then link it into place."""
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{source.name}.", suffix=".tmp", dir=source.parent
        )
        try:
            with os.fdopen(fd, "wb") as dst:
                shutil.copyfileobj(src, dst)
            # link() fails on an existing name, unlike replace()
            for candidate in self._candidates(source, timestamp):
                try:
                    os.link(tmp_name, candidate)
                except FileExistsError:
                    continue
                return candidate
        finally:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass

    def list_backups(self, source: Path) -> list[Path]:
        """Existing artifacts for source, oldest first."""
        source = Path(source)
        pattern = re.compile(
            rf"{re.escape(source.name)}\.([0-9]{{17}})(?:_([0-9]+))?\.{re.escape(self.suffix)}"
        )
        directory = source.parent
        if not directory.is_dir():
            return []

        found = []
        for entry in directory.iterdir():
            match = pattern.fullmatch(entry.name)
            if match and entry.is_file():
                found.append((match.group(1), int(match.group(2) or 0), entry))
        return [entry for _, _, entry in sorted(found)]
