"""Change detector - decides once per tick whether the watched file changed."""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional

from filewatch.errors import HashingError
from .backup import BackupWriter
from .hasher import DEFAULT_CHUNK_SIZE, hash_file
from .models import ChangeEvent, ChangeKind, Fingerprint, PollState, WatchTarget
from .timestamps import format_timestamp


logger = logging.getLogger(__name__)

Listener = Callable[[ChangeEvent], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChangeDetector:
    """
    Holds the last-known fingerprint of one file and backs it up on change.

    The first observation either forces a starting backup or silently becomes
    the baseline. After that, every fingerprint mismatch produces exactly one
    backup. Not thread-safe: check() must only ever run from one thread at a
    time, which the scheduler guarantees.
    """

    def __init__(
        self,
        target: Path,
        writer: Optional[BackupWriter] = None,
        starting_backup: bool = False,
        quiet: bool = False,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        key: bytes = b"",
        clock: Callable[[], datetime] = utc_now,
        listeners: Iterable[Listener] = (),
    ):
        self.target = target if isinstance(target, WatchTarget) else WatchTarget(target)
        self.writer = writer or BackupWriter()
        self.quiet = quiet
        self.chunk_size = chunk_size
        self.key = key
        self.clock = clock
        self.listeners: list[Listener] = list(listeners)
        self.state = PollState(force_backup=starting_backup)
        self._last_timestamp: Optional[str] = None

    @property
    def fingerprint(self) -> Optional[Fingerprint]:
        return self.state.fingerprint

    def add_listener(self, listener: Listener) -> None:
        self.listeners.append(listener)

    def check(self) -> Optional[ChangeEvent]:
        """
        Run one tick.

        Returns:
            The ChangeEvent if a backup was made, None otherwise

        Raises:
            HashingError: the file could not be read
            BackupError: the backup could not be written
        """
        current = hash_file(self.target.path, self.chunk_size, self.key)
        if current is None:
            raise HashingError(self.target.path)

        state = self.state
        if not state.has_baseline:
            if not state.force_backup:
                state.fingerprint = current
                logger.debug(f"Baseline for {self.target}: {current.hex}")
                return None
            kind = ChangeKind.STARTING
        elif current != state.fingerprint:
            kind = ChangeKind.CHANGED
        else:
            return None

        timestamp = self._next_timestamp()
        artifact = self.writer.write(self.target.path, timestamp)

        event = ChangeEvent(
            kind=kind,
            timestamp=timestamp,
            fingerprint=current,
            artifact=artifact,
            previous=state.fingerprint,
        )
        state.fingerprint = current
        state.force_backup = False

        if not self.quiet:
            logger.info(event.describe())
        logger.debug(f"Backed up {self.target} to {artifact.path}")

        for listener in self.listeners:
            listener(event)
        return event

    def _next_timestamp(self) -> str:
        # Never go backwards if the wall clock is stepped back.
        timestamp = format_timestamp(self.clock())
        if self._last_timestamp is not None and timestamp < self._last_timestamp:
            timestamp = self._last_timestamp
        self._last_timestamp = timestamp
        return timestamp
