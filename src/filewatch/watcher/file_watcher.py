"""File watcher - polls one file and backs it up whenever it changes."""
import threading
import time
import logging
from pathlib import Path
from typing import Iterable, Optional

from filewatch.config import Config, get_config
from filewatch.core import BackupWriter, ChangeDetector, PollScheduler
from filewatch.core.detector import Listener


logger = logging.getLogger(__name__)


class FileWatcher:
    """Watches a single file for content changes and writes backups."""

    def __init__(
        self,
        target: Path,
        config: Optional[Config] = None,
        listeners: Iterable[Listener] = (),
    ):
        config = config or get_config()

        self.config = config
        self.target = Path(target)
        self.detector = ChangeDetector(
            self.target,
            writer=BackupWriter(suffix=config.backup.suffix, atomic=config.backup.atomic),
            starting_backup=config.watch.starting_backup,
            quiet=config.watch.quiet,
            chunk_size=config.hasher.chunk_size,
            key=config.hasher.key_bytes(),
            listeners=listeners,
        )
        self._failed = threading.Event()
        self._scheduler: Optional[PollScheduler] = None
        self._started = False

    def start(self) -> None:
        """
        Take the startup observation, then start polling.

        The startup observation either writes the starting backup or records
        the baseline fingerprint. Its errors propagate before any thread starts.
        """
        if self._started:
            return

        self.detector.check()

        self._failed.clear()
        self._scheduler = PollScheduler(
            self.config.watch.interval_ms,
            self.detector.check,
            on_error=self._on_error,
        )
        self._scheduler.start()
        self._started = True
        logger.info(f"Watching file: {self.target} (every {self.config.watch.interval_ms}ms)")

    def stop(self) -> None:
        """Stop polling."""
        if not self._started:
            return

        self._scheduler.stop()
        self._started = False
        logger.info("File watcher stopped")

    def wait(self, stop_event: threading.Event, timeout: Optional[float] = None) -> bool:
        """
        Block until stop_event is set or a tick fails.

        Returns:
            True if stop_event was set, False on timeout

        Raises:
            The tick's error (HashingError, BackupError) if polling failed
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._failed.is_set():
            if stop_event.wait(0.1):
                return True
            if deadline is not None and time.monotonic() >= deadline:
                return False
        raise self.error

    def run(self, stop_event: threading.Event) -> None:
        """Start, block until stopped or failed, and always stop."""
        self.start()
        try:
            self.wait(stop_event)
        finally:
            self.stop()

    def _on_error(self, error: BaseException) -> None:
        logger.debug(f"Polling {self.target} failed: {error}")
        self._failed.set()

    @property
    def error(self) -> Optional[BaseException]:
        return self._scheduler.error if self._scheduler else None

    @property
    def is_running(self) -> bool:
        return self._started and not self._failed.is_set()
