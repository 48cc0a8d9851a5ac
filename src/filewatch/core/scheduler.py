"""Poll scheduler - runs the per-tick check at a fixed interval."""
import threading
import time
import logging
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class PollScheduler(threading.Thread):
    """
    Background thread calling tick() every interval_ms milliseconds.

    The first tick happens one interval after start(). Ticks run on this
    thread only, so they never overlap; a tick that overruns the interval
    delays the next one instead of piling up. stop() takes effect between
    ticks. An exception from tick() ends the loop and is kept in `error`.
    """

    def __init__(
        self,
        interval_ms: int,
        tick: Callable[[], object],
        on_error: Optional[Callable[[BaseException], None]] = None,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be greater than 0, got {interval_ms}")

        super().__init__(daemon=True)
        self.name = "PollScheduler"
        self.interval_ms = interval_ms
        self.tick = tick
        self.on_error = on_error
        self.stop_event = stop_event or threading.Event()
        self.finished = threading.Event()
        self.clock = clock
        self.error: Optional[BaseException] = None
        self.ticks = 0

    @property
    def interval(self) -> float:
        return self.interval_ms / 1000.0

    def run(self) -> None:
        """Main scheduling loop."""
        logger.debug(f"{self.name} started ({self.interval_ms}ms)")
        next_due = self.clock() + self.interval

        try:
            while not self.stop_event.wait(max(0.0, next_due - self.clock())):
                try:
                    self.tick()
                except Exception as e:
                    logger.debug(f"{self.name} tick failed: {e}")
                    self.error = e
                    if self.on_error is not None:
                        self.on_error(e)
                    return

                self.ticks += 1
                next_due += self.interval
                now = self.clock()
                if next_due < now:
                    logger.debug(f"{self.name} tick overran the interval, rescheduling")
                    next_due = now
        finally:
            self.finished.set()
            logger.debug(f"{self.name} stopped after {self.ticks} ticks")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop scheduling and wait for the tick in progress, if any."""
        self.stop_event.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout=timeout)

    @property
    def failed(self) -> bool:
        return self.error is not None
