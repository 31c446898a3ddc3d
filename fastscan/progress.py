import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .config import PROGRESS_INTERVAL

logger = logging.getLogger(__name__)


@dataclass
class ProgressSnapshot:
    index: int
    total: int
    elapsed: float
    processed: int
    open_count: int
    remaining: Optional[timedelta] = None
    completion: Optional[datetime] = None

    @property
    def rate(self) -> float:
        """Ports per minute over the last interval."""
        return self.processed / (self.elapsed / 60)

    def describe(self) -> str:
        remaining = str(self.remaining) if self.remaining is not None else "forever"
        completion = self.completion.strftime("%H:%M:%S") if self.completion else "never"
        return (f"INFO Working on port {self.index + 1}/{self.total} "
                f"({self.rate:0.2f} ports/min, {self.open_count} open, "
                f"{remaining} remaining, est. completion: {completion})")


class ProgressReporter:
    """
    Logs throughput and an ETA every `interval` seconds.

    Driven from the producer loop, so there is no thread of its own:
    update() is called after each port is handed off and only does work
    once the interval has passed.
    """

    def __init__(self, total: int, open_count: Callable[[], int],
                 interval: float = PROGRESS_INTERVAL,
                 clock: Callable[[], float] = time.monotonic,
                 wallclock: Callable[[], datetime] = datetime.now):
        self.total = total
        self.open_count = open_count
        self.interval = interval
        self._clock = clock
        self._wallclock = wallclock
        self.last_time = clock()
        self.last_index = 0

    def snapshot(self, index: int, now: float) -> ProgressSnapshot:
        elapsed = now - self.last_time
        processed = index - self.last_index
        snap = ProgressSnapshot(
            index=index,
            total=self.total,
            elapsed=elapsed,
            processed=processed,
            open_count=self.open_count(),
        )
        if processed > 0:
            per_port = elapsed / processed
            snap.remaining = timedelta(seconds=(self.total - index) * per_port)
            snap.completion = self._wallclock() + snap.remaining
        return snap

    def update(self, index: int) -> Optional[ProgressSnapshot]:
        """
        `index` is the zero-based position of the port just handed off.
        Returns the snapshot when one was logged.
        """
        now = self._clock()
        if now - self.last_time <= self.interval:
            return None

        snap = self.snapshot(index, now)
        logger.info(snap.describe())
        self.last_time = now
        self.last_index = index
        return snap
