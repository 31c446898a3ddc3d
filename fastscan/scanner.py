import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Dict, List, Optional

from .config import PROGRESS_INTERVAL, ScanConfig
from .probe import grab_banner
from .progress import ProgressReporter
from .retry import Outcome, OutcomeKind, RetryPolicy
from .sink import ResultSink
from .utils import join_host_port

logger = logging.getLogger(__name__)


@dataclass
class ScanContext:
    """Per-scan state shared by the dispatcher and the final summary."""
    target: str
    started: float = field(default_factory=time.monotonic)

    def elapsed(self) -> float:
        return time.monotonic() - self.started


@dataclass
class ScanSummary:
    target: str
    ports: int
    duration: float
    counts: Dict[OutcomeKind, int]

    @property
    def open_count(self) -> int:
        return self.counts.get(OutcomeKind.SUCCESS, 0)

    @property
    def rate(self) -> float:
        """Ports per minute."""
        if self.duration <= 0:
            return 0.0
        return self.ports / (self.duration / 60)

    def describe(self) -> str:
        return (f"INFO Scanned {self.ports} ports in {timedelta(seconds=self.duration)} "
                f"({self.rate:0.2f} ports per minute), found {self.open_count} open")


class HandoffQueue:
    """
    Unbuffered single-producer handoff.

    put() blocks until a worker is actually waiting in get(), so at most
    one port per worker is ever in flight. close() wakes every worker
    with a None sentinel. A worker can abort() the producer with an
    exception, which put() and raise_if_aborted() re-raise.
    """

    def __init__(self, workers: int):
        self.workers = workers
        self._ready = threading.Semaphore(0)
        self._items = queue.Queue()
        self._error: Optional[BaseException] = None

    def put(self, item: int):
        self._ready.acquire()
        self.raise_if_aborted()
        self._items.put(item)

    def get(self) -> Optional[int]:
        self._ready.release()
        return self._items.get()

    def close(self):
        for _ in range(self.workers):
            self._items.put(None)

    def abort(self, exc: BaseException):
        self._error = exc
        # Wake the producer even if no worker is left to signal readiness
        self._ready.release()

    def raise_if_aborted(self):
        if self._error is not None:
            raise self._error


class PortScanner:
    """
    Scans a pre-shuffled list of ports on one host with a fixed pool of
    worker threads. The calling thread is the producer.
    """

    def __init__(self, config: ScanConfig, ports: List[int],
                 sink: Optional[ResultSink] = None,
                 policy: Optional[RetryPolicy] = None,
                 attempt: Callable[[str, int, bytearray, float], int] = grab_banner,
                 context: Optional[ScanContext] = None,
                 progress_interval: float = PROGRESS_INTERVAL):
        self.config = config
        self.ports = ports
        self.sink = sink or ResultSink(show_failures=config.show_failures)
        self.policy = policy or RetryPolicy(retry=config.retry_no_route)
        self.attempt = attempt
        self.context = context or ScanContext(config.target)
        self.progress_interval = progress_interval

    def scan_port(self, port: int, buf: bytearray) -> Outcome:
        """
        Tries a port until it reaches a terminal outcome and records it.
        Only "no route to host" (with retries on) loops back for another try.
        """
        target = join_host_port(self.config.target, port)
        while True:
            try:
                n = self.attempt(self.config.target, port, buf, self.config.timeout)
            except (OSError, OverflowError, ValueError) as e:
                outcome = self.policy.classify(e)
            else:
                outcome = Outcome.success(bytes(buf[:n]))

            if outcome.terminal:
                self.sink.record(target, outcome)
                return outcome

            logger.debug("Will retry %s after %r", target, outcome.error)
            self.policy.backoff()

    def _worker(self, handoff: HandoffQueue):
        # One buffer per worker, reused for every attempt
        buf = bytearray(self.config.banner_length)
        while True:
            port = handoff.get()
            if port is None:
                break
            try:
                self.scan_port(port, buf)
            except Exception as e:
                # Nothing per-port gets this far; EntropyError is the usual one
                handoff.abort(e)
                break

    def run(self) -> ScanSummary:
        """
        Feeds every port to the workers, waits for them to drain and
        returns the summary. Raises EntropyError if a worker couldn't
        draw a backoff duration.
        """
        handoff = HandoffQueue(self.config.parallelism)
        workers = [
            threading.Thread(target=self._worker, args=(handoff,),
                             name=f"fastscan-worker-{i}", daemon=True)
            for i in range(self.config.parallelism)
        ]
        for worker in workers:
            worker.start()

        reporter = ProgressReporter(len(self.ports), lambda: self.sink.successes,
                                    interval=self.progress_interval)

        try:
            for i, port in enumerate(self.ports):
                handoff.put(port)
                reporter.update(i)
        finally:
            handoff.close()

        logger.info("INFO Waiting for the workers to finish")
        for worker in workers:
            worker.join()
        handoff.raise_if_aborted()

        summary = ScanSummary(
            target=self.config.target,
            ports=len(self.ports),
            duration=self.context.elapsed(),
            counts=self.sink.counts(),
        )
        logger.info(summary.describe())
        return summary
