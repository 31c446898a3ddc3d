import logging
import threading
from collections import Counter
from typing import Dict, Optional

from .retry import Outcome, OutcomeKind

logger = logging.getLogger(__name__)
# Successes get their own logger so the CLI can send them to stdout
results_logger = logging.getLogger("fastscan.results")


class ResultSink:
    """
    Thread-safe tally and log of terminal outcomes.

    Workers call record() concurrently without any locking of their own.
    Counters are only ever changed under the internal lock and log lines
    go through logging, which serialises writes per handler.
    """

    def __init__(self, show_failures: bool = False,
                 log: Optional[logging.Logger] = None,
                 results_log: Optional[logging.Logger] = None):
        self.show_failures = show_failures
        self.log = log or logger
        self.results_log = results_log or results_logger
        self._lock = threading.Lock()
        self._counts = Counter()

    @property
    def successes(self) -> int:
        with self._lock:
            return self._counts[OutcomeKind.SUCCESS]

    def counts(self) -> Dict[OutcomeKind, int]:
        with self._lock:
            return {kind: self._counts[kind] for kind in OutcomeKind}

    def _increment(self, kind: OutcomeKind) -> int:
        with self._lock:
            self._counts[kind] += 1
            return self._counts[kind]

    def success(self, target: str, banner: bytes):
        self._increment(OutcomeKind.SUCCESS)
        self.results_log.info("SUCCESS %s %r", target, banner)

    def fail(self, target: str, outcome: Outcome):
        """Expected failures: refused or timed out."""
        self._increment(outcome.kind)
        if self.show_failures:
            self.log.info("FAIL %s %s", target, outcome.error)

    def error(self, target: str, message: str):
        self._increment(OutcomeKind.OTHER_ERROR)
        self.log.error("ERROR %s %s", target, message)

    def record(self, target: str, outcome: Outcome):
        if outcome.kind is OutcomeKind.SUCCESS:
            self.success(target, outcome.banner)
        elif outcome.kind in (OutcomeKind.REFUSED, OutcomeKind.TIMED_OUT):
            self.fail(target, outcome)
        elif outcome.kind is OutcomeKind.OTHER_ERROR:
            self.error(target, outcome.error)
        else:
            raise ValueError(f"{outcome.kind} is not a terminal outcome")
