import errno
import socket
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .config import RETRY_WAIT
from .utils import secure_randbelow


class OutcomeKind(Enum):
    SUCCESS = "success"
    REFUSED = "refused"
    TIMED_OUT = "timed_out"
    NO_ROUTE_TO_HOST = "no_route_to_host"
    OTHER_ERROR = "other_error"


@dataclass(frozen=True)
class Outcome:
    """Result of one connection attempt against a single port."""
    kind: OutcomeKind
    banner: bytes = b""
    error: str = ""

    @property
    def terminal(self) -> bool:
        return self.kind is not OutcomeKind.NO_ROUTE_TO_HOST

    @classmethod
    def success(cls, banner: bytes) -> "Outcome":
        return cls(OutcomeKind.SUCCESS, banner=banner)


class RetryPolicy:
    """
    Classifies failed attempts and paces retries of "no route to host".

    Unreachable routes are often transient on busy LANs (ARP tables
    filling up), so with retries on the same port is tried again after
    a random pause in [0, max_wait). There is no attempt cap.
    """

    def __init__(self, retry: bool = False, max_wait: float = RETRY_WAIT,
                 sleep: Callable[[float], None] = time.sleep,
                 randbelow: Callable[[int], int] = secure_randbelow):
        self.retry = retry
        self.max_wait = max_wait
        self._sleep = sleep
        self._randbelow = randbelow

    @staticmethod
    def _matches(message: str, *suffixes: str) -> bool:
        return any(message.endswith(s) for s in suffixes)

    def classify(self, exc: BaseException) -> Outcome:
        message = str(exc)
        lowered = message.lower()

        if (getattr(exc, "errno", None) == errno.EHOSTUNREACH
                or self._matches(lowered, "no route to host")):
            if self.retry:
                return Outcome(OutcomeKind.NO_ROUTE_TO_HOST, error=message)
            return Outcome(OutcomeKind.OTHER_ERROR, error=message)

        if (isinstance(exc, ConnectionRefusedError)
                or self._matches(lowered, "connection refused")):
            return Outcome(OutcomeKind.REFUSED, error=message)

        if (isinstance(exc, (socket.timeout, TimeoutError))
                or self._matches(lowered, "timed out", "i/o timeout")):
            return Outcome(OutcomeKind.TIMED_OUT, error=message or "timed out")

        return Outcome(OutcomeKind.OTHER_ERROR, error=message or type(exc).__name__)

    def backoff_duration(self) -> float:
        # Drawn in nanoseconds so the pause isn't quantised to whole seconds
        ns = self._randbelow(int(self.max_wait * 1_000_000_000))
        return ns / 1_000_000_000

    def backoff(self) -> float:
        """Sleeps for a random duration and returns it."""
        delay = self.backoff_duration()
        self._sleep(delay)
        return delay
