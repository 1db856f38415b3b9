"""Per-client request quotas.

Counters live in process memory, so each worker process enforces its own
quota. Running several workers behind a load balancer needs a shared store
(e.g. Redis) behind the same ``consume`` contract.
"""

import math
import threading
import time
from typing import Callable, Dict, Mapping, NamedTuple, Optional

from .errors import RateLimitError
from .logging import get_logger

log = get_logger(__name__)

# Checked in order; the first one present wins.
CLIENT_IP_HEADERS = [
    "x-forwarded-for",
    "x-real-ip",
    "cf-connecting-ip",
    "x-client-ip",
    "x-cluster-client-ip",
    "x-forwarded",
    "forwarded-for",
    "forwarded",
]

UNKNOWN_CLIENT = "0.0.0.0"


def client_identity(headers: Mapping[str, str], fallback: Optional[str] = None) -> str:
    """Resolve the client address a request should be counted against."""
    for name in CLIENT_IP_HEADERS:
        value = headers.get(name)
        if value:
            first = value.split(",")[0].strip()
            if first:
                return first
    return fallback or UNKNOWN_CLIENT


class RateLimitStatus(NamedTuple):
    remaining: int
    reset_after: float


class _Window:
    __slots__ = ("count", "reset_at")

    def __init__(self, reset_at: float) -> None:
        self.count = 0
        self.reset_at = reset_at


class FixedWindowRateLimiter:
    """Allow ``max_requests`` per identity in windows of ``window_seconds``.

    A window opens on an identity's first request and closes
    ``window_seconds`` later.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def consume(self, identity: str, cost: int = 1) -> RateLimitStatus:
        """Charge ``cost`` against ``identity``'s quota.

        Raises:
            RateLimitError: the quota for the current window is used up.
        """
        with self._lock:
            now = self._clock()
            window = self._windows.get(identity)
            if window is None or now >= window.reset_at:
                self._prune(now)
                window = _Window(now + self.window_seconds)
                self._windows[identity] = window

            reset_after = window.reset_at - now
            if window.count + cost > self.max_requests:
                log.warning(
                    "rate_limit_exceeded",
                    identity=identity,
                    retry_after=round(reset_after, 1),
                )
                raise RateLimitError(retry_after=max(1, math.ceil(reset_after)))

            window.count += cost
            return RateLimitStatus(self.max_requests - window.count, reset_after)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now >= w.reset_at]
        for k in expired:
            del self._windows[k]
