"""
Token bucket rate limiter shared by the comic fetch workers.
"""
import threading
import time

from xkcd_search.common.config import DEFAULT_RATE_INTERVAL
from xkcd_search.common.errors import RateLimiterCancelled


class RateLimiter:
    """
    Grants at most one slot per interval, with an initial burst capacity.

    Safe to share between threads: every call to wait() reserves exactly one
    token under the lock and then sleeps outside of it until the reserved
    slot comes up.
    """
    def __init__(self, interval=DEFAULT_RATE_INTERVAL, burst=1, clock=time.monotonic):
        if burst < 1:
            raise ValueError(f"burst must be at least 1, got {burst}")
        self.interval = interval
        self.burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._last = clock()
        self._seq = 0
        self._lock = threading.Lock()

    def _reserve(self):
        """Take one token and return (delay, reservation number)."""
        with self._lock:
            now = self._clock()
            elapsed = max(0.0, now - self._last)
            self._tokens = min(float(self.burst), self._tokens + elapsed / self.interval)
            self._last = now
            self._tokens -= 1
            self._seq += 1
            delay = -self._tokens * self.interval if self._tokens < 0 else 0.0
            return delay, self._seq

    def _release(self, seq):
        # Only the newest reservation can hand its token back; later ones
        # were already scheduled behind it.
        with self._lock:
            if seq == self._seq:
                self._tokens += 1

    def wait(self, cancel_event=None):
        """Block until the next permitted slot.

        Args:
            cancel_event: optional threading.Event; setting it aborts the wait.

        Raises:
            RateLimiterCancelled: cancel_event was set before a slot was granted.
        """
        if cancel_event is not None and cancel_event.is_set():
            raise RateLimiterCancelled("rate limiter wait cancelled")
        if self.interval <= 0:
            return

        delay, seq = self._reserve()
        if delay <= 0:
            return
        if cancel_event is None:
            time.sleep(delay)
            return
        if cancel_event.wait(delay):
            self._release(seq)
            raise RateLimiterCancelled("rate limiter wait cancelled")
