from __future__ import annotations


class ReconnectPolicy:
    """Two-tier retry timing for the maker websocket.

    The first two attempts after a drop go out immediately; from then on
    every attempt waits ``delay`` seconds.  There is no retry limit.  The
    failure counter only goes back to zero through ``reset()``, which the
    transport calls once a connection actually opens.
    """

    IMMEDIATE_RETRIES = 1  # retry at once while failures <= this

    def __init__(self, delay: float = 1.0) -> None:
        if delay < 0:
            raise ValueError("reconnect delay must be >= 0")
        self.delay = float(delay)
        self.failures = 0

    def next_delay(self) -> float:
        """Seconds to wait before the next connect; counts the failure."""
        wait = self.delay if self.failures > self.IMMEDIATE_RETRIES else 0.0
        self.failures += 1
        return wait

    def reset(self) -> None:
        self.failures = 0
