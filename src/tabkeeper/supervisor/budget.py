"""Bounded restart budget for the watchdog.

Each scheduled restart consumes one attempt. Once the attempts are used up
the watchdog stops for good (fail-stop) instead of respawning forever.
The counter is never reset unless ``reset_after_uptime`` is given.
"""
import collections
import time


class RestartBudget:
    """Counts restart attempts and remembers the recent exit history."""

    def __init__(self, max_attempts: int = 5, *, reset_after_uptime: float | None = None,
                 clock=time.monotonic, history: int = 20):
        self.max_attempts = max_attempts
        self.reset_after_uptime = reset_after_uptime
        self._clock = clock
        self._attempts = 0
        self._started_at: float | None = None
        self._exits: collections.deque[tuple[float, int | None]] = collections.deque(maxlen=history)

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def remaining(self) -> int:
        return max(0, self.max_attempts - self._attempts)

    @property
    def exhausted(self) -> bool:
        return self._attempts >= self.max_attempts

    def consume(self) -> bool:
        """Take one attempt. Returns False (and takes nothing) when exhausted."""
        if self.exhausted:
            return False
        self._attempts += 1
        return True

    def note_started(self):
        """Record that a child came up."""
        self._started_at = self._clock()

    def note_exit(self, returncode: int | None):
        """Record a child exit; resets the counter after a long enough uptime."""
        now = self._clock()
        self._exits.append((now, returncode))
        started, self._started_at = self._started_at, None
        if self.reset_after_uptime is None or started is None:
            return
        if now - started >= self.reset_after_uptime:
            self._attempts = 0

    @property
    def stats(self) -> dict:
        """Return attempt counts and exit codes for logging."""
        codes: dict[str, int] = {}
        for _, code in self._exits:
            key = str(code)
            codes[key] = codes.get(key, 0) + 1
        return {
            "attempts": self._attempts,
            "max_attempts": self.max_attempts,
            "remaining": self.remaining,
            "exit_codes": codes,
        }
