# ================================================================================
# Clock / Deadline Module
# ================================================================================
#
# Monotonic time source used by every polling loop in the framework.
#
# Waits compute their deadline once, from the clock, and never extend it.
# Tests substitute a virtual clock so that timing behaviour is deterministic.
#
# Usage:
#   clock = SystemClock()
#   deadline = clock.compute_deadline(5.0)
#   while clock.remaining(deadline) > 0:
#       clock.sleep(0.5)
#
# ================================================================================

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class Deadline:
    """
    Point in monotonic time after which a wait is over.

    Attributes:
        start: Clock reading when the wait began
        timeout: Requested timeout in seconds
    """
    start: float
    timeout: float

    @property
    def at(self) -> float:
        return self.start + self.timeout


def _check_non_negative(name: str, value: float) -> None:
    if value is None or value < 0:
        raise ValueError(f"{name} must be a non-negative number of seconds, got {value!r}")


class Clock:
    """Abstract time source. Subclasses provide now() and sleep()."""

    def now(self) -> float:
        raise NotImplementedError

    def sleep(self, interval: float) -> None:
        raise NotImplementedError

    def compute_deadline(self, timeout: float) -> Deadline:
        """
        Compute a deadline ``timeout`` seconds from now.

        Args:
            timeout: Seconds until the deadline, must be >= 0

        Returns:
            Deadline anchored at the current clock reading
        """
        _check_non_negative("timeout", timeout)
        return Deadline(start=self.now(), timeout=float(timeout))

    def remaining(self, deadline: Deadline) -> float:
        """Seconds left until the deadline, never negative."""
        return max(0.0, deadline.at - self.now())

    def expired(self, deadline: Deadline) -> bool:
        return self.now() > deadline.at


class SystemClock(Clock):
    """Real clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, interval: float) -> None:
        _check_non_negative("interval", interval)
        if interval:
            time.sleep(interval)


__all__ = [
    "Clock",
    "Deadline",
    "SystemClock",
]
