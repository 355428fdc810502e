import pytest

from portal_automation.framework.clock import Deadline, SystemClock
from testsuites.unit.fakes import FakeClock


def test_deadline_is_anchored_at_the_current_reading():
    clock = FakeClock(start=100.0)
    deadline = clock.compute_deadline(5)

    assert deadline == Deadline(start=100.0, timeout=5.0)
    assert deadline.at == 105.0


def test_remaining_counts_down_and_never_goes_negative():
    clock = FakeClock()
    deadline = clock.compute_deadline(2.0)

    clock.advance(0.5)
    assert clock.remaining(deadline) == pytest.approx(1.5)
    assert not clock.expired(deadline)

    clock.advance(5.0)
    assert clock.remaining(deadline) == 0.0
    assert clock.expired(deadline)


def test_deadline_is_not_expired_exactly_at_its_instant():
    clock = FakeClock()
    deadline = clock.compute_deadline(1.0)
    clock.advance(1.0)

    assert clock.remaining(deadline) == 0.0
    assert not clock.expired(deadline)


def test_zero_timeout_is_allowed():
    clock = FakeClock(start=3.0)
    assert clock.compute_deadline(0).at == 3.0


@pytest.mark.parametrize("timeout", [-1, -0.001, None])
def test_negative_or_missing_timeout_is_rejected(timeout):
    with pytest.raises(ValueError):
        SystemClock().compute_deadline(timeout)


def test_system_clock_is_monotonic_and_rejects_negative_sleep():
    clock = SystemClock()
    first = clock.now()
    clock.sleep(0)
    assert clock.now() >= first

    with pytest.raises(ValueError):
        clock.sleep(-1)
