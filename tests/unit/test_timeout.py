"""Unit tests for deadline scopes."""

import time

import pytest

from pressroom.contexts.printing import DeadlineExceeded
from pressroom.utils.timeout import Deadline, duration, scope


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.mark.unit
def test_remaining_counts_down():
    clock = FakeClock()
    deadline = Deadline(5.0, clock=clock)

    assert deadline.remaining() == pytest.approx(5.0)
    clock.now += 2.0
    assert deadline.remaining() == pytest.approx(3.0)
    clock.now += 10.0
    assert deadline.remaining() == 0.0
    assert deadline.expired


@pytest.mark.unit
def test_negative_budget_is_already_expired():
    assert Deadline(-1).expired
    assert duration(-3) == 0.0
    assert duration(None) == 0.0


@pytest.mark.unit
def test_cancel_leaves_no_time():
    deadline = Deadline(60)
    deadline.cancel()

    assert deadline.cancelled
    assert deadline.remaining() == 0.0
    assert deadline.expired


@pytest.mark.unit
def test_scope_cancels_on_exit():
    with scope(60) as deadline:
        assert not deadline.expired

    assert deadline.cancelled


@pytest.mark.unit
def test_scope_cancels_on_error():
    with pytest.raises(RuntimeError):
        with scope(60) as deadline:
            raise RuntimeError("boom")

    assert deadline.cancelled


@pytest.mark.unit
def test_scope_never_outlives_parent():
    parent = Deadline(0.5)

    with scope(60, parent=parent) as deadline:
        assert deadline.remaining() <= 0.5


@pytest.mark.unit
def test_sleep_is_bounded_by_deadline():
    deadline = Deadline(0.1)

    start = time.monotonic()
    completed = deadline.sleep(5)

    assert completed is False
    assert time.monotonic() - start < 1.0


@pytest.mark.unit
def test_sleep_completes_within_budget():
    deadline = Deadline(5)

    assert deadline.sleep(0.05) is True
    assert deadline.sleep(0) is True


@pytest.mark.unit
def test_check_passes_while_time_remains():
    Deadline(5).check("merge.print")


@pytest.mark.unit
def test_check_raises_tagged_deadline_exceeded():
    clock = FakeClock()
    deadline = Deadline(1.0, clock=clock)
    clock.now += 1.5

    with pytest.raises(DeadlineExceeded) as exc_info:
        deadline.check("chrome.export")

    assert exc_info.value.op == "chrome.export"
    assert "deadline elapsed" in str(exc_info.value)


@pytest.mark.unit
def test_check_after_cancel():
    with scope(60) as deadline:
        pass

    with pytest.raises(DeadlineExceeded, match="cancelled"):
        deadline.check("chrome.navigate")
