"""Time budget tests."""

from __future__ import annotations

import pytest

from lint_doctor.timer import BudgetExceededError, Timer
from tests.helpers_backend import FakeClock


def test_timer_reports_elapsed_and_remaining() -> None:
    clock = FakeClock(start=10.0)
    timer = Timer.start(5.0, clock=clock)
    clock.advance(2.0)

    assert timer.elapsed() == pytest.approx(2.0)
    assert timer.remaining() == pytest.approx(3.0)
    timer.check_timeout()


def test_timer_raises_once_budget_is_exceeded() -> None:
    clock = FakeClock()
    timer = Timer.start(1.0, clock=clock)
    clock.advance(1.0)
    timer.check_timeout()

    clock.advance(0.5)
    with pytest.raises(BudgetExceededError, match="time budget of 1s exceeded"):
        timer.check_timeout()
    assert timer.remaining() == 0.0


def test_budget_exceeded_is_a_timeout_error() -> None:
    assert issubclass(BudgetExceededError, TimeoutError)


@pytest.mark.parametrize("budget", [0, -1.5])
def test_timer_rejects_non_positive_budget(budget: float) -> None:
    with pytest.raises(ValueError, match="budget_seconds must be positive"):
        Timer.start(budget)
