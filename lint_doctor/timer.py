"""Wall-clock budget tracking for engine stages."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field


class BudgetExceededError(TimeoutError):
    """Raised at a checkpoint once the time budget is spent."""


@dataclass(slots=True)
class Timer:
    """Elapsed time against a fixed budget, checked cooperatively."""

    budget_seconds: float
    clock: Callable[[], float] = time.monotonic
    started_at: float = field(init=False)

    def __post_init__(self) -> None:
        if self.budget_seconds <= 0:
            raise ValueError(f"budget_seconds must be positive, got {self.budget_seconds}")
        self.started_at = self.clock()

    @classmethod
    def start(cls, budget_seconds: float, *, clock: Callable[[], float] | None = None) -> Timer:
        if clock is None:
            return cls(budget_seconds)
        return cls(budget_seconds, clock=clock)

    def elapsed(self) -> float:
        return self.clock() - self.started_at

    def remaining(self) -> float:
        return max(0.0, self.budget_seconds - self.elapsed())

    def check_timeout(self) -> None:
        """Raise ``BudgetExceededError`` when the budget has been exceeded."""
        elapsed = self.elapsed()
        if elapsed > self.budget_seconds:
            raise BudgetExceededError(
                f"time budget of {self.budget_seconds:g}s exceeded ({elapsed:.2f}s elapsed)"
            )
