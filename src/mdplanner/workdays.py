"""Per-owner working calendar: weekends, vacations and half-day advancement."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from mdplanner.models import Vacation


@dataclass(frozen=True)
class Advance:
    """Outcome of walking an owner's calendar forward.

    ``elapsed_cost`` counts every half-day traversed, skipped days included;
    ``actual_cost`` counts only the half-days that were worked.
    """

    date: date
    elapsed_cost: int
    actual_cost: int


class WorkCalendar:
    """Answers "does *owner* work on *day*?" and advances costs over that calendar."""

    def __init__(self, vacations: Iterable[Vacation] = ()):
        self.vacations: tuple[Vacation, ...] = tuple(vacations)

    @staticmethod
    def is_weekend(day: date) -> bool:
        return day.weekday() >= 5

    def is_in_vacation(self, owner: str | None, day: date) -> bool:
        return any(v.owner == owner and v.contains(day) for v in self.vacations)

    def skip(self, owner: str | None, day: date) -> bool:
        """True when *day* is not a working day for *owner*."""
        return self.is_weekend(day) or self.is_in_vacation(owner, day)

    def _skip_forward(self, owner: str | None, day: date) -> tuple[date, int]:
        """Move past non-working days; each one costs two elapsed half-days."""
        elapsed = 0
        while self.skip(owner, day):
            day += timedelta(days=1)
            elapsed += 2
        return day, elapsed

    def advance(
        self,
        owner: str | None,
        current: date,
        cost: int,
        max_date: date | None = None,
    ) -> Advance:
        """Consume *cost* half-days of *owner*'s time starting on *current*.

        Whole days are consumed first. An odd trailing half-day is consumed
        on the next working day without moving the date. When *max_date* is
        given, units that would start after it are abandoned, so the actual
        cost becomes a lower bound.
        """
        if cost < 0:
            raise ValueError(f"Cost cannot be negative: {cost}")

        elapsed_cost = 0
        actual_cost = 0

        for _ in range(cost // 2):
            current, skipped = self._skip_forward(owner, current)
            elapsed_cost += skipped
            if max_date is not None and current > max_date:
                break
            actual_cost += 2
            elapsed_cost += 2
            current += timedelta(days=1)

        if cost % 2 == 1:
            current, skipped = self._skip_forward(owner, current)
            elapsed_cost += skipped
            if max_date is None or current <= max_date:
                elapsed_cost += 1
                actual_cost += 1

        return Advance(date=current, elapsed_cost=elapsed_cost, actual_cost=actual_cost)

    def actual_cost_between(self, owner: str | None, start: date, end: date) -> int:
        """Working half-days *owner* has in the inclusive range [start, end]."""
        total = 0
        current = start
        while current <= end:
            step = self.advance(owner, current, 2, max_date=end)
            current = step.date
            total += step.actual_cost
        return total
