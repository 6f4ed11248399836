from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from consistency.dates import parse_day


@dataclass(frozen=True)
class StreakSummary:
    current: int
    longest: int

    def as_dict(self) -> dict:
        return {"current": self.current, "longest": self.longest}


def activity_days(values: Iterable) -> set[date]:
    days = set()
    for value in values or []:
        day = parse_day(value)
        if day is not None:
            days.add(day)
    return days


def current_streak(activity_dates: set[date], today: date) -> int:
    count = 0
    current = today
    while current in activity_dates:
        count += 1
        current -= timedelta(days=1)
    return count


def longest_streak(activity_dates: Iterable[date]) -> int:
    ordered = sorted(set(activity_dates))
    if not ordered:
        return 0
    best = 1
    running = 1
    for previous, day in zip(ordered, ordered[1:]):
        if day - previous == timedelta(days=1):
            running += 1
        else:
            running = 1
        best = max(best, running)
    return best


def streak_summary(activity_dates: set[date], today: date) -> StreakSummary:
    return StreakSummary(
        current=current_streak(activity_dates, today),
        longest=longest_streak(activity_dates),
    )


def streak_at_risk(activity_dates: set[date], today: date, hour: int, cutoff_hour: int) -> bool:
    """Active yesterday, nothing yet today, and the day is nearly over."""
    yesterday = today - timedelta(days=1)
    return yesterday in activity_dates and today not in activity_dates and hour > cutoff_hour
