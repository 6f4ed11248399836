from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import NamedTuple

from consistency.constants import INTENSITY_THRESHOLDS


class Intensity(NamedTuple):
    ratio: float
    bucket: int


@dataclass(frozen=True)
class DayIntensity:
    date: date
    completed_count: int
    total_possible: int
    ratio: float
    intensity_bucket: int

    def as_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "completed_count": self.completed_count,
            "total_possible": self.total_possible,
            "ratio": self.ratio,
            "intensity_bucket": self.intensity_bucket,
        }


def completion_ratio(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return min(1.0, max(0.0, completed / total))


def bucket_for(ratio: float) -> int:
    for threshold, bucket in INTENSITY_THRESHOLDS:
        if ratio >= threshold:
            return bucket
    return 0


def intensity(completed: int, total: int) -> Intensity:
    ratio = completion_ratio(completed, total)
    return Intensity(ratio, bucket_for(ratio))


def day_intensity(day: date, completed: int, total: int) -> DayIntensity:
    ratio, bucket = intensity(completed, total)
    return DayIntensity(
        date=day,
        completed_count=int(completed),
        total_possible=int(total),
        ratio=round(ratio, 4),
        intensity_bucket=bucket,
    )
