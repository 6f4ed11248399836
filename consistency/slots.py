from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import NamedTuple

from consistency.constants import MINUTES_PER_DAY

logger = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^([0-9]{1,2})(?::([0-9]{2}))?$")


class Slot(NamedTuple):
    start: int
    end: int


def parse_time(value: str) -> int | None:
    match = _TIME_PATTERN.match(str(value or "").strip())
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    if not (0 <= hours <= 23) or not (0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def parse_slot(slot: str) -> Slot | None:
    """Parse ``"HH:MM-HH:MM"`` into minutes since midnight.

    Returns None on any malformed input; a bad slot means "no block", not an
    error for the caller.
    """
    if not isinstance(slot, str) or slot.count("-") != 1:
        logger.debug("Unparseable time slot: %r", slot)
        return None
    start_raw, end_raw = slot.split("-")
    start = parse_time(start_raw)
    end = parse_time(end_raw)
    if start is None or end is None:
        logger.debug("Unparseable time slot: %r", slot)
        return None
    return Slot(start, end)


def is_within(current: int, start: int, end: int) -> bool:
    if end < start:
        return current >= start or current < end
    return start <= current < end


def slot_contains(slot: Slot, current: int) -> bool:
    return is_within(current, slot.start, slot.end)


def slot_ranges(slot: Slot) -> list[tuple[int, int]]:
    if slot.end < slot.start:
        return [(slot.start, MINUTES_PER_DAY), (0, slot.end)]
    return [(slot.start, slot.end)]


def slot_duration(slot: Slot) -> int:
    return sum(end - start for start, end in slot_ranges(slot))


def slots_overlap(first: Slot, second: Slot) -> bool:
    for a_start, a_end in slot_ranges(first):
        for b_start, b_end in slot_ranges(second):
            if a_start < b_end and b_start < a_end:
                return True
    return False


def minutes_of_day(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def format_minutes(minutes: int) -> str:
    minutes = int(minutes) % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_slot(slot: Slot) -> str:
    return f"{format_minutes(slot.start)}-{format_minutes(slot.end)}"
