from __future__ import annotations

from datetime import date

from consistency.constants import (
    DEFAULT_DAILY_BLOCKS,
    MINUTES_PER_DAY,
    SATURDAY_ROUTINE,
    SUNDAY_ROUTINE,
    WEEKDAY_ROUTINE,
)
from consistency.slots import Slot, parse_slot, parse_time, slot_contains, slots_overlap


def block_slot(block: dict) -> Slot | None:
    return parse_slot((block or {}).get("time_slot"))


def sort_blocks(blocks: list[dict]) -> list[dict]:
    def _key(block):
        slot = block_slot(block)
        if slot is None:
            return (1, MINUTES_PER_DAY, str(block.get("time_slot") or ""))
        return (0, slot.start, str(block.get("time_slot") or ""))

    return sorted(blocks or [], key=_key)


def current_block(blocks: list[dict], now_minutes: int) -> dict | None:
    for block in sort_blocks(blocks):
        slot = block_slot(block)
        if slot is None:
            continue
        if slot_contains(slot, now_minutes):
            return block
    return None


def next_block(blocks: list[dict], now_minutes: int) -> dict | None:
    best = None
    best_wait = None
    for block in blocks or []:
        slot = block_slot(block)
        if slot is None:
            continue
        wait = (slot.start - now_minutes) % MINUTES_PER_DAY
        if wait == 0:
            continue
        if best_wait is None or wait < best_wait:
            best = block
            best_wait = wait
    return best


def missed_blocks(blocks: list[dict], now_minutes: int, since_minutes: int) -> list[dict]:
    """Uncompleted blocks whose end passed between the last check and now."""
    missed = []
    for block in sort_blocks(blocks):
        if block.get("completed"):
            continue
        slot = block_slot(block)
        if slot is None:
            continue
        if since_minutes < slot.end < now_minutes:
            missed.append(block)
    return missed


def find_overlaps(blocks: list[dict]) -> list[tuple[dict, dict]]:
    parsed = [(block, block_slot(block)) for block in sort_blocks(blocks)]
    parsed = [(block, slot) for block, slot in parsed if slot is not None and slot.start != slot.end]
    pairs = []
    for idx, (first, first_slot) in enumerate(parsed):
        for second, second_slot in parsed[idx + 1 :]:
            if slots_overlap(first_slot, second_slot):
                pairs.append((first, second))
    return pairs


def default_blocks_for(day: date) -> list[dict]:
    return [
        {**template, "date": day.isoformat(), "completed": False, "is_active": False}
        for template in DEFAULT_DAILY_BLOCKS
    ]


def routine_for(day: date) -> list[tuple[str, str, str]]:
    if day.weekday() == 5:
        return SATURDAY_ROUTINE
    if day.weekday() == 6:
        return SUNDAY_ROUTINE
    return WEEKDAY_ROUTINE


def routine_item_at(routine: list[tuple[str, str, str]], now_minutes: int) -> dict | None:
    """Latest routine item that has started; before the first one, the first."""
    if not routine:
        return None
    chosen = routine[0]
    for item in routine:
        start = parse_time(item[0])
        if start is None:
            continue
        if start <= now_minutes:
            chosen = item
    return {"time": chosen[0], "task": chosen[1], "type": chosen[2]}
