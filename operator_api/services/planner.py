from __future__ import annotations

import logging
from datetime import date, datetime

from consistency.constants import BLOCK_TYPES
from consistency.schedule import (
    current_block,
    default_blocks_for,
    find_overlaps,
    missed_blocks,
    next_block,
    routine_for,
    routine_item_at,
    sort_blocks,
)
from consistency.slots import format_minutes, format_slot, minutes_of_day, parse_slot, parse_time
from operator_api.store.base import RowQuery, RowStore

logger = logging.getLogger(__name__)


def _clean_slot(value) -> str:
    slot = parse_slot(value)
    if slot is None:
        raise ValueError("Invalid time slot")
    return format_slot(slot)


def _clean_block_type(value):
    if value is not None and value not in BLOCK_TYPES:
        raise ValueError("Invalid block type")
    return value


async def blocks_for(rows: RowStore, day: date) -> list[dict]:
    items = await rows.list("daily_blocks", RowQuery(eq={"date": day.isoformat()}))
    return sort_blocks(items)


async def seed_defaults(rows: RowStore, day: date) -> list[dict]:
    """Insert the default template for ``day`` unless it already has blocks."""
    existing = await blocks_for(rows, day)
    if existing:
        return existing
    for block in default_blocks_for(day):
        await rows.insert("daily_blocks", block)
    logger.info("Seeded default blocks for %s", day.isoformat())
    return await blocks_for(rows, day)


async def add_block(rows: RowStore, day: date, time_slot: str, task: str, emoji: str | None = None,
                    block_type: str | None = None) -> dict:
    task = str(task or "").strip()
    if not task:
        raise ValueError("Task cannot be empty")
    return await rows.insert(
        "daily_blocks",
        {
            "time_slot": _clean_slot(time_slot),
            "task": task,
            "emoji": emoji,
            "block_type": _clean_block_type(block_type),
            "date": day.isoformat(),
            "completed": False,
            "is_active": False,
        },
    )


async def update_block(rows: RowStore, block_id: str, patch: dict) -> dict:
    clean = dict(patch or {})
    if "time_slot" in clean:
        clean["time_slot"] = _clean_slot(clean["time_slot"])
    if "block_type" in clean:
        _clean_block_type(clean["block_type"])
    return await rows.update("daily_blocks", block_id, clean)


async def toggle_block(rows: RowStore, block_id: str) -> dict:
    block = await rows.get("daily_blocks", block_id)
    if not block:
        return {}
    return await rows.update("daily_blocks", block_id, {"completed": not block.get("completed")})


async def delete_block(rows: RowStore, block_id: str) -> bool:
    return await rows.delete("daily_blocks", block_id)


async def current(rows: RowStore, now: datetime) -> dict:
    blocks = await blocks_for(rows, now.date())
    now_minutes = minutes_of_day(now)
    return {
        "now": format_minutes(now_minutes),
        "block": current_block(blocks, now_minutes),
        "next": next_block(blocks, now_minutes),
        "routine": routine_item_at(routine_for(now.date()), now_minutes),
    }


async def missed(rows: RowStore, now: datetime, since: str | None = None) -> dict:
    now_minutes = minutes_of_day(now)
    since_minutes = parse_time(since) if since else None
    if since_minutes is None:
        since_minutes = -1
    blocks = await blocks_for(rows, now.date())
    return {"now": format_minutes(now_minutes), "items": missed_blocks(blocks, now_minutes, since_minutes)}


async def overlaps(rows: RowStore, day: date) -> list[dict]:
    blocks = await blocks_for(rows, day)
    return [{"first": first, "second": second} for first, second in find_overlaps(blocks)]
