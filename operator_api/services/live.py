"""Per-user dashboard snapshots kept fresh by change events."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Awaitable, Callable

from consistency.dates import local_datetime_string
from consistency.schedule import current_block, sort_blocks
from consistency.slots import minutes_of_day
from operator_api.notifications import ALL_TABLES, ChangeEvent, ChangeHub
from operator_api.services import tracker
from operator_api.store.base import RowQuery, RowStore

logger = logging.getLogger(__name__)


def _merge_warnings(target: list[str], *sources) -> None:
    for source in sources:
        for item in source.pop("warnings", []):
            if item not in target:
                target.append(item)


async def build_snapshot(rows: RowStore, now: datetime, tz_name: str | None = None) -> dict:
    today = now.date()
    warnings: list[str] = []
    todos = await tracker.safe_list(rows, "todos", RowQuery(eq={"created_date": today.isoformat()}), warnings)
    blocks = sort_blocks(
        await tracker.safe_list(rows, "daily_blocks", RowQuery(eq={"date": today.isoformat()}), warnings)
    )
    board = await tracker.streak_board(rows, now, tz_name=tz_name)
    dsa = await tracker.dsa_counts(rows, today)
    habits = await tracker.habit_streaks(rows, today)
    grid = await tracker.completion_grid(rows, today, tz_name=tz_name)
    _merge_warnings(warnings, board, dsa, habits, grid)
    return {
        "user_id": rows.user_id,
        "today": today.isoformat(),
        "generated_at": local_datetime_string(now),
        "todos": todos,
        "pending_todos": sum(1 for todo in todos if not todo.get("completed")),
        "blocks": blocks,
        "current_block": current_block(blocks, minutes_of_day(now)),
        "streaks": board["streaks"],
        "dsa": dsa,
        "habits": habits["items"],
        "completion_grid": grid["days"],
        "warnings": warnings,
    }


class LiveSnapshots:
    """Caches one snapshot per user; any change for that user marks it stale."""

    def __init__(
        self,
        hub: ChangeHub,
        builder: Callable[..., Awaitable[dict]] = build_snapshot,
    ):
        self._hub = hub
        self._builder = builder
        self._cache: dict[str, tuple[str, dict]] = {}
        self._stale: set[str] = set()
        self._unsubscribers: dict[str, Callable[[], None]] = {}
        self.rebuilds = 0

    def _watch(self, user_id: str) -> None:
        if user_id in self._unsubscribers:
            return

        def _on_change(event: ChangeEvent):
            logger.debug("Snapshot for %s invalidated by %s/%s", user_id, event.table, event.action)
            self._stale.add(user_id)

        self._unsubscribers[user_id] = self._hub.subscribe(ALL_TABLES, user_id, _on_change)

    def is_stale(self, user_id: str) -> bool:
        return user_id in self._stale or user_id not in self._cache

    async def get(self, rows: RowStore, now: datetime, tz_name: str | None = None) -> dict:
        user_id = rows.user_id
        self._watch(user_id)
        cached = self._cache.get(user_id)
        stamp = now.strftime("%Y-%m-%dT%H:%M")
        if cached is not None and cached[0] == stamp and user_id not in self._stale:
            return cached[1]
        # clear before building so changes made while building mark it stale again
        self._stale.discard(user_id)
        snapshot = await self._builder(rows, now, tz_name)
        self._cache[user_id] = (stamp, snapshot)
        self.rebuilds += 1
        return snapshot

    def close(self) -> None:
        for unsubscribe in self._unsubscribers.values():
            unsubscribe()
        self._unsubscribers.clear()
        self._cache.clear()
        self._stale.clear()


_snapshots: LiveSnapshots | None = None


def get_snapshots(hub: ChangeHub) -> LiveSnapshots:
    global _snapshots
    if _snapshots is None or _snapshots._hub is not hub:
        _snapshots = LiveSnapshots(hub)
    return _snapshots


def reset_snapshots() -> None:
    global _snapshots
    if _snapshots is not None:
        _snapshots.close()
    _snapshots = None
