"""In-process change notifications for row mutations.

Every successful insert/update/delete publishes a ``ChangeEvent``. Listeners
subscribe per (table, user) and are expected to re-fetch in full, so a
duplicate delivery is harmless. The bounded event log lets HTTP clients poll
with the last ``seq`` they saw.
"""
from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from collections import deque
from dataclasses import asdict, dataclass
from typing import Callable

logger = logging.getLogger(__name__)

ALL_TABLES = "*"


@dataclass(frozen=True)
class ChangeEvent:
    seq: int
    table: str
    user_id: str
    action: str
    row_id: str | None

    def as_dict(self) -> dict:
        return asdict(self)


class ChangeHub:
    def __init__(self, history_size: int = 500):
        self._subscribers: dict[tuple[str, str], list[Callable]] = {}
        self._history: deque[ChangeEvent] = deque(maxlen=max(1, history_size))
        self._counter = itertools.count(1)

    def subscribe(self, table: str, user_id: str, callback: Callable) -> Callable[[], None]:
        key = (table, user_id)
        self._subscribers.setdefault(key, []).append(callback)

        def _unsubscribe():
            callbacks = self._subscribers.get(key, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._subscribers.pop(key, None)

        return _unsubscribe

    def subscriber_count(self, user_id: str) -> int:
        return sum(len(callbacks) for (_, uid), callbacks in self._subscribers.items() if uid == user_id)

    async def publish(self, table: str, user_id: str, action: str, row_id: str | None = None) -> ChangeEvent:
        event = ChangeEvent(next(self._counter), table, user_id, action, row_id)
        self._history.append(event)
        callbacks = list(self._subscribers.get((table, user_id), []))
        callbacks += list(self._subscribers.get((ALL_TABLES, user_id), []))
        for callback in callbacks:
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Change listener failed for %s/%s", table, action)
        return event

    def events_since(self, user_id: str, after: int = 0, tables: set[str] | None = None) -> list[ChangeEvent]:
        return [
            event
            for event in self._history
            if event.seq > after and event.user_id == user_id and (not tables or event.table in tables)
        ]

    @property
    def last_seq(self) -> int:
        return self._history[-1].seq if self._history else 0


_hub: ChangeHub | None = None


def get_hub() -> ChangeHub:
    global _hub
    if _hub is None:
        from operator_api.settings import get_settings

        _hub = ChangeHub(get_settings().change_log_size)
    return _hub


def set_hub(hub: ChangeHub | None) -> None:
    global _hub
    _hub = hub


async def wait_for_events(hub: ChangeHub, user_id: str, after: int, timeout: float, tables=None) -> list[ChangeEvent]:
    """Poll the log until something newer than ``after`` shows up or time runs out."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + max(0.0, timeout)
    while True:
        events = hub.events_since(user_id, after, tables)
        if events or loop.time() >= deadline:
            return events
        await asyncio.sleep(0.25)
