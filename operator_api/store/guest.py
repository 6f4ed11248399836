"""Guest backend: the same row contract over an in-memory fixture.

Nothing here touches the database engine or the network. State lives for the
lifetime of the process (the equivalent of a browser tab) and is lost on
restart.
"""
from __future__ import annotations

import copy
import logging
from datetime import date

from operator_api.notifications import ChangeHub
from operator_api.store.base import (
    TABLES,
    RowQuery,
    RowStore,
    get_table,
    normalize_row,
    prepare_insert,
    prepare_patch,
    validate_query,
)
from operator_api.store.fixtures import guest_fixture

logger = logging.getLogger(__name__)


class GuestDataset:
    def __init__(self, user_id: str, today: date, seed: bool = True):
        self.user_id = user_id
        self.tables: dict[str, list[dict]] = {name: [] for name in TABLES}
        if seed:
            self._seed(today)

    def _seed(self, today: date) -> None:
        for table, rows in guest_fixture(today).items():
            schema = get_table(table)
            for row in rows:
                record = prepare_insert(schema, self.user_id, row)
                if row.get("id"):
                    record["id"] = row["id"]
                self.tables[table].append(record)
        logger.info("Seeded guest dataset for %s", today.isoformat())


def _matches(schema, row: dict, user_id: str, query: RowQuery) -> bool:
    if row.get("user_id") != user_id:
        return False
    for column, value in query.eq.items():
        expected = bool(value) if column in schema.booleans and value is not None else value
        if row.get(column) != expected:
            return False
    if query.since or query.until:
        value = row.get(schema.date_column)
        if value is None:
            return False
        if query.since and str(value) < query.since:
            return False
        if query.until and str(value) > query.until:
            return False
    return True


class GuestRowStore(RowStore):
    def __init__(self, user_id: str, dataset: GuestDataset, hub: ChangeHub | None = None):
        self.user_id = user_id
        self._dataset = dataset
        self._hub = hub

    def _rows(self, table: str) -> list[dict]:
        return self._dataset.tables.setdefault(table, [])

    def _find(self, table: str, row_id: str) -> dict | None:
        for row in self._rows(table):
            if row.get("id") == row_id and row.get("user_id") == self.user_id:
                return row
        return None

    async def _notify(self, table: str, action: str, row_id: str | None) -> None:
        if self._hub is not None:
            await self._hub.publish(table, self.user_id, action, row_id)

    async def list(self, table: str, query: RowQuery | None = None) -> list[dict]:
        schema = get_table(table)
        query = validate_query(schema, query)
        rows = [row for row in self._rows(table) if _matches(schema, row, self.user_id, query)]
        order_by = query.order_by or schema.order_by
        rows.sort(key=lambda row: (str(row.get("created_at") or "")), reverse=query.descending)
        rows.sort(
            key=lambda row: (row.get(order_by) is None, str(row.get(order_by) or "")),
            reverse=query.descending,
        )
        if query.limit is not None:
            rows = rows[: query.limit]
        return [normalize_row(schema, copy.deepcopy(row)) for row in rows]

    async def get(self, table: str, row_id: str) -> dict:
        schema = get_table(table)
        row = self._find(table, row_id)
        return normalize_row(schema, copy.deepcopy(row)) if row else {}

    async def insert(self, table: str, row: dict) -> dict:
        schema = get_table(table)
        record = prepare_insert(schema, self.user_id, row)
        self._rows(table).append(record)
        await self._notify(table, "insert", record["id"])
        return normalize_row(schema, copy.deepcopy(record))

    async def update(self, table: str, row_id: str, patch: dict) -> dict:
        schema = get_table(table)
        clean = prepare_patch(schema, patch)
        row = self._find(table, row_id)
        if row is None:
            return {}
        if clean:
            row.update(clean)
            await self._notify(table, "update", row_id)
        return normalize_row(schema, copy.deepcopy(row))

    async def delete(self, table: str, row_id: str) -> bool:
        get_table(table)
        row = self._find(table, row_id)
        if row is None:
            return False
        self._rows(table).remove(row)
        await self._notify(table, "delete", row_id)
        return True
