from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from operator_api.db import get_sessionmaker
from operator_api.notifications import ChangeHub
from operator_api.store.base import (
    RowQuery,
    RowStore,
    SyncError,
    TableSpec,
    get_table,
    normalize_row,
    prepare_insert,
    prepare_patch,
    validate_query,
)

logger = logging.getLogger(__name__)


def _bind_value(schema: TableSpec, column: str, value):
    if column in schema.booleans and value is not None:
        return int(bool(value))
    return value


class RemoteRowStore(RowStore):
    """Rows in the hosted relational store, one SQL statement per call."""

    def __init__(self, user_id: str, session_factory=None, hub: ChangeHub | None = None):
        self.user_id = user_id
        self._session_factory = session_factory
        self._hub = hub

    def _factory(self):
        if self._session_factory is None:
            self._session_factory = get_sessionmaker()
        return self._session_factory

    @asynccontextmanager
    async def _session(self, action: str, table: str):
        try:
            async with self._factory()() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Remote %s on %s failed for user %s", action, table, self.user_id)
            raise SyncError(f"Failed to {action} {table}") from exc

    async def _notify(self, table: str, action: str, row_id: str | None) -> None:
        if self._hub is not None:
            await self._hub.publish(table, self.user_id, action, row_id)

    async def list(self, table: str, query: RowQuery | None = None) -> list[dict]:
        schema = get_table(table)
        query = validate_query(schema, query)
        clauses = ["user_id = :user_id"]
        params = {"user_id": self.user_id}
        for column, value in query.eq.items():
            if value is None:
                clauses.append(f"{column} IS NULL")
                continue
            clauses.append(f"{column} = :eq_{column}")
            params[f"eq_{column}"] = _bind_value(schema, column, value)
        if query.since:
            clauses.append(f"{schema.date_column} >= :since")
            params["since"] = query.since
        if query.until:
            clauses.append(f"{schema.date_column} <= :until")
            params["until"] = query.until
        order_by = query.order_by or schema.order_by
        direction = "DESC" if query.descending else "ASC"
        statement = (
            f"SELECT {', '.join(schema.all_columns)} FROM {schema.name} "
            f"WHERE {' AND '.join(clauses)} ORDER BY {order_by} {direction}, created_at {direction}"
        )
        if query.limit is not None:
            statement += " LIMIT :limit"
            params["limit"] = int(query.limit)
        async with self._session("list", table) as session:
            rows = (await session.execute(sql_text(statement), params)).mappings().all()
        return [normalize_row(schema, row) for row in rows]

    async def get(self, table: str, row_id: str) -> dict:
        schema = get_table(table)
        async with self._session("get", table) as session:
            row = (await session.execute(
                sql_text(
                    f"SELECT {', '.join(schema.all_columns)} FROM {schema.name} "
                    "WHERE id = :id AND user_id = :user_id"
                ),
                {"id": row_id, "user_id": self.user_id},
            )).mappings().fetchone()
        return normalize_row(schema, row)

    async def insert(self, table: str, row: dict) -> dict:
        schema = get_table(table)
        record = prepare_insert(schema, self.user_id, row)
        columns = list(schema.all_columns)
        async with self._session("insert", table) as session:
            await session.execute(
                sql_text(
                    f"INSERT INTO {schema.name} ({', '.join(columns)}) "
                    f"VALUES ({', '.join(f':{column}' for column in columns)})"
                ),
                {column: _bind_value(schema, column, record[column]) for column in columns},
            )
            await session.commit()
        await self._notify(table, "insert", record["id"])
        return normalize_row(schema, record)

    async def update(self, table: str, row_id: str, patch: dict) -> dict:
        schema = get_table(table)
        clean = prepare_patch(schema, patch)
        if not clean:
            return await self.get(table, row_id)
        params = {column: _bind_value(schema, column, value) for column, value in clean.items()}
        params.update({"id": row_id, "user_id": self.user_id})
        updates = ", ".join(f"{column} = :{column}" for column in clean)
        async with self._session("update", table) as session:
            result = await session.execute(
                sql_text(f"UPDATE {schema.name} SET {updates} WHERE id = :id AND user_id = :user_id"),
                params,
            )
            await session.commit()
        if not result.rowcount:
            return {}
        await self._notify(table, "update", row_id)
        return await self.get(table, row_id)

    async def delete(self, table: str, row_id: str) -> bool:
        schema = get_table(table)
        async with self._session("delete", table) as session:
            result = await session.execute(
                sql_text(f"DELETE FROM {schema.name} WHERE id = :id AND user_id = :user_id"),
                {"id": row_id, "user_id": self.user_id},
            )
            await session.commit()
        if not result.rowcount:
            return False
        await self._notify(table, "delete", row_id)
        return True
