from __future__ import annotations

import logging

from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from operator_api.db import get_engine
from operator_api.store.base import TABLES, TableSpec
from operator_api.store.keyed import KEYED_STORE_TABLE

logger = logging.getLogger(__name__)


def _column_ddl(schema: TableSpec, column: str) -> str:
    if column in schema.booleans:
        return f"{column} INTEGER DEFAULT 0"
    if column in schema.integers:
        return f"{column} INTEGER"
    if column in schema.required:
        return f"{column} TEXT NOT NULL"
    return f"{column} TEXT"


def table_ddl(schema: TableSpec) -> str:
    columns = ",\n    ".join(_column_ddl(schema, column) for column in schema.columns)
    return (
        f"CREATE TABLE IF NOT EXISTS {schema.name} (\n"
        "    id TEXT PRIMARY KEY,\n"
        "    user_id TEXT NOT NULL,\n"
        f"    {columns},\n"
        "    created_at TEXT NOT NULL\n"
        ")"
    )


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        for schema in TABLES.values():
            await conn.execute(sql_text(table_ddl(schema)))
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {KEYED_STORE_TABLE} (
                    scope_user TEXT NOT NULL,
                    feature TEXT NOT NULL,
                    value_json TEXT,
                    updated_at TEXT,
                    PRIMARY KEY (scope_user, feature)
                )
                """
            )
        )

    async def ensure_index(index_sql: str) -> None:
        try:
            async with engine.begin() as conn:
                await conn.execute(sql_text(index_sql))
        except SQLAlchemyError:
            logger.warning("Index creation skipped: %s", index_sql)

    for schema in TABLES.values():
        date_column = schema.date_column or "created_at"
        await ensure_index(
            f"CREATE INDEX IF NOT EXISTS idx_{schema.name}_user_date "
            f"ON {schema.name} (user_id, {date_column})"
        )
