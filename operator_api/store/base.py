"""Row-store contract shared by the remote and guest backends.

A ``RowStore`` is bound to one user id; every read and write is scoped to
that user without the caller passing it. Both backends accept and return the
same row shape: plain dicts whose boolean columns are real ``bool`` values.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from uuid import uuid4

from consistency.dates import utc_now_iso


class SyncError(RuntimeError):
    """The backing store could not complete a request."""


@dataclass(frozen=True)
class TableSpec:
    name: str
    columns: tuple
    date_column: Optional[str] = None
    order_by: str = "created_at"
    booleans: frozenset = frozenset()
    integers: frozenset = frozenset()
    required: frozenset = frozenset()
    defaults: Dict[str, Any] = field(default_factory=dict)

    @property
    def all_columns(self) -> tuple:
        return ("id", "user_id", *self.columns, "created_at")


TABLES: Dict[str, TableSpec] = {
    schema.name: schema
    for schema in [
        TableSpec(
            "todos",
            ("text", "completed", "priority", "category", "created_date"),
            date_column="created_date",
            booleans=frozenset({"completed"}),
            required=frozenset({"text"}),
            defaults={"completed": False, "priority": "medium", "category": "personal"},
        ),
        TableSpec(
            "habits",
            ("name", "category", "color", "icon", "current_streak", "best_streak", "target_frequency"),
            integers=frozenset({"current_streak", "best_streak", "target_frequency"}),
            required=frozenset({"name"}),
            defaults={"current_streak": 0, "best_streak": 0, "target_frequency": 1},
        ),
        TableSpec(
            "habit_completions",
            ("habit_id", "completed_date"),
            date_column="completed_date",
            order_by="completed_date",
            required=frozenset({"habit_id", "completed_date"}),
        ),
        TableSpec(
            "dsa_problems",
            ("problem_name", "difficulty", "topic", "solved_date"),
            date_column="solved_date",
            order_by="solved_date",
            required=frozenset({"problem_name"}),
        ),
        TableSpec(
            "gym_checkins",
            ("checkin_date", "checkin_time"),
            date_column="checkin_date",
            order_by="checkin_date",
        ),
        TableSpec(
            "daily_blocks",
            ("time_slot", "task", "emoji", "block_type", "completed", "date", "is_active"),
            date_column="date",
            order_by="time_slot",
            booleans=frozenset({"completed", "is_active"}),
            required=frozenset({"time_slot", "task"}),
            defaults={"completed": False, "is_active": False},
        ),
        TableSpec(
            "focus_sessions",
            ("session_type", "duration_minutes", "completed", "notes"),
            date_column="created_at",
            booleans=frozenset({"completed"}),
            integers=frozenset({"duration_minutes"}),
            required=frozenset({"session_type"}),
            defaults={"completed": False, "duration_minutes": 25},
        ),
        TableSpec(
            "notes",
            ("content",),
            date_column="created_at",
            required=frozenset({"content"}),
        ),
        TableSpec(
            "reflections",
            ("reflection_type", "date", "content", "mood_score"),
            date_column="date",
            order_by="date",
            integers=frozenset({"mood_score"}),
            required=frozenset({"reflection_type"}),
        ),
        TableSpec(
            "project_tasks",
            ("project_name", "task_title", "description", "status", "priority", "due_date"),
            date_column="due_date",
            required=frozenset({"project_name", "task_title"}),
            defaults={"status": "todo", "priority": "medium"},
        ),
    ]
}


@dataclass
class RowQuery:
    eq: Dict[str, Any] = field(default_factory=dict)
    since: Optional[str] = None
    until: Optional[str] = None
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None


def get_table(table: str) -> TableSpec:
    schema = TABLES.get(table)
    if schema is None:
        raise ValueError(f"Unknown table: {table}")
    return schema


def validate_query(schema: TableSpec, query: RowQuery | None) -> RowQuery:
    query = query or RowQuery()
    known = set(schema.all_columns)
    for column in query.eq:
        if column not in known:
            raise ValueError(f"Unknown column {column} for {schema.name}")
    if query.order_by and query.order_by not in known:
        raise ValueError(f"Unknown column {query.order_by} for {schema.name}")
    if (query.since or query.until) and not schema.date_column:
        raise ValueError(f"Table {schema.name} has no date column")
    if query.limit is not None and query.limit < 0:
        raise ValueError("Limit must be positive")
    return query


def _coerce(schema: TableSpec, column: str, value):
    if value is None:
        return None
    if column in schema.booleans:
        return bool(value)
    if column in schema.integers:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValueError(f"{column} must be an integer") from None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def prepare_insert(schema: TableSpec, user_id: str, row: dict) -> dict:
    record = {column: None for column in schema.all_columns}
    record.update(schema.defaults)
    for column, value in (row or {}).items():
        if column in schema.columns or column == "created_at":
            record[column] = _coerce(schema, column, value)
    for column in schema.required:
        value = record.get(column)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError(f"{column} is required for {schema.name}")
    record["id"] = uuid4().hex
    record["user_id"] = user_id
    record["created_at"] = record.get("created_at") or utc_now_iso()
    return record


def prepare_patch(schema: TableSpec, patch: dict) -> dict:
    clean = {}
    for column, value in (patch or {}).items():
        if column not in schema.columns:
            continue
        value = _coerce(schema, column, value)
        if column in schema.required and (value is None or (isinstance(value, str) and not value.strip())):
            raise ValueError(f"{column} cannot be empty")
        clean[column] = value
    return clean


def normalize_row(schema: TableSpec, row) -> dict:
    if not row:
        return {}
    payload = dict(row)
    for column in schema.booleans:
        if column in payload and payload[column] is not None:
            payload[column] = bool(payload[column])
    for column, value in list(payload.items()):
        if value is not None and hasattr(value, "isoformat"):
            payload[column] = value.isoformat()
    return payload


class RowStore(ABC):
    user_id: str

    @abstractmethod
    async def list(self, table: str, query: RowQuery | None = None) -> list[dict]:
        ...

    @abstractmethod
    async def get(self, table: str, row_id: str) -> dict:
        ...

    @abstractmethod
    async def insert(self, table: str, row: dict) -> dict:
        ...

    @abstractmethod
    async def update(self, table: str, row_id: str, patch: dict) -> dict:
        ...

    @abstractmethod
    async def delete(self, table: str, row_id: str) -> bool:
        ...
