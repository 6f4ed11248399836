"""Scoped JSON blobs, addressed by (user, feature) instead of joined string keys."""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from consistency.dates import utc_now_iso
from operator_api.db import get_sessionmaker
from operator_api.store.base import SyncError

logger = logging.getLogger(__name__)

KEYED_STORE_TABLE = "keyed_store"
GLOBAL_SCOPE = ""
_MISSING = object()


@dataclass(frozen=True)
class Scope:
    feature: str
    user: str | None = None

    def __post_init__(self):
        if not str(self.feature or "").strip():
            raise ValueError("Scope feature cannot be empty")

    @property
    def user_key(self) -> str:
        return self.user or GLOBAL_SCOPE


class KeyedStore(ABC):
    @abstractmethod
    async def get(self, scope: Scope, default: Any = None) -> Any:
        ...

    @abstractmethod
    async def set(self, scope: Scope, value: Any) -> None:
        ...

    @abstractmethod
    async def delete(self, scope: Scope) -> None:
        ...


class MemoryKeyedStore(KeyedStore):
    """Process-local blobs, optionally mirrored to a JSON file."""

    def __init__(self, path: str | None = None):
        self._path = Path(path) if path else None
        self._values: dict[tuple[str, str], Any] = {}
        self._load()

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable guest storage file %s", self._path)
            return
        if not isinstance(payload, list):
            return
        for item in payload:
            if isinstance(item, dict) and item.get("feature"):
                self._values[(str(item.get("user") or GLOBAL_SCOPE), str(item["feature"]))] = item.get("value")

    def _flush(self) -> None:
        if self._path is None:
            return
        payload = [
            {"user": user, "feature": feature, "value": value}
            for (user, feature), value in sorted(self._values.items())
        ]
        try:
            self._path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            logger.exception("Failed to write guest storage file %s", self._path)
            raise SyncError("Failed to persist local storage") from exc

    def _commit(self, key: tuple[str, str], previous: Any) -> None:
        """Flush to disk, restoring ``key`` to ``previous`` if the write fails."""
        try:
            self._flush()
        except SyncError:
            if previous is _MISSING:
                self._values.pop(key, None)
            else:
                self._values[key] = previous
            raise

    async def get(self, scope: Scope, default: Any = None) -> Any:
        return self._values.get((scope.user_key, scope.feature), default)

    async def set(self, scope: Scope, value: Any) -> None:
        key = (scope.user_key, scope.feature)
        previous = self._values.get(key, _MISSING)
        self._values[key] = json.loads(json.dumps(value, default=str))
        self._commit(key, previous)

    async def delete(self, scope: Scope) -> None:
        key = (scope.user_key, scope.feature)
        previous = self._values.pop(key, _MISSING)
        if previous is not _MISSING:
            self._commit(key, previous)


class RemoteKeyedStore(KeyedStore):
    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    def _factory(self):
        if self._session_factory is None:
            self._session_factory = get_sessionmaker()
        return self._session_factory

    async def get(self, scope: Scope, default: Any = None) -> Any:
        try:
            async with self._factory()() as session:
                row = (await session.execute(
                    sql_text(
                        f"SELECT value_json FROM {KEYED_STORE_TABLE} "
                        "WHERE scope_user = :scope_user AND feature = :feature"
                    ),
                    {"scope_user": scope.user_key, "feature": scope.feature},
                )).fetchone()
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Failed to read keyed value %s", scope.feature)
            raise SyncError("Failed to read stored value") from exc
        if not row or row[0] is None:
            return default
        try:
            return json.loads(row[0])
        except ValueError:
            logger.warning("Discarding malformed stored value for %s", scope.feature)
            return default

    async def set(self, scope: Scope, value: Any) -> None:
        try:
            async with self._factory()() as session:
                await session.execute(
                    sql_text(
                        f"""
                        INSERT INTO {KEYED_STORE_TABLE} (scope_user, feature, value_json, updated_at)
                        VALUES (:scope_user, :feature, :value_json, :updated_at)
                        ON CONFLICT(scope_user, feature) DO UPDATE SET
                            value_json = EXCLUDED.value_json,
                            updated_at = EXCLUDED.updated_at
                        """
                    ),
                    {
                        "scope_user": scope.user_key,
                        "feature": scope.feature,
                        "value_json": json.dumps(value, ensure_ascii=False, default=str),
                        "updated_at": utc_now_iso(),
                    },
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Failed to write keyed value %s", scope.feature)
            raise SyncError("Failed to save stored value") from exc

    async def delete(self, scope: Scope) -> None:
        try:
            async with self._factory()() as session:
                await session.execute(
                    sql_text(
                        f"DELETE FROM {KEYED_STORE_TABLE} "
                        "WHERE scope_user = :scope_user AND feature = :feature"
                    ),
                    {"scope_user": scope.user_key, "feature": scope.feature},
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Failed to delete keyed value %s", scope.feature)
            raise SyncError("Failed to delete stored value") from exc
