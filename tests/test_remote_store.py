import unittest

from sqlalchemy.exc import SQLAlchemyError

from operator_api.db_init import table_ddl
from operator_api.notifications import ChangeHub
from operator_api.store.base import TABLES, RowQuery, SyncError
from operator_api.store.keyed import RemoteKeyedStore, Scope
from operator_api.store.remote import RemoteRowStore


class _Result:
    def __init__(self, rows=None, rowcount=1):
        self._rows = rows or []
        self.rowcount = rowcount

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)

    def fetchone(self):
        return self._rows[0] if self._rows else None


class _RecordingSession:
    def __init__(self, log, result):
        self._log = log
        self._result = result

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, statement, params=None):
        self._log.append((str(statement), dict(params or {})))
        return self._result

    async def commit(self):
        self._log.append(("COMMIT", {}))


class _FailingSession(_RecordingSession):
    def __init__(self):
        super().__init__([], None)

    async def execute(self, statement, params=None):
        raise SQLAlchemyError("connection refused")


def _factory(log, result):
    return lambda: _RecordingSession(log, result)


class TestRemoteRowStoreQueries(unittest.IsolatedAsyncioTestCase):
    async def test_list_is_scoped_and_binds_booleans_as_ints(self) -> None:
        log = []
        rows = RemoteRowStore("u1", session_factory=_factory(log, _Result([{"id": "a", "completed": 1}])))
        items = await rows.list("todos", RowQuery(eq={"completed": True}, since="2024-01-01", limit=5))
        statement, params = log[0]
        self.assertIn("user_id = :user_id", statement)
        self.assertIn("completed = :eq_completed", statement)
        self.assertIn("created_date >= :since", statement)
        self.assertIn("LIMIT :limit", statement)
        self.assertEqual(params["user_id"], "u1")
        self.assertEqual(params["eq_completed"], 1)
        self.assertIs(items[0]["completed"], True)

    async def test_insert_publishes_after_commit(self) -> None:
        log = []
        hub = ChangeHub()
        rows = RemoteRowStore("u1", session_factory=_factory(log, _Result()), hub=hub)
        record = await rows.insert("notes", {"content": "hello"})
        self.assertEqual(log[-1][0], "COMMIT")
        self.assertEqual(record["user_id"], "u1")
        self.assertEqual(hub.events_since("u1")[0].row_id, record["id"])

    async def test_update_of_missing_row_returns_empty(self) -> None:
        hub = ChangeHub()
        rows = RemoteRowStore("u1", session_factory=_factory([], _Result(rowcount=0)), hub=hub)
        self.assertEqual(await rows.update("todos", "missing", {"completed": True}), {})
        self.assertFalse(await rows.delete("todos", "missing"))
        self.assertEqual(hub.last_seq, 0)


class TestTableDdl(unittest.TestCase):
    def test_columns_follow_table_spec(self) -> None:
        ddl = table_ddl(TABLES["todos"])
        self.assertIn("CREATE TABLE IF NOT EXISTS todos", ddl)
        self.assertIn("id TEXT PRIMARY KEY", ddl)
        self.assertIn("completed INTEGER DEFAULT 0", ddl)
        self.assertIn("text TEXT NOT NULL", ddl)
        self.assertIn("duration_minutes INTEGER", table_ddl(TABLES["focus_sessions"]))


class TestRemoteFailures(unittest.IsolatedAsyncioTestCase):
    async def test_database_errors_become_sync_errors(self) -> None:
        hub = ChangeHub()
        rows = RemoteRowStore("u1", session_factory=_FailingSession, hub=hub)
        with self.assertLogs("operator_api.store.remote", level="ERROR"):
            with self.assertRaises(SyncError):
                await rows.insert("todos", {"text": "Read"})
        with self.assertRaises(SyncError):
            await rows.list("todos")
        self.assertEqual(hub.last_seq, 0)

    async def test_keyed_store_errors_become_sync_errors(self) -> None:
        keyed = RemoteKeyedStore(session_factory=_FailingSession)
        with self.assertRaises(SyncError):
            await keyed.get(Scope("theme", "u1"))
        with self.assertRaises(SyncError):
            await keyed.set(Scope("theme", "u1"), {"dark": True})


if __name__ == "__main__":
    unittest.main()
