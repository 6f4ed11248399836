import unittest
from datetime import date, datetime, timedelta, timezone

from operator_api.notifications import ChangeHub
from operator_api.services import actions, planner, tracker
from operator_api.services.live import LiveSnapshots, build_snapshot
from operator_api.store.base import RowStore, SyncError
from operator_api.store.guest import GuestDataset, GuestRowStore
from operator_api.store.keyed import MemoryKeyedStore, Scope


TODAY = date(2024, 5, 15)


class _UnreachableRows(RowStore):
    user_id = "u1"

    async def list(self, table, query=None):
        raise SyncError("down")

    async def get(self, table, row_id):
        raise SyncError("down")

    async def insert(self, table, row):
        raise SyncError("down")

    async def update(self, table, row_id, patch):
        raise SyncError("down")

    async def delete(self, table, row_id):
        raise SyncError("down")


class _FlakyRows(GuestRowStore):
    """Guest rows whose updates start failing after ``healthy_updates`` calls."""

    def __init__(self, healthy_updates):
        super().__init__("guest", GuestDataset("guest", TODAY))
        self.healthy_updates = healthy_updates

    async def update(self, table, row_id, patch):
        if self.healthy_updates <= 0:
            raise SyncError("down")
        self.healthy_updates -= 1
        return await super().update(table, row_id, patch)


def _rows(seed=True, hub=None):
    return GuestRowStore("guest", GuestDataset("guest", TODAY, seed=seed), hub)


class TestTracker(unittest.IsolatedAsyncioTestCase):
    async def test_streak_board_from_fixture(self) -> None:
        board = await tracker.streak_board(_rows(), datetime(2024, 5, 15, 23, 0), tz_name="UTC")
        streaks = board["streaks"]
        self.assertEqual((streaks["dsa"]["current"], streaks["dsa"]["longest"]), (2, 2))
        self.assertEqual(streaks["gym"]["current"], 2)
        self.assertEqual(streaks["reflection"]["current"], 0)
        self.assertTrue(streaks["reflection"]["at_risk"])
        self.assertFalse(streaks["dsa"]["at_risk"])
        self.assertEqual(board["warnings"], [])

    async def test_failed_fetch_degrades_to_zero(self) -> None:
        with self.assertLogs("operator_api.services.tracker", level="WARNING"):
            board = await tracker.streak_board(_UnreachableRows(), datetime(2024, 5, 15, 12, 0))
        self.assertEqual(board["streaks"]["dsa"]["current"], 0)
        self.assertIn("Failed to sync dsa_problems", board["warnings"])
        grid = await tracker.completion_grid(_UnreachableRows(), TODAY)
        self.assertEqual(len(grid["days"]), 7)
        self.assertTrue(grid["warnings"])

    async def test_unknown_kind(self) -> None:
        with self.assertRaises(ValueError):
            await tracker.activity_streak(_rows(), "yoga", datetime(2024, 5, 15, 12, 0))
        with self.assertRaises(ValueError):
            await tracker.activity_streak(_rows(), "habit", datetime(2024, 5, 15, 12, 0))

    async def test_habit_streak_by_id(self) -> None:
        result = await tracker.activity_streak(_rows(), "habit", datetime(2024, 5, 15, 12, 0), habit_id="habit-1")
        self.assertEqual(result["current"], 2)

    async def test_dsa_counts(self) -> None:
        counts = await tracker.dsa_counts(_rows(), TODAY)
        self.assertEqual((counts["today"], counts["week"], counts["streak"]), (2, 3, 2))

    async def test_habit_heatmap(self) -> None:
        days, warnings = await tracker.habit_heatmap(_rows(), TODAY - timedelta(days=2), TODAY)
        self.assertEqual(warnings, [])
        self.assertEqual([day.completed_count for day in days], [0, 2, 3])
        self.assertEqual(days[-1].total_possible, 4)
        self.assertEqual(days[-1].intensity_bucket, 2)
        with self.assertRaises(ValueError):
            await tracker.habit_heatmap(_rows(), TODAY, TODAY - timedelta(days=1))

    async def test_completion_grid(self) -> None:
        grid = await tracker.completion_grid(_rows(), TODAY, tz_name="UTC")
        today = grid["days"][-1]
        self.assertEqual(today["date"], TODAY.isoformat())
        self.assertTrue(today["coding_done"])
        self.assertTrue(today["gym_done"])
        self.assertEqual((today["todos_completed"], today["todos_total"]), (3, 8))
        self.assertEqual(grid["days"][0]["todos_total"], 0)

    async def test_weekly_summary(self) -> None:
        summary = await tracker.weekly_summary(_rows(), TODAY, tz_name="UTC")
        self.assertEqual(summary["week_start"], "2024-05-13")
        self.assertEqual(summary["days_elapsed"], 3)
        self.assertEqual(summary["dsa_solved"], 3)
        self.assertEqual(summary["gym_days"], 2)
        self.assertEqual(summary["focus_minutes"], 130)
        self.assertEqual(summary["night_reflections"], 1)
        self.assertEqual(summary["todo_completion"], 0.375)
        self.assertEqual(summary["habit_completion"], 0.4167)


class TestActions(unittest.IsolatedAsyncioTestCase):
    async def test_add_and_toggle_todo(self) -> None:
        rows = _rows(seed=False)
        with self.assertRaises(ValueError):
            await actions.add_todo(rows, "  ", TODAY)
        todo = await actions.add_todo(rows, " Stretch ", TODAY, priority="URGENT", category="gym")
        self.assertEqual((todo["text"], todo["priority"], todo["category"]), ("Stretch", "medium", "gym"))
        self.assertTrue((await actions.toggle_todo(rows, todo["id"]))["completed"])
        self.assertFalse((await actions.toggle_todo(rows, todo["id"]))["completed"])
        self.assertEqual(await actions.toggle_todo(rows, "missing"), {})

    async def test_toggle_habit_refreshes_streak_columns(self) -> None:
        rows = _rows(seed=False)
        habit = await actions.add_habit(rows, "Read")
        for offset in (2, 1, 0):
            result = await actions.toggle_habit(rows, habit["id"], TODAY - timedelta(days=offset), TODAY)
        self.assertTrue(result["completed"])
        self.assertEqual((result["habit"]["current_streak"], result["habit"]["best_streak"]), (3, 3))

        result = await actions.toggle_habit(rows, habit["id"], TODAY, TODAY)
        self.assertFalse(result["completed"])
        self.assertEqual((result["habit"]["current_streak"], result["habit"]["best_streak"]), (0, 3))

        self.assertIsNone(await actions.toggle_habit(rows, "missing", TODAY, TODAY))
        with self.assertRaises(ValueError):
            await actions.toggle_habit(rows, habit["id"], TODAY + timedelta(days=1), TODAY)

    async def test_delete_habit_removes_completions(self) -> None:
        rows = _rows()
        self.assertTrue(await actions.delete_habit(rows, "habit-1"))
        completions = await rows.list("habit_completions")
        self.assertFalse(any(item["habit_id"] == "habit-1" for item in completions))

    async def test_daily_reset_archives_once_per_day(self) -> None:
        rows = _rows()
        keyed = MemoryKeyedStore()
        first = await actions.daily_reset(rows, keyed, TODAY)
        self.assertEqual(first, {"reset": True, "archived": 3})
        self.assertFalse(any(todo["completed"] for todo in await rows.list("todos")))
        self.assertEqual(len(await actions.archived_todos(rows, keyed)), 3)
        self.assertEqual(await keyed.get(Scope("last_daily_reset", "guest")), TODAY.isoformat())
        second = await actions.daily_reset(rows, keyed, TODAY)
        self.assertEqual(second, {"reset": False, "archived": 0})

    async def test_daily_reset_retry_does_not_duplicate_archive(self) -> None:
        rows = _FlakyRows(healthy_updates=1)
        keyed = MemoryKeyedStore()
        with self.assertRaises(SyncError):
            await actions.daily_reset(rows, keyed, TODAY)
        self.assertIsNone(await keyed.get(Scope("last_daily_reset", "guest")))

        rows.healthy_updates = 10
        retry = await actions.daily_reset(rows, keyed, TODAY)
        self.assertEqual(retry, {"reset": True, "archived": 0})
        archive = await actions.archived_todos(rows, keyed)
        self.assertEqual(len(archive), 3)
        self.assertEqual(len({item["id"] for item in archive}), 3)
        self.assertFalse(any(todo["completed"] for todo in await rows.list("todos")))

    async def test_todo_choices_normalized_on_add_and_update(self) -> None:
        rows = _rows(seed=False)
        todo = await actions.add_todo(rows, "Revise", TODAY, priority="HIGH", category="Study")
        self.assertEqual((todo["priority"], todo["category"]), ("high", "study"))
        patched = await actions.update_todo(rows, todo["id"], {"priority": "LOW", "category": "College"})
        self.assertEqual((patched["priority"], patched["category"]), ("low", "college"))
        patched = await actions.update_todo(rows, todo["id"], {"priority": "urgent"})
        self.assertEqual(patched["priority"], "medium")

    async def test_log_dsa_default_names(self) -> None:
        rows = _rows(seed=False)
        first = await actions.log_dsa_problem(rows, TODAY)
        second = await actions.log_dsa_problem(rows, TODAY, difficulty="hard")
        self.assertEqual((first["problem_name"], second["problem_name"]), ("Problem 1", "Problem 2"))

    async def test_gym_toggle(self) -> None:
        rows = _rows(seed=False)
        now = datetime(2024, 5, 15, 6, 40)
        checked = await actions.toggle_gym_checkin(rows, now)
        self.assertTrue(checked["checked_in"])
        self.assertEqual(checked["item"]["checkin_time"], "06:40")
        self.assertFalse((await actions.toggle_gym_checkin(rows, now))["checked_in"])
        self.assertEqual(await rows.list("gym_checkins"), [])

    async def test_focus_reflection_and_projects(self) -> None:
        rows = _rows(seed=False)
        with self.assertRaises(ValueError):
            await actions.add_focus_session(rows, "study", 0)
        reflection = await actions.add_reflection(rows, "Night", TODAY, content={"wins": ["gym"]}, mood_score=4)
        self.assertEqual(reflection["reflection_type"], "night")
        self.assertEqual(reflection["content"], '{"wins": ["gym"]}')
        task = await actions.add_project_task(rows, "NoteAura", "Ship search", due_date="2024-06-01")
        self.assertEqual(task["due_date"], "2024-06-01")
        updated = await actions.update_project_task(rows, task["id"], {"status": "done"})
        self.assertEqual(updated["status"], "done")
        with self.assertRaises(ValueError):
            await actions.update_project_task(rows, task["id"], {"due_date": "soon"})


class TestPlanner(unittest.IsolatedAsyncioTestCase):
    async def test_seed_is_idempotent(self) -> None:
        rows = _rows(seed=False)
        first = await planner.seed_defaults(rows, TODAY)
        second = await planner.seed_defaults(rows, TODAY)
        self.assertEqual(len(first), 11)
        self.assertEqual([block["id"] for block in first], [block["id"] for block in second])

    async def test_add_block_validates_slot(self) -> None:
        rows = _rows(seed=False)
        with self.assertRaises(ValueError):
            await planner.add_block(rows, TODAY, "9am-10am", "Study")
        block = await planner.add_block(rows, TODAY, "9:00-10:00", "Study", block_type="study")
        self.assertEqual(block["time_slot"], "09:00-10:00")
        with self.assertRaises(ValueError):
            await planner.update_block(rows, block["id"], {"time_slot": "10-"})

    async def test_current_missed_and_overlaps(self) -> None:
        rows = _rows(seed=False)
        await planner.seed_defaults(rows, TODAY)
        current = await planner.current(rows, datetime(2024, 5, 15, 18, 0))
        self.assertEqual(current["now"], "18:00")
        self.assertEqual(current["block"]["task"], "TUF DSA Concept")
        self.assertEqual(current["next"]["time_slot"], "18:15-19:15")
        self.assertEqual(current["routine"]["task"], "TUF DSA Concept Video")

        missed = await planner.missed(rows, datetime(2024, 5, 15, 19, 30), since="17:00")
        self.assertEqual(len(missed["items"]), 3)

        await planner.add_block(rows, TODAY, "18:00-18:30", "Call")
        self.assertEqual(len(await planner.overlaps(rows, TODAY)), 2)

    async def test_toggle_and_delete_block(self) -> None:
        rows = _rows(seed=False)
        block = await planner.add_block(rows, TODAY, "21:00-21:45", "Wind Down")
        self.assertTrue((await planner.toggle_block(rows, block["id"]))["completed"])
        self.assertTrue(await planner.delete_block(rows, block["id"]))
        self.assertEqual(await planner.toggle_block(rows, block["id"]), {})


class TestLiveSnapshots(unittest.IsolatedAsyncioTestCase):
    async def test_snapshot_rebuilds_after_change(self) -> None:
        hub = ChangeHub()
        rows = _rows(hub=hub)
        snapshots = LiveSnapshots(hub)
        now = datetime(2024, 5, 15, 18, 0, tzinfo=timezone.utc)

        first = await snapshots.get(rows, now, "UTC")
        self.assertEqual(first["pending_todos"], 5)
        await snapshots.get(rows, now, "UTC")
        self.assertEqual(snapshots.rebuilds, 1)

        await actions.add_todo(rows, "Drink water", TODAY)
        self.assertTrue(snapshots.is_stale("guest"))
        refreshed = await snapshots.get(rows, now, "UTC")
        self.assertEqual(refreshed["pending_todos"], 6)
        self.assertEqual(snapshots.rebuilds, 2)
        snapshots.close()
        self.assertEqual(hub.subscriber_count("guest"), 0)

    async def test_build_snapshot_collects_warnings(self) -> None:
        with self.assertLogs("operator_api.services.tracker", level="WARNING"):
            snapshot = await build_snapshot(_UnreachableRows(), datetime(2024, 5, 15, 9, 0))
        self.assertEqual(snapshot["todos"], [])
        self.assertIn("Failed to sync todos", snapshot["warnings"])


if __name__ == "__main__":
    unittest.main()
