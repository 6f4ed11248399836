"""Fetch-and-aggregate pipelines behind the streak, heatmap and summary views.

Every fetch goes through ``safe_list``: a store failure degrades to an empty
result plus a warning, so one unreachable table never hides the rest of a
dashboard and a failed fetch yields a zero streak rather than a partial one.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from consistency.constants import STREAK_RISK_HOURS
from consistency.dates import date_range, to_local_day, week_bounds
from consistency.intensity import DayIntensity, day_intensity, intensity
from consistency.streaks import activity_days, streak_at_risk, streak_summary
from operator_api.store.base import RowQuery, RowStore, SyncError

logger = logging.getLogger(__name__)

# kind -> (table, day column, fixed filters)
ACTIVITY_SOURCES = {
    "dsa": ("dsa_problems", "solved_date", {}),
    "gym": ("gym_checkins", "checkin_date", {}),
    "reflection": ("reflections", "date", {"reflection_type": "night"}),
    "focus": ("focus_sessions", "created_at", {"completed": True}),
    "habit": ("habit_completions", "completed_date", {}),
}
STREAK_BOARD_KINDS = ["dsa", "gym", "reflection"]

SLEEP_KEYWORDS = ("sleep", "bed", "rest")
DIET_KEYWORDS = ("water", "meal", "protein", "diet")


async def safe_list(rows: RowStore, table: str, query: RowQuery | None, warnings: list[str]) -> list[dict]:
    try:
        return await rows.list(table, query)
    except SyncError:
        logger.warning("Using empty %s after sync failure", table)
        message = f"Failed to sync {table}"
        if message not in warnings:
            warnings.append(message)
        return []


def _days_from_rows(items: list[dict], column: str, tz_name: str | None) -> set[date]:
    if column == "created_at":
        return {day for day in (to_local_day(item.get(column), tz_name) for item in items) if day is not None}
    return activity_days(item.get(column) for item in items)


def _range_query(column: str, start: date, end: date, eq: dict | None = None) -> RowQuery:
    if column == "created_at":
        # timestamps are UTC; widen by a day each side and filter by local day afterwards
        return RowQuery(eq=dict(eq or {}), since=(start - timedelta(days=1)).isoformat(),
                        until=(end + timedelta(days=2)).isoformat())
    return RowQuery(eq=dict(eq or {}), since=start.isoformat(), until=end.isoformat())


async def activity_dates(
    rows: RowStore,
    kind: str,
    warnings: list[str],
    habit_id: str | None = None,
    tz_name: str | None = None,
) -> set[date]:
    if kind not in ACTIVITY_SOURCES:
        raise ValueError(f"Unknown activity kind: {kind}")
    table, column, fixed = ACTIVITY_SOURCES[kind]
    eq = dict(fixed)
    if kind == "habit":
        if not habit_id:
            raise ValueError("habit_id is required for habit streaks")
        eq["habit_id"] = habit_id
    items = await safe_list(rows, table, RowQuery(eq=eq), warnings)
    return _days_from_rows(items, column, tz_name)


async def activity_streak(
    rows: RowStore,
    kind: str,
    now: datetime,
    habit_id: str | None = None,
    tz_name: str | None = None,
) -> dict:
    warnings: list[str] = []
    today = now.date()
    days = await activity_dates(rows, kind, warnings, habit_id=habit_id, tz_name=tz_name)
    summary = streak_summary(days, today)
    cutoff = STREAK_RISK_HOURS.get(kind)
    return {
        "kind": kind,
        **summary.as_dict(),
        "active_today": today in days,
        "at_risk": bool(cutoff is not None and streak_at_risk(days, today, now.hour, cutoff)),
        "warnings": warnings,
    }


async def streak_board(rows: RowStore, now: datetime, tz_name: str | None = None) -> dict:
    streaks = {}
    warnings: list[str] = []
    for kind in STREAK_BOARD_KINDS:
        result = await activity_streak(rows, kind, now, tz_name=tz_name)
        warnings.extend(item for item in result.pop("warnings") if item not in warnings)
        streaks[kind] = result
    return {"today": now.date().isoformat(), "streaks": streaks, "warnings": warnings}


async def dsa_counts(rows: RowStore, today: date) -> dict:
    warnings: list[str] = []
    items = await safe_list(rows, "dsa_problems", None, warnings)
    week_start = today - timedelta(days=7)
    solved = [activity_days([item.get("solved_date")]) for item in items]
    today_count = sum(1 for days in solved if today in days)
    week_count = sum(1 for days in solved if any(week_start <= day <= today for day in days))
    days = activity_days(item.get("solved_date") for item in items)
    return {
        "today": today_count,
        "week": week_count,
        "streak": streak_summary(days, today).current,
        "warnings": warnings,
    }


async def habit_streaks(rows: RowStore, today: date) -> dict:
    warnings: list[str] = []
    habits = await safe_list(rows, "habits", None, warnings)
    completions = await safe_list(rows, "habit_completions", None, warnings)
    by_habit: dict[str, set[date]] = {}
    for item in completions:
        day = to_local_day(item.get("completed_date"))
        if day is not None:
            by_habit.setdefault(str(item.get("habit_id")), set()).add(day)
    items = []
    for habit in habits:
        days = by_habit.get(str(habit.get("id")), set())
        summary = streak_summary(days, today)
        items.append(
            {
                "habit_id": habit.get("id"),
                "name": habit.get("name"),
                "current": summary.current,
                "longest": summary.longest,
                "completed_today": today in days,
            }
        )
    return {"today": today.isoformat(), "items": items, "warnings": warnings}


async def habit_heatmap(rows: RowStore, start: date, end: date) -> tuple[list[DayIntensity], list[str]]:
    if end < start:
        raise ValueError("End date must be after start date")
    warnings: list[str] = []
    habits = await safe_list(rows, "habits", None, warnings)
    habit_ids = {str(habit.get("id")) for habit in habits}
    completions = await safe_list(rows, "habit_completions", _range_query("completed_date", start, end), warnings)
    done_by_day: dict[date, set[str]] = {}
    for item in completions:
        habit_id = str(item.get("habit_id"))
        day = to_local_day(item.get("completed_date"))
        if day is None or habit_id not in habit_ids:
            continue
        done_by_day.setdefault(day, set()).add(habit_id)
    days = [day_intensity(day, len(done_by_day.get(day, set())), len(habit_ids)) for day in date_range(start, end)]
    return days, warnings


def _mentions(todo: dict, keywords) -> bool:
    text = str(todo.get("text") or "").lower()
    return any(keyword in text for keyword in keywords)


async def completion_grid(rows: RowStore, today: date, days: int = 7, tz_name: str | None = None) -> dict:
    if days < 1:
        raise ValueError("days must be at least 1")
    warnings: list[str] = []
    start = today - timedelta(days=days - 1)
    dsa_days = _days_from_rows(
        await safe_list(rows, "dsa_problems", _range_query("solved_date", start, today), warnings),
        "solved_date",
        tz_name,
    )
    focus_days = _days_from_rows(
        await safe_list(rows, "focus_sessions", _range_query("created_at", start, today), warnings),
        "created_at",
        tz_name,
    )
    gym_days = _days_from_rows(
        await safe_list(rows, "gym_checkins", _range_query("checkin_date", start, today), warnings),
        "checkin_date",
        tz_name,
    )
    todos = await safe_list(rows, "todos", _range_query("created_date", start, today), warnings)
    todos_by_day: dict[date, list[dict]] = {}
    for todo in todos:
        day = to_local_day(todo.get("created_date"))
        if day is not None:
            todos_by_day.setdefault(day, []).append(todo)

    items = []
    for day in date_range(start, today):
        day_todos = todos_by_day.get(day, [])
        done_todos = [todo for todo in day_todos if todo.get("completed")]
        flags = {
            "coding_done": day in dsa_days or day in focus_days,
            "gym_done": day in gym_days,
            "sleep_good": any(_mentions(todo, SLEEP_KEYWORDS) for todo in done_todos),
            "diet_good": any(_mentions(todo, DIET_KEYWORDS) for todo in done_todos),
        }
        ratio, bucket = intensity(sum(flags.values()), len(flags))
        items.append(
            {
                "date": day.isoformat(),
                **flags,
                "todos_completed": len(done_todos),
                "todos_total": len(day_todos),
                "ratio": ratio,
                "intensity_bucket": bucket,
            }
        )
    return {"days": items, "warnings": warnings}


async def weekly_summary(rows: RowStore, today: date, tz_name: str | None = None) -> dict:
    """Plain counts for the current Monday-Sunday week, up to today."""
    warnings: list[str] = []
    start, _ = week_bounds(today)
    elapsed = (today - start).days + 1

    dsa = await safe_list(rows, "dsa_problems", _range_query("solved_date", start, today), warnings)
    gym_days = _days_from_rows(
        await safe_list(rows, "gym_checkins", _range_query("checkin_date", start, today), warnings),
        "checkin_date",
        tz_name,
    )
    focus_minutes = 0
    for session in await safe_list(rows, "focus_sessions", _range_query("created_at", start, today), warnings):
        day = to_local_day(session.get("created_at"), tz_name)
        if session.get("completed") and day is not None and start <= day <= today:
            focus_minutes += int(session.get("duration_minutes") or 0)
    todos = await safe_list(rows, "todos", _range_query("created_date", start, today), warnings)
    todos_done = sum(1 for todo in todos if todo.get("completed"))
    reflections = await safe_list(
        rows, "reflections", _range_query("date", start, today, {"reflection_type": "night"}), warnings
    )
    heatmap, heatmap_warnings = await habit_heatmap(rows, start, today)
    warnings.extend(item for item in heatmap_warnings if item not in warnings)
    habits_done = sum(day.completed_count for day in heatmap)
    habits_possible = sum(day.total_possible for day in heatmap)
    todo_ratio, _ = intensity(todos_done, len(todos))
    habit_ratio, habit_bucket = intensity(habits_done, habits_possible)

    return {
        "week_start": start.isoformat(),
        "days_elapsed": elapsed,
        "dsa_solved": len(dsa),
        "gym_days": len(gym_days),
        "focus_minutes": focus_minutes,
        "night_reflections": len(activity_days(item.get("date") for item in reflections)),
        "todos_completed": todos_done,
        "todos_total": len(todos),
        "todo_completion": round(todo_ratio, 4),
        "habit_completion": round(habit_ratio, 4),
        "habit_intensity_bucket": habit_bucket,
        "warnings": warnings,
    }
