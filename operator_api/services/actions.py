from __future__ import annotations

import json
import logging
from datetime import date, datetime

from consistency.constants import DIFFICULTIES, PRIORITIES, TODO_CATEGORIES
from consistency.dates import parse_day
from consistency.streaks import activity_days, streak_summary
from operator_api.store.base import RowQuery, RowStore
from operator_api.store.keyed import KeyedStore, Scope

logger = logging.getLogger(__name__)

LAST_RESET_FEATURE = "last_daily_reset"
ARCHIVE_FEATURE = "archived_todos"
ARCHIVE_LIMIT = 500


def _require_text(value, label: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValueError(f"{label} cannot be empty")
    return text


def _normalize_choice(value, choices, default: str) -> str:
    choice = str(value or "").strip().lower()
    return choice if choice in choices else default


def _day_or_today(day, today: date) -> str:
    if day is None:
        return today.isoformat()
    parsed = parse_day(day)
    if parsed is None:
        raise ValueError("Invalid date")
    return parsed.isoformat()


async def list_todos(rows: RowStore, day: date | None = None) -> list[dict]:
    query = RowQuery()
    if day is not None:
        query.eq["created_date"] = day.isoformat()
    return await rows.list("todos", query)


async def add_todo(
    rows: RowStore,
    text: str,
    today: date,
    priority: str = "medium",
    category: str = "personal",
) -> dict:
    return await rows.insert(
        "todos",
        {
            "text": _require_text(text, "Todo text"),
            "completed": False,
            "priority": _normalize_choice(priority, PRIORITIES, "medium"),
            "category": _normalize_choice(category, TODO_CATEGORIES, "personal"),
            "created_date": today.isoformat(),
        },
    )


async def toggle_todo(rows: RowStore, todo_id: str) -> dict:
    todo = await rows.get("todos", todo_id)
    if not todo:
        return {}
    return await rows.update("todos", todo_id, {"completed": not todo.get("completed")})


async def update_todo(rows: RowStore, todo_id: str, patch: dict) -> dict:
    clean = dict(patch or {})
    if "text" in clean:
        clean["text"] = _require_text(clean["text"], "Todo text")
    if clean.get("priority") is not None:
        clean["priority"] = _normalize_choice(clean["priority"], PRIORITIES, "medium")
    if clean.get("category") is not None:
        clean["category"] = _normalize_choice(clean["category"], TODO_CATEGORIES, "personal")
    return await rows.update("todos", todo_id, clean)


async def delete_todo(rows: RowStore, todo_id: str) -> bool:
    return await rows.delete("todos", todo_id)


async def daily_reset(rows: RowStore, keyed: KeyedStore, today: date) -> dict:
    """Archive completed todos once per local day and clear completion flags."""
    last_scope = Scope(LAST_RESET_FEATURE, rows.user_id)
    if await keyed.get(last_scope) == today.isoformat():
        return {"reset": False, "archived": 0}

    completed = await rows.list("todos", RowQuery(eq={"completed": True}))
    fresh = []
    if completed:
        archive_scope = Scope(ARCHIVE_FEATURE, rows.user_id)
        archive = await keyed.get(archive_scope, default=[]) or []
        # a retry after a partial reset must not archive the same todo twice
        archived_today = {item.get("id") for item in archive if item.get("archived_date") == today.isoformat()}
        fresh = [todo for todo in completed if todo["id"] not in archived_today]
        if fresh:
            archive.extend({**todo, "archived_date": today.isoformat()} for todo in fresh)
            await keyed.set(archive_scope, archive[-ARCHIVE_LIMIT:])
        for todo in completed:
            await rows.update("todos", todo["id"], {"completed": False})
    await keyed.set(last_scope, today.isoformat())
    logger.info("Daily reset archived %s todos", len(fresh))
    return {"reset": True, "archived": len(fresh)}


async def archived_todos(rows: RowStore, keyed: KeyedStore) -> list[dict]:
    return await keyed.get(Scope(ARCHIVE_FEATURE, rows.user_id), default=[]) or []


async def add_note(rows: RowStore, content: str) -> dict:
    return await rows.insert("notes", {"content": _require_text(content, "Note")})


async def log_dsa_problem(
    rows: RowStore,
    today: date,
    problem_name: str | None = None,
    difficulty: str | None = None,
    topic: str | None = None,
) -> dict:
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise ValueError("Invalid difficulty")
    name = str(problem_name or "").strip()
    if not name:
        solved_today = await rows.list("dsa_problems", RowQuery(eq={"solved_date": today.isoformat()}))
        name = f"Problem {len(solved_today) + 1}"
    return await rows.insert(
        "dsa_problems",
        {
            "problem_name": name,
            "difficulty": difficulty,
            "topic": topic,
            "solved_date": today.isoformat(),
        },
    )


async def toggle_gym_checkin(rows: RowStore, now: datetime) -> dict:
    today = now.date().isoformat()
    existing = await rows.list("gym_checkins", RowQuery(eq={"checkin_date": today}))
    if existing:
        for checkin in existing:
            await rows.delete("gym_checkins", checkin["id"])
        return {"checked_in": False, "date": today}
    record = await rows.insert("gym_checkins", {"checkin_date": today, "checkin_time": now.strftime("%H:%M")})
    return {"checked_in": True, "date": today, "item": record}


async def add_habit(rows: RowStore, name: str, category: str | None = None, color: str | None = None,
                    icon: str | None = None, target_frequency: int = 1) -> dict:
    if target_frequency < 1:
        raise ValueError("target_frequency must be at least 1")
    return await rows.insert(
        "habits",
        {
            "name": _require_text(name, "Habit name"),
            "category": category,
            "color": color,
            "icon": icon,
            "target_frequency": target_frequency,
        },
    )


async def delete_habit(rows: RowStore, habit_id: str) -> bool:
    deleted = await rows.delete("habits", habit_id)
    if deleted:
        for completion in await rows.list("habit_completions", RowQuery(eq={"habit_id": habit_id})):
            await rows.delete("habit_completions", completion["id"])
    return deleted


async def toggle_habit(rows: RowStore, habit_id: str, day, today: date) -> dict | None:
    """Flip a habit's completion for ``day`` and refresh its streak columns.

    Returns ``None`` when the habit does not exist.
    """
    habit = await rows.get("habits", habit_id)
    if not habit:
        return None
    day_iso = _day_or_today(day, today)
    if day_iso > today.isoformat():
        raise ValueError("Cannot complete a habit in the future")

    existing = await rows.list(
        "habit_completions", RowQuery(eq={"habit_id": habit_id, "completed_date": day_iso})
    )
    if existing:
        for completion in existing:
            await rows.delete("habit_completions", completion["id"])
        completed = False
    else:
        await rows.insert("habit_completions", {"habit_id": habit_id, "completed_date": day_iso})
        completed = True

    completions = await rows.list("habit_completions", RowQuery(eq={"habit_id": habit_id}))
    summary = streak_summary(activity_days(item.get("completed_date") for item in completions), today)
    best = max(int(habit.get("best_streak") or 0), summary.longest)
    record = await rows.update(
        "habits", habit_id, {"current_streak": summary.current, "best_streak": best}
    )
    return {"habit": record, "date": day_iso, "completed": completed}


async def add_focus_session(rows: RowStore, session_type: str, duration_minutes: int,
                            completed: bool = True, notes: str | None = None) -> dict:
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    return await rows.insert(
        "focus_sessions",
        {
            "session_type": _require_text(session_type, "Session type"),
            "duration_minutes": duration_minutes,
            "completed": completed,
            "notes": notes,
        },
    )


async def add_reflection(rows: RowStore, reflection_type: str, today: date, content=None,
                         mood_score: int | None = None, day=None) -> dict:
    if mood_score is not None and not 1 <= mood_score <= 10:
        raise ValueError("mood_score must be between 1 and 10")
    if content is not None and not isinstance(content, str):
        content = json.dumps(content, ensure_ascii=False)
    return await rows.insert(
        "reflections",
        {
            "reflection_type": _require_text(reflection_type, "Reflection type").lower(),
            "date": _day_or_today(day, today),
            "content": content,
            "mood_score": mood_score,
        },
    )


async def add_project_task(rows: RowStore, project_name: str, task_title: str, description: str | None = None,
                           status: str = "todo", priority: str = "medium", due_date=None) -> dict:
    if priority not in PRIORITIES:
        raise ValueError("Invalid priority")
    return await rows.insert(
        "project_tasks",
        {
            "project_name": _require_text(project_name, "Project name"),
            "task_title": _require_text(task_title, "Task title"),
            "description": description,
            "status": status or "todo",
            "priority": priority,
            "due_date": parse_day(due_date) if due_date is not None else None,
        },
    )


async def update_project_task(rows: RowStore, task_id: str, patch: dict) -> dict:
    clean = dict(patch or {})
    if clean.get("priority") is not None and clean["priority"] not in PRIORITIES:
        raise ValueError("Invalid priority")
    if clean.get("due_date") is not None:
        due = parse_day(clean["due_date"])
        if due is None:
            raise ValueError("Invalid date")
        clean["due_date"] = due
    return await rows.update("project_tasks", task_id, clean)
