from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from consistency.schedule import default_blocks_for


def _todos(today: str) -> list[dict]:
    items = [
        ("Complete TUF DSA arrays section", True, "high", "study"),
        ("Gym workout - Push day", True, "medium", "gym"),
        ("Review system design concepts", True, "high", "study"),
        ("Update resume with latest projects", False, "medium", "personal"),
        ("Practice LeetCode medium problems", False, "high", "study"),
        ("Plan weekend schedule", False, "low", "personal"),
        ("Read about new React features", False, "medium", "study"),
        ("Prepare for tomorrow meetings", False, "high", "college"),
    ]
    return [
        {"text": text, "completed": done, "priority": priority, "category": category, "created_date": today}
        for text, done, priority, category in items
    ]


def _habits() -> list[dict]:
    return [
        {"id": "habit-1", "name": "Morning Exercise", "category": "fitness", "color": "#22C55E", "icon": "🏃",
         "current_streak": 7, "best_streak": 15, "target_frequency": 1},
        {"id": "habit-2", "name": "Daily Reading", "category": "learning", "color": "#3B82F6", "icon": "📚",
         "current_streak": 12, "best_streak": 20, "target_frequency": 1},
        {"id": "habit-3", "name": "Meditation", "category": "wellness", "color": "#8B5CF6", "icon": "🧘",
         "current_streak": 5, "best_streak": 10, "target_frequency": 1},
        {"id": "habit-4", "name": "Coding Practice", "category": "learning", "color": "#F59E0B", "icon": "💻",
         "current_streak": 9, "best_streak": 14, "target_frequency": 1},
    ]


def guest_fixture(today: date) -> dict[str, list[dict]]:
    """Demo rows for a guest session, dated relative to ``today``."""
    today_iso = today.isoformat()
    yesterday_iso = (today - timedelta(days=1)).isoformat()
    noon_utc = datetime.combine(today, time(12, 0), tzinfo=timezone.utc)

    blocks = default_blocks_for(today)
    for block in blocks[:3]:
        block["completed"] = True

    return {
        "todos": _todos(today_iso),
        "habits": _habits(),
        "habit_completions": [
            {"habit_id": "habit-1", "completed_date": today_iso},
            {"habit_id": "habit-2", "completed_date": today_iso},
            {"habit_id": "habit-4", "completed_date": today_iso},
            {"habit_id": "habit-1", "completed_date": yesterday_iso},
            {"habit_id": "habit-2", "completed_date": yesterday_iso},
        ],
        "dsa_problems": [
            {"problem_name": "Two Sum", "difficulty": "easy", "topic": "Arrays", "solved_date": today_iso},
            {"problem_name": "Binary Tree Inorder", "difficulty": "medium", "topic": "Trees", "solved_date": today_iso},
            {"problem_name": "Merge Intervals", "difficulty": "medium", "topic": "Arrays", "solved_date": yesterday_iso},
        ],
        "gym_checkins": [
            {"checkin_date": today_iso, "checkin_time": "06:30"},
            {"checkin_date": yesterday_iso, "checkin_time": "07:00"},
        ],
        "daily_blocks": blocks,
        "focus_sessions": [
            {"session_type": "study", "duration_minutes": 25, "completed": True, "created_at": noon_utc.isoformat()},
            {"session_type": "dsa", "duration_minutes": 45, "completed": True, "created_at": noon_utc.isoformat()},
            {"session_type": "dev", "duration_minutes": 60, "completed": True,
             "created_at": (noon_utc - timedelta(hours=1)).isoformat()},
        ],
        "notes": [
            {"content": "Need to focus on dynamic programming problems this week."},
            {"content": "Great workout today - increased weights on bench press."},
            {"content": "Weekly goals: 5 DSA problems, 3 gym sessions, 1 project deployment."},
        ],
        "reflections": [
            {"reflection_type": "night", "date": yesterday_iso, "content": "Solid day.", "mood_score": 4},
        ],
        "project_tasks": [
            {"project_name": "NoteAura", "task_title": "Ship search", "status": "in_progress", "priority": "high"},
        ],
    }
