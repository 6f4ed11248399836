from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException

from operator_api.auth import get_rows, get_user_now
from operator_api.schemas import HabitCreate
from operator_api.services import actions, tracker
from operator_api.store.base import RowStore

router = APIRouter()


@router.get("/v1/habits")
async def list_habits(rows: RowStore = Depends(get_rows)):
    return {"items": await rows.list("habits")}


@router.post("/v1/habits")
async def create_habit(payload: HabitCreate, rows: RowStore = Depends(get_rows)):
    try:
        return await actions.add_habit(
            rows,
            payload.name,
            category=payload.category,
            color=payload.color,
            icon=payload.icon,
            target_frequency=payload.target_frequency,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/v1/habits/streaks")
async def habit_streaks(rows: RowStore = Depends(get_rows), now: datetime = Depends(get_user_now)):
    return await tracker.habit_streaks(rows, now.date())


@router.delete("/v1/habits/{habit_id}")
async def delete_habit(habit_id: str, rows: RowStore = Depends(get_rows)):
    if not await actions.delete_habit(rows, habit_id):
        raise HTTPException(status_code=404, detail="Habit not found")
    return {"ok": True}


@router.post("/v1/habits/{habit_id}/toggle/{day}")
async def toggle_habit(
    habit_id: str,
    day: date,
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
):
    try:
        result = await actions.toggle_habit(rows, habit_id, day, now.date())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if result is None:
        raise HTTPException(status_code=404, detail="Habit not found")
    return result
