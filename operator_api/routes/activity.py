from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from operator_api.auth import get_rows, get_user_now
from operator_api.schemas import DsaCreate, FocusCreate, ReflectionCreate
from operator_api.services import actions, tracker
from operator_api.store.base import RowQuery, RowStore

router = APIRouter()


def _range(start: Optional[date], end: Optional[date], today: date, default_days: int = 30) -> RowQuery:
    end = end or today
    start = start or end - timedelta(days=default_days - 1)
    if end < start:
        raise HTTPException(status_code=400, detail="End date must be after start date")
    return RowQuery(since=start.isoformat(), until=end.isoformat())


@router.get("/v1/dsa")
async def list_dsa(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
):
    items = await rows.list("dsa_problems", _range(start, end, now.date()))
    counts = await tracker.dsa_counts(rows, now.date())
    return {"items": items, "counts": counts}


@router.post("/v1/dsa")
async def log_dsa(payload: DsaCreate, rows: RowStore = Depends(get_rows), now: datetime = Depends(get_user_now)):
    try:
        return await actions.log_dsa_problem(
            rows, now.date(), problem_name=payload.problem_name, difficulty=payload.difficulty, topic=payload.topic
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/v1/gym")
async def list_gym(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
):
    items = await rows.list("gym_checkins", _range(start, end, now.date()))
    today = now.date().isoformat()
    return {"items": items, "checked_in_today": any(item.get("checkin_date") == today for item in items)}


@router.post("/v1/gym/toggle")
async def toggle_gym(rows: RowStore = Depends(get_rows), now: datetime = Depends(get_user_now)):
    return await actions.toggle_gym_checkin(rows, now)


@router.get("/v1/focus")
async def list_focus(limit: int = Query(50, ge=1, le=500), rows: RowStore = Depends(get_rows)):
    return {"items": await rows.list("focus_sessions", RowQuery(descending=True, limit=limit))}


@router.post("/v1/focus")
async def create_focus(payload: FocusCreate, rows: RowStore = Depends(get_rows)):
    try:
        return await actions.add_focus_session(
            rows, payload.session_type, payload.duration_minutes, completed=payload.completed, notes=payload.notes
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/v1/reflections")
async def list_reflections(
    reflection_type: Optional[str] = Query(None),
    limit: int = Query(30, ge=1, le=365),
    rows: RowStore = Depends(get_rows),
):
    query = RowQuery(descending=True, limit=limit)
    if reflection_type:
        query.eq["reflection_type"] = reflection_type
    return {"items": await rows.list("reflections", query)}


@router.post("/v1/reflections")
async def create_reflection(
    payload: ReflectionCreate,
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
):
    try:
        return await actions.add_reflection(
            rows,
            payload.reflection_type,
            now.date(),
            content=payload.content,
            mood_score=payload.mood_score,
            day=payload.date,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
