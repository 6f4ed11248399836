from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from consistency.heatmap import heatmap_grid
from consistency.intensity import intensity
from operator_api.auth import get_rows, get_user_now, get_user_timezone
from operator_api.services import tracker
from operator_api.store.base import RowStore

router = APIRouter()

HEATMAP_DEFAULT_WEEKS = 12
HEATMAP_MAX_DAYS = 53 * 7


@router.get("/v1/stats/streaks")
async def streaks(
    kind: Optional[str] = Query(None),
    habit_id: Optional[str] = Query(None),
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
    tz_name: str = Depends(get_user_timezone),
):
    if kind is None:
        return await tracker.streak_board(rows, now, tz_name=tz_name)
    try:
        return await tracker.activity_streak(rows, kind, now, habit_id=habit_id, tz_name=tz_name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/v1/stats/heatmap")
async def habit_heatmap(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
):
    end = end or now.date()
    start = start or end - timedelta(days=end.weekday() + 7 * (HEATMAP_DEFAULT_WEEKS - 1))
    if (end - start).days >= HEATMAP_MAX_DAYS:
        raise HTTPException(status_code=400, detail=f"Heatmap range is limited to {HEATMAP_MAX_DAYS} days")
    try:
        days, warnings = await tracker.habit_heatmap(rows, start, end)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "days": [day.as_dict() for day in days],
        "grid": heatmap_grid(days),
        "warnings": warnings,
    }


@router.get("/v1/stats/completion-grid")
async def completion_grid(
    days: int = Query(7, ge=1, le=60),
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
    tz_name: str = Depends(get_user_timezone),
):
    return await tracker.completion_grid(rows, now.date(), days=days, tz_name=tz_name)


@router.get("/v1/stats/weekly")
async def weekly(
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
    tz_name: str = Depends(get_user_timezone),
):
    return await tracker.weekly_summary(rows, now.date(), tz_name=tz_name)


@router.get("/v1/stats/intensity")
async def intensity_for(completed: int = Query(..., ge=0), total: int = Query(..., ge=0)):
    ratio, bucket = intensity(completed, total)
    return {"completed": completed, "total": total, "ratio": ratio, "bucket": bucket}
