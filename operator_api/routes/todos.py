from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from operator_api.auth import get_keyed, get_rows, get_user_now
from operator_api.schemas import TodoCreate, TodoPatch
from operator_api.services import actions
from operator_api.store.base import RowStore
from operator_api.store.keyed import KeyedStore


router = APIRouter()


@router.get("/v1/todos")
async def list_todos(day: Optional[date] = Query(None), rows: RowStore = Depends(get_rows)):
    return {"items": await actions.list_todos(rows, day)}


@router.post("/v1/todos")
async def create_todo(
    payload: TodoCreate,
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
):
    try:
        return await actions.add_todo(rows, payload.text, now.date(), payload.priority, payload.category)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.patch("/v1/todos/{todo_id}")
async def patch_todo(todo_id: str, payload: TodoPatch, rows: RowStore = Depends(get_rows)):
    try:
        record = await actions.update_todo(rows, todo_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not record:
        raise HTTPException(status_code=404, detail="Todo not found")
    return record


@router.post("/v1/todos/reset")
async def reset_todos(
    rows: RowStore = Depends(get_rows),
    keyed: KeyedStore = Depends(get_keyed),
    now: datetime = Depends(get_user_now),
):
    return await actions.daily_reset(rows, keyed, now.date())


@router.get("/v1/todos/archive")
async def list_archived(rows: RowStore = Depends(get_rows), keyed: KeyedStore = Depends(get_keyed)):
    return {"items": await actions.archived_todos(rows, keyed)}


@router.post("/v1/todos/{todo_id}/toggle")
async def toggle_todo(todo_id: str, rows: RowStore = Depends(get_rows)):
    record = await actions.toggle_todo(rows, todo_id)
    if not record:
        raise HTTPException(status_code=404, detail="Todo not found")
    return record


@router.delete("/v1/todos/{todo_id}")
async def delete_todo(todo_id: str, rows: RowStore = Depends(get_rows)):
    if not await actions.delete_todo(rows, todo_id):
        raise HTTPException(status_code=404, detail="Todo not found")
    return {"ok": True}
