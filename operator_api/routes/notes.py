from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from operator_api.auth import get_rows
from operator_api.schemas import NoteCreate, ProjectTaskCreate, ProjectTaskPatch
from operator_api.services import actions
from operator_api.store.base import RowQuery, RowStore

router = APIRouter()


@router.get("/v1/notes")
async def list_notes(limit: int = Query(20, ge=1, le=200), rows: RowStore = Depends(get_rows)):
    return {"items": await rows.list("notes", RowQuery(descending=True, limit=limit))}


@router.post("/v1/notes")
async def create_note(payload: NoteCreate, rows: RowStore = Depends(get_rows)):
    try:
        return await actions.add_note(rows, payload.content)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/v1/projects")
async def list_project_tasks(project: Optional[str] = Query(None), rows: RowStore = Depends(get_rows)):
    query = RowQuery()
    if project:
        query.eq["project_name"] = project
    return {"items": await rows.list("project_tasks", query)}


@router.post("/v1/projects")
async def create_project_task(payload: ProjectTaskCreate, rows: RowStore = Depends(get_rows)):
    try:
        return await actions.add_project_task(
            rows,
            payload.project_name,
            payload.task_title,
            description=payload.description,
            status=payload.status,
            priority=payload.priority,
            due_date=payload.due_date,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.patch("/v1/projects/{task_id}")
async def patch_project_task(task_id: str, payload: ProjectTaskPatch, rows: RowStore = Depends(get_rows)):
    try:
        record = await actions.update_project_task(rows, task_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not record:
        raise HTTPException(status_code=404, detail="Project task not found")
    return record
