from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from operator_api.auth import get_rows, get_user_now
from operator_api.schemas import BlockCreate, BlockPatch
from operator_api.services import planner
from operator_api.store.base import RowStore

router = APIRouter()


@router.get("/v1/blocks")
async def list_blocks(
    day: Optional[date] = Query(None),
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
):
    day = day or now.date()
    return {"date": day.isoformat(), "items": await planner.blocks_for(rows, day)}


@router.post("/v1/blocks")
async def create_block(payload: BlockCreate, rows: RowStore = Depends(get_rows), now: datetime = Depends(get_user_now)):
    try:
        return await planner.add_block(
            rows,
            payload.date or now.date(),
            payload.time_slot,
            payload.task,
            emoji=payload.emoji,
            block_type=payload.block_type,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/v1/blocks/seed")
async def seed_blocks(
    day: Optional[date] = Query(None),
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
):
    day = day or now.date()
    return {"date": day.isoformat(), "items": await planner.seed_defaults(rows, day)}


@router.get("/v1/blocks/current")
async def current_block(rows: RowStore = Depends(get_rows), now: datetime = Depends(get_user_now)):
    return await planner.current(rows, now)


@router.get("/v1/blocks/missed")
async def missed_blocks(
    since: Optional[str] = Query(None, description="HH:MM of the previous check"),
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
):
    return await planner.missed(rows, now, since)


@router.get("/v1/blocks/overlaps")
async def overlapping_blocks(
    day: Optional[date] = Query(None),
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
):
    return {"items": await planner.overlaps(rows, day or now.date())}


@router.patch("/v1/blocks/{block_id}")
async def patch_block(block_id: str, payload: BlockPatch, rows: RowStore = Depends(get_rows)):
    try:
        record = await planner.update_block(rows, block_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not record:
        raise HTTPException(status_code=404, detail="Block not found")
    return record


@router.post("/v1/blocks/{block_id}/toggle")
async def toggle_block(block_id: str, rows: RowStore = Depends(get_rows)):
    record = await planner.toggle_block(rows, block_id)
    if not record:
        raise HTTPException(status_code=404, detail="Block not found")
    return record


@router.delete("/v1/blocks/{block_id}")
async def delete_block(block_id: str, rows: RowStore = Depends(get_rows)):
    if not await planner.delete_block(rows, block_id):
        raise HTTPException(status_code=404, detail="Block not found")
    return {"ok": True}
