from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from operator_api.auth import require_user_id
from operator_api.notifications import wait_for_events
from operator_api.store.backend import get_backend

router = APIRouter()


@router.get("/v1/changes")
async def list_changes(
    after: int = Query(0, ge=0),
    tables: Optional[str] = Query(None, description="Comma separated table names"),
    wait: float = Query(0.0, ge=0.0, le=30.0),
    user_id: str = Depends(require_user_id),
):
    hub = get_backend().hub
    wanted = {item.strip() for item in tables.split(",") if item.strip()} if tables else None
    events = await wait_for_events(hub, user_id, after, wait, wanted)
    last = events[-1].seq if events else max(after, 0)
    return {"items": [event.as_dict() for event in events], "last_seq": last}
