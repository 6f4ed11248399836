from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends

from operator_api.auth import get_rows, get_user_now, get_user_timezone
from operator_api.services.live import get_snapshots
from operator_api.settings import get_settings
from operator_api.store.backend import get_backend
from operator_api.store.base import RowStore

router = APIRouter()


@router.get("/v1/bootstrap")
async def bootstrap(
    rows: RowStore = Depends(get_rows),
    now: datetime = Depends(get_user_now),
    tz_name: str = Depends(get_user_timezone),
):
    hub = get_backend().hub
    snapshot = await get_snapshots(hub).get(rows, now, tz_name)
    return {
        **snapshot,
        "guest_mode": get_settings().guest_mode,
        "timezone": tz_name,
        "last_seq": hub.last_seq,
    }
