from __future__ import annotations

from datetime import datetime

from fastapi import Depends, Header, HTTPException

from consistency.dates import local_now
from operator_api.settings import get_settings
from operator_api.store.backend import get_backend
from operator_api.store.base import RowStore
from operator_api.store.keyed import KeyedStore


async def require_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_backend_token: str | None = Header(default=None, alias="X-Backend-Token"),
) -> str:
    settings = get_settings()
    if settings.guest_mode:
        return settings.guest_user_id
    if not x_backend_token or x_backend_token != settings.backend_session_secret:
        raise HTTPException(status_code=401, detail="Invalid backend token")
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing user id")
    user_id = x_user_id.strip()
    if settings.allowed_user_ids and user_id not in settings.allowed_user_ids:
        raise HTTPException(status_code=403, detail="User not allowed")
    return user_id


async def get_rows(user_id: str = Depends(require_user_id)) -> RowStore:
    return get_backend().rows(user_id)


async def get_user_now(user_id: str = Depends(require_user_id)) -> datetime:
    return local_now(get_settings().timezone_for(user_id))


async def get_user_timezone(user_id: str = Depends(require_user_id)) -> str:
    return get_settings().timezone_for(user_id)


def get_keyed() -> KeyedStore:
    return get_backend().keyed
