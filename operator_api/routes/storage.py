from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from operator_api.auth import get_keyed, require_user_id
from operator_api.schemas import StoragePayload
from operator_api.store.keyed import KeyedStore, Scope

router = APIRouter()


def _scope(feature: str, user_id: str) -> Scope:
    try:
        return Scope(feature, user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/v1/storage/{feature}")
async def read_value(
    feature: str,
    user_id: str = Depends(require_user_id),
    keyed: KeyedStore = Depends(get_keyed),
):
    return {"feature": feature, "value": await keyed.get(_scope(feature, user_id))}


@router.put("/v1/storage/{feature}")
async def write_value(
    feature: str,
    payload: StoragePayload,
    user_id: str = Depends(require_user_id),
    keyed: KeyedStore = Depends(get_keyed),
):
    await keyed.set(_scope(feature, user_id), payload.value)
    return {"ok": True}


@router.delete("/v1/storage/{feature}")
async def delete_value(
    feature: str,
    user_id: str = Depends(require_user_id),
    keyed: KeyedStore = Depends(get_keyed),
):
    await keyed.delete(_scope(feature, user_id))
    return {"ok": True}
