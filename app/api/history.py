from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.security import Principal, get_current_user
from app.services import history as history_service
from app.utils.pagination import create_pagination_meta, get_pagination_params
from app.utils.response import send_paginated_success, send_success

router = APIRouter()


@router.get("/{note_id}/history")
async def get_note_history(
    note_id: int,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    params = get_pagination_params(page, limit)
    entries, total = await history_service.list_history(db, actor, note_id, params)
    return send_paginated_success(
        [e.to_json() for e in entries],
        create_pagination_meta(params.page, params.limit, total),
    )


@router.get("/{note_id}/history/{history_id}")
async def get_history_entry(
    note_id: int,
    history_id: int,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entry = await history_service.get_history_entry(db, actor, note_id, history_id)
    return send_success(entry.to_json())


@router.post("/{note_id}/history/{history_id}/restore")
async def restore_from_history(
    note_id: int,
    history_id: int,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    view = await history_service.restore_from_history(db, actor, note_id, history_id)
    return send_success(view.to_json(), "Note restored from history successfully")


@router.delete("/{note_id}/history/{history_id}")
async def delete_history_entry(
    note_id: int,
    history_id: int,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await history_service.delete_history_entry(db, actor, note_id, history_id)
    return send_success(None, "History entry deleted successfully")
