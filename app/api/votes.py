from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.security import Principal, get_current_user, get_optional_user
from app.services import votes as vote_service
from app.utils.response import send_success
from schemas.votes import VoteRequest

router = APIRouter()


@router.post("/{note_id}/vote")
async def vote_on_note(
    note_id: int,
    payload: VoteRequest,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await vote_service.cast_vote(db, actor, note_id, payload.type)
    return send_success(result.to_json())


@router.put("/{note_id}/vote")
async def change_vote(
    note_id: int,
    payload: VoteRequest,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await vote_service.change_vote(db, actor, note_id, payload.type)
    return send_success(result.to_json())


@router.delete("/{note_id}/vote")
async def remove_vote(
    note_id: int,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await vote_service.remove_vote(db, actor, note_id)
    return send_success(result.to_json())


@router.get("/{note_id}/votes")
async def get_vote_counts(
    note_id: int,
    viewer: Optional[Principal] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    summary = await vote_service.get_vote_counts(db, viewer, note_id)
    return send_success(summary.to_json())
