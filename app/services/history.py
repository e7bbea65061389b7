"""History ledger: append-only snapshots of a note's title and content."""

import logging
from datetime import timedelta
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import invalidate_public_notes
from app.config import settings
from app.database import utcnow
from app.errors import NotFoundError
from app.security import Principal, require_note_access
from app.services.views import build_note_view
from app.utils.pagination import PageParams
from models.notes import Note, NoteHistory
from models.user import User
from schemas.history import HistoryAuthor, HistoryEntryView
from schemas.notes import NoteView

logger = logging.getLogger("notehub.history")


def record_history(db: AsyncSession, note: Note, updated_by: int | None) -> NoteHistory:
    """Stage a snapshot of the note's current state in the caller's transaction."""
    entry = NoteHistory(
        note_id=note.id,
        previous_title=note.title,
        previous_content=note.content,
        updated_by=updated_by,
        created_at=utcnow(),
    )
    db.add(entry)
    return entry


def _entry_view(entry: NoteHistory, user: User | None) -> HistoryEntryView:
    author = None
    if user is not None:
        author = HistoryAuthor(
            id=user.id,
            first_name=user.first_name or "",
            last_name=user.last_name or "",
            email=user.email,
        )
    return HistoryEntryView(
        id=entry.id,
        note_id=entry.note_id,
        previous_title=entry.previous_title,
        previous_content=entry.previous_content,
        updated_by=entry.updated_by,
        created_at=entry.created_at,
        user=author,
    )


async def _find_entry(db: AsyncSession, note_id: int, history_id: int) -> tuple[NoteHistory, User | None]:
    row = (
        await db.execute(
            select(NoteHistory, User)
            .outerjoin(User, User.id == NoteHistory.updated_by)
            .where(NoteHistory.id == history_id)
        )
    ).first()
    if not row:
        raise NotFoundError("History entry not found")
    entry, user = row
    if entry.note_id != note_id:
        raise NotFoundError("History entry does not belong to this note")
    return entry, user


async def list_history(
    db: AsyncSession,
    actor: Principal,
    note_id: int,
    page: PageParams,
) -> tuple[List[HistoryEntryView], int]:
    await require_note_access(db, note_id, actor)
    total = (
        await db.execute(select(func.count(NoteHistory.id)).where(NoteHistory.note_id == note_id))
    ).scalar_one()
    rows = await db.execute(
        select(NoteHistory, User)
        .outerjoin(User, User.id == NoteHistory.updated_by)
        .where(NoteHistory.note_id == note_id)
        .order_by(NoteHistory.created_at.desc(), NoteHistory.id.desc())
        .offset(page.offset)
        .limit(page.limit)
    )
    return [_entry_view(entry, user) for entry, user in rows.all()], total


async def get_history_entry(db: AsyncSession, actor: Principal, note_id: int, history_id: int) -> HistoryEntryView:
    await require_note_access(db, note_id, actor)
    entry, user = await _find_entry(db, note_id, history_id)
    return _entry_view(entry, user)


async def restore_from_history(db: AsyncSession, actor: Principal, note_id: int, history_id: int) -> NoteView:
    note, _ = await require_note_access(db, note_id, actor)
    entry, _ = await _find_entry(db, note_id, history_id)

    # 先保存恢复前的状态，再覆盖；标签与投票不受影响
    record_history(db, note, actor.user_id)
    note.title = entry.previous_title
    note.content = entry.previous_content
    note.updated_at = utcnow()
    await db.commit()
    logger.info("HISTORY_RESTORE note=%s history=%s user=%s", note_id, history_id, actor.user_id)

    await invalidate_public_notes()
    return await build_note_view(db, note, actor.user_id)


async def delete_history_entry(db: AsyncSession, actor: Principal, note_id: int, history_id: int) -> None:
    await require_note_access(db, note_id, actor)
    entry, _ = await _find_entry(db, note_id, history_id)
    await db.delete(entry)
    await db.commit()
    logger.info("HISTORY_DELETE note=%s history=%s user=%s", note_id, history_id, actor.user_id)


async def purge_expired_history(db: AsyncSession, retention_days: int | None = None) -> int:
    """Delete snapshots older than the retention window; returns the number removed."""
    days = settings.HISTORY_RETENTION_DAYS if retention_days is None else retention_days
    cutoff = utcnow() - timedelta(days=days)
    result = await db.execute(
        delete(NoteHistory).where(NoteHistory.created_at < cutoff).execution_options(synchronize_session=False)
    )
    await db.commit()
    deleted = result.rowcount or 0
    logger.info("HISTORY_CLEANUP deleted=%s cutoff=%s retention_days=%s", deleted, cutoff.isoformat(), days)
    return deleted
