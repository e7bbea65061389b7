"""Note store: note lifecycle, tag association and access rules.

Every mutation commits once, so the note row, its tag links and the history
snapshot written ahead of an update land together or not at all. Cache
invalidation runs after the commit and never fails the mutation.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import invalidate_public_notes, invalidate_tags
from app.database import utcnow
from app.errors import ForbiddenError
from app.security import (
    Principal,
    ensure_same_company,
    load_note_with_workspace,
    require_note_access,
    require_workspace_access,
)
from app.services.history import record_history
from app.services.tags import resolve_tags, unique_tag_ids
from app.services.views import build_note_view, build_note_views
from app.utils.pagination import PageParams
from models.notes import Note, NoteStatus, NoteTag, NoteType
from models.tags import Tag
from schemas.notes import NoteCreate, NoteUpdate, NoteView

logger = logging.getLogger("notehub.notes")

SORT_ORDERS = {
    "newest": (Note.created_at.desc(), Note.id.desc()),
    "oldest": (Note.created_at.asc(), Note.id.asc()),
    "most_upvoted": (Note.upvotes.desc(), Note.created_at.desc(), Note.id.desc()),
    "most_downvoted": (Note.downvotes.desc(), Note.created_at.desc(), Note.id.desc()),
}


@dataclass
class NoteFilters:
    search: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    status: Optional[NoteStatus] = None
    type: Optional[NoteType] = None
    sort_by: str = "newest"
    page: PageParams = field(default_factory=lambda: PageParams(page=1, limit=20))


def is_publicly_visible(note: Note) -> bool:
    return note.type == NoteType.PUBLIC and note.status == NoteStatus.PUBLISHED


def _filter_conditions(filters: NoteFilters) -> list:
    conditions = []
    if filters.status is not None:
        conditions.append(Note.status == filters.status)
    if filters.type is not None:
        conditions.append(Note.type == filters.type)
    if filters.search:
        conditions.append(
            or_(
                Note.title.icontains(filters.search, autoescape=True),
                Note.content.icontains(filters.search, autoescape=True),
            )
        )
    if filters.tags:
        conditions.append(
            exists(
                select(NoteTag.note_id)
                .join(Tag, Tag.id == NoteTag.tag_id)
                .where(NoteTag.note_id == Note.id, Tag.slug.in_(filters.tags))
            )
        )
    return conditions


async def _page_of_notes(
    db: AsyncSession,
    conditions: list,
    filters: NoteFilters,
    viewer_id: int | None,
) -> tuple[List[NoteView], int]:
    total = (await db.execute(select(func.count()).select_from(Note).where(*conditions))).scalar_one()
    order = SORT_ORDERS.get(filters.sort_by or "newest", SORT_ORDERS["newest"])
    notes = (
        await db.execute(
            select(Note)
            .where(*conditions)
            .order_by(*order)
            .offset(filters.page.offset)
            .limit(filters.page.limit)
        )
    ).scalars().all()
    return await build_note_views(db, notes, viewer_id), total


async def _link_tags(db: AsyncSession, note_id: int, names: List[str]) -> None:
    tags = await resolve_tags(db, names)
    now = utcnow()
    for tag_id in unique_tag_ids(tags):
        db.add(NoteTag(note_id=note_id, tag_id=tag_id, created_at=now))


async def create_note(db: AsyncSession, actor: Principal, payload: NoteCreate) -> NoteView:
    await require_workspace_access(db, payload.workspace_id, actor)
    note = Note(
        title=payload.title,
        content=payload.content,
        workspace_id=payload.workspace_id,
        created_by=actor.user_id,
        type=payload.type,
        status=payload.status,
        upvotes=0,
        downvotes=0,
    )
    db.add(note)
    await db.flush()
    await _link_tags(db, note.id, payload.tags)
    await db.commit()
    logger.info("NOTE_CREATE note=%s workspace=%s user=%s", note.id, note.workspace_id, actor.user_id)

    if is_publicly_visible(note):
        await invalidate_public_notes()
    if payload.tags:
        await invalidate_tags()
    return await build_note_view(db, note, actor.user_id)


async def update_note(db: AsyncSession, actor: Principal, note_id: int, payload: NoteUpdate) -> NoteView:
    note, _ = await require_note_access(db, note_id, actor)
    # 任何更新前先留存当前标题与正文
    record_history(db, note, actor.user_id)

    data = payload.model_dump(exclude_unset=True)
    for key in ("title", "content", "type", "status"):
        value = data.get(key)
        if value:
            setattr(note, key, value)
    tags = data.get("tags")
    if tags is not None:
        await db.execute(delete(NoteTag).where(NoteTag.note_id == note.id))
        await _link_tags(db, note.id, tags)
    note.updated_at = utcnow()
    await db.commit()
    logger.info("NOTE_UPDATE note=%s user=%s fields=%s", note.id, actor.user_id, ",".join(sorted(data)) or "-")

    # 可见性可能双向变化，统一失效
    await invalidate_public_notes()
    if tags is not None:
        await invalidate_tags()
    return await build_note_view(db, note, actor.user_id)


async def delete_note(db: AsyncSession, actor: Principal, note_id: int) -> None:
    note, _ = await require_note_access(db, note_id, actor)
    await db.delete(note)
    await db.commit()
    logger.info("NOTE_DELETE note=%s user=%s", note_id, actor.user_id)
    await invalidate_public_notes()
    await invalidate_tags()


async def _set_status(db: AsyncSession, actor: Principal, note_id: int, status: NoteStatus) -> NoteView:
    note, _ = await require_note_access(db, note_id, actor)
    note.status = status
    note.updated_at = utcnow()
    await db.commit()
    logger.info("NOTE_STATUS note=%s status=%s user=%s", note.id, status.value, actor.user_id)
    if note.type == NoteType.PUBLIC:
        await invalidate_public_notes()
    return await build_note_view(db, note, actor.user_id)


async def publish_note(db: AsyncSession, actor: Principal, note_id: int) -> NoteView:
    return await _set_status(db, actor, note_id, NoteStatus.PUBLISHED)


async def unpublish_note(db: AsyncSession, actor: Principal, note_id: int) -> NoteView:
    return await _set_status(db, actor, note_id, NoteStatus.DRAFT)


async def get_note(db: AsyncSession, viewer: Principal | None, note_id: int) -> NoteView:
    note, workspace = await load_note_with_workspace(db, note_id)
    if not is_publicly_visible(note):
        if viewer is None:
            raise ForbiddenError("Authentication required to access this note")
        ensure_same_company(workspace.company_id, viewer, "Access denied to this note")
    return await build_note_view(db, note, viewer.user_id if viewer else None)


async def list_public_notes(db: AsyncSession, viewer: Principal | None, filters: NoteFilters) -> tuple[List[NoteView], int]:
    conditions = [Note.status == NoteStatus.PUBLISHED, Note.type == NoteType.PUBLIC]
    conditions.extend(_filter_conditions(filters))
    return await _page_of_notes(db, conditions, filters, viewer.user_id if viewer else None)


async def list_workspace_notes(
    db: AsyncSession,
    actor: Principal,
    workspace_id: int,
    filters: NoteFilters,
) -> tuple[List[NoteView], int]:
    await require_workspace_access(db, workspace_id, actor)
    conditions = [Note.workspace_id == workspace_id]
    conditions.extend(_filter_conditions(filters))
    return await _page_of_notes(db, conditions, filters, actor.user_id)


async def list_my_notes(db: AsyncSession, actor: Principal, filters: NoteFilters) -> tuple[List[NoteView], int]:
    conditions = [Note.created_by == actor.user_id]
    conditions.extend(_filter_conditions(filters))
    return await _page_of_notes(db, conditions, filters, actor.user_id)
