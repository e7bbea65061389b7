"""Tag resolution and tag directory queries.

Tags are global. A free-text name is reduced to a slug and upserted by slug:
the first writer's display name sticks, later names that normalize to the
same slug reuse that row.
"""

from typing import Iterable, List, Sequence

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.errors import NotFoundError
from app.utils.slug import generate_slug
from models.notes import Note, NoteStatus, NoteTag, NoteType
from models.tags import Tag
from schemas.tags import TagView


_UPSERT_DIALECTS = {"sqlite": sqlite, "postgresql": postgresql}


def _insert_ignore(db: AsyncSession, values: dict):
    dialect = db.get_bind().dialect.name
    module = _UPSERT_DIALECTS.get(dialect)
    if module is None:
        raise RuntimeError(f"Unsupported database dialect for tag upsert: {dialect} (use sqlite or postgresql)")
    return module.insert(Tag).values(**values).on_conflict_do_nothing(index_elements=["slug"])


async def resolve_tags(db: AsyncSession, names: Iterable[str]) -> List[Tag]:
    """Map names to Tag rows in input order, creating missing ones.

    Runs inside the caller's transaction. Names that share a slug resolve to
    the same row, so the result may contain repeats.
    """
    resolved: dict[str, Tag] = {}
    result: List[Tag] = []
    for name in names or []:
        slug = generate_slug(name)
        tag = resolved.get(slug)
        if tag is None:
            now = utcnow()
            # 并发写入同一 slug 时由唯一约束兜底，冲突即复用已有标签
            await db.execute(_insert_ignore(db, {"name": name, "slug": slug, "created_at": now, "updated_at": now}))
            tag = (await db.execute(select(Tag).where(Tag.slug == slug))).scalar_one()
            resolved[slug] = tag
        result.append(tag)
    return result


def unique_tag_ids(tags: Sequence[Tag]) -> List[int]:
    seen: list[int] = []
    for tag in tags:
        if tag.id not in seen:
            seen.append(tag.id)
    return seen


def _note_count_column():
    return func.count(NoteTag.note_id).label("note_count")


def _tag_view(tag: Tag, note_count: int) -> TagView:
    return TagView(
        id=tag.id,
        name=tag.name,
        slug=tag.slug,
        note_count=note_count or 0,
        created_at=tag.created_at,
        updated_at=tag.updated_at,
    )


async def list_tags(db: AsyncSession) -> List[TagView]:
    rows = await db.execute(
        select(Tag, _note_count_column())
        .outerjoin(NoteTag, NoteTag.tag_id == Tag.id)
        .group_by(Tag.id)
        .order_by(Tag.name.asc(), Tag.id.asc())
    )
    return [_tag_view(tag, count) for tag, count in rows.all()]


async def popular_tags(db: AsyncSession, limit: int = 20) -> List[TagView]:
    limit = max(1, min(50, limit or 20))
    count_col = _note_count_column()
    rows = await db.execute(
        select(Tag, count_col)
        .outerjoin(NoteTag, NoteTag.tag_id == Tag.id)
        .group_by(Tag.id)
        .order_by(count_col.desc(), Tag.name.asc())
        .limit(limit)
    )
    return [_tag_view(tag, count) for tag, count in rows.all()]


async def search_tags(db: AsyncSession, query: str) -> List[TagView]:
    query = (query or "").strip()
    if not query:
        return []
    count_col = _note_count_column()
    rows = await db.execute(
        select(Tag, count_col)
        .outerjoin(NoteTag, NoteTag.tag_id == Tag.id)
        .where(Tag.name.icontains(query, autoescape=True))
        .group_by(Tag.id)
        .order_by(count_col.desc(), Tag.name.asc())
        .limit(20)
    )
    return [_tag_view(tag, count) for tag, count in rows.all()]


async def get_tag_by_slug(db: AsyncSession, slug: str) -> TagView:
    row = (
        await db.execute(
            select(Tag, _note_count_column())
            .outerjoin(NoteTag, NoteTag.tag_id == Tag.id)
            .where(Tag.slug == slug)
            .group_by(Tag.id)
        )
    ).first()
    if not row:
        raise NotFoundError("Tag not found")
    return _tag_view(row[0], row[1])


async def tagged_public_notes(db: AsyncSession, slug: str, offset: int, limit: int) -> tuple[list[Note], int]:
    tag = (await db.execute(select(Tag).where(Tag.slug == slug))).scalar_one_or_none()
    if not tag:
        raise NotFoundError("Tag not found")
    conditions = [
        NoteTag.tag_id == tag.id,
        Note.status == NoteStatus.PUBLISHED,
        Note.type == NoteType.PUBLIC,
    ]
    total = (
        await db.execute(
            select(func.count()).select_from(NoteTag).join(Note, Note.id == NoteTag.note_id).where(*conditions)
        )
    ).scalar_one()
    notes = (
        await db.execute(
            select(Note)
            .join(NoteTag, NoteTag.note_id == Note.id)
            .where(*conditions)
            .order_by(Note.created_at.desc(), Note.id.desc())
            .offset(offset)
            .limit(limit)
        )
    ).scalars().all()
    return list(notes), total
