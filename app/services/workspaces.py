import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import invalidate_public_notes, invalidate_tags
from app.database import utcnow
from app.security import Principal, require_workspace_access
from app.utils.pagination import PageParams
from app.utils.slug import generate_unique_slug
from models.notes import Note, NoteStatus
from models.votes import Vote
from models.workspace import Workspace
from schemas.workspace import WorkspaceCreate, WorkspaceStats, WorkspaceUpdate, WorkspaceView

logger = logging.getLogger("notehub.workspaces")


async def unique_workspace_slug(db: AsyncSession, name: str, company_id: int, *, exclude_id: int | None = None) -> str:
    async def taken(slug: str) -> bool:
        query = select(Workspace.id).where(Workspace.company_id == company_id, Workspace.slug == slug)
        if exclude_id is not None:
            query = query.where(Workspace.id != exclude_id)
        return (await db.execute(query)).first() is not None

    return await generate_unique_slug(name, taken)


def _view(workspace: Workspace, note_count: int | None = None) -> WorkspaceView:
    view = WorkspaceView.model_validate(workspace)
    view.note_count = note_count
    return view


async def list_workspaces(db: AsyncSession, actor: Principal, page: PageParams) -> tuple[List[WorkspaceView], int]:
    total = (
        await db.execute(select(func.count(Workspace.id)).where(Workspace.company_id == actor.company_id))
    ).scalar_one()
    note_count = func.count(Note.id).label("note_count")
    rows = await db.execute(
        select(Workspace, note_count)
        .outerjoin(Note, Note.workspace_id == Workspace.id)
        .where(Workspace.company_id == actor.company_id)
        .group_by(Workspace.id)
        .order_by(Workspace.created_at.desc(), Workspace.id.desc())
        .offset(page.offset)
        .limit(page.limit)
    )
    return [_view(ws, count) for ws, count in rows.all()], total


async def create_workspace(db: AsyncSession, actor: Principal, payload: WorkspaceCreate) -> WorkspaceView:
    slug = await unique_workspace_slug(db, payload.name, actor.company_id)
    workspace = Workspace(
        name=payload.name,
        slug=slug,
        description=payload.description,
        company_id=actor.company_id,
    )
    db.add(workspace)
    await db.commit()
    logger.info("WORKSPACE_CREATE workspace=%s company=%s slug=%s", workspace.id, actor.company_id, slug)
    return _view(workspace, 0)


async def get_workspace(db: AsyncSession, actor: Principal, workspace_id: int) -> WorkspaceView:
    return _view(await require_workspace_access(db, workspace_id, actor))


async def update_workspace(db: AsyncSession, actor: Principal, workspace_id: int, payload: WorkspaceUpdate) -> WorkspaceView:
    workspace = await require_workspace_access(db, workspace_id, actor)
    data = payload.model_dump(exclude_unset=True)
    if data.get("name"):
        workspace.name = data["name"]
        workspace.slug = await unique_workspace_slug(db, data["name"], actor.company_id, exclude_id=workspace.id)
    if "description" in data:
        workspace.description = data["description"]
    workspace.updated_at = utcnow()
    await db.commit()
    return _view(workspace)


async def delete_workspace(db: AsyncSession, actor: Principal, workspace_id: int) -> None:
    workspace = await require_workspace_access(db, workspace_id, actor)
    await db.delete(workspace)
    await db.commit()
    logger.info("WORKSPACE_DELETE workspace=%s company=%s", workspace_id, actor.company_id)
    # 级联删除的笔记可能在公开列表与标签计数中
    await invalidate_public_notes()
    await invalidate_tags()


async def workspace_stats(db: AsyncSession, actor: Principal, workspace_id: int) -> WorkspaceStats:
    await require_workspace_access(db, workspace_id, actor)

    async def count_notes(*conditions) -> int:
        return (
            await db.execute(select(func.count(Note.id)).where(Note.workspace_id == workspace_id, *conditions))
        ).scalar_one()

    total_votes = (
        await db.execute(
            select(func.count(Vote.id)).join(Note, Note.id == Vote.note_id).where(Note.workspace_id == workspace_id)
        )
    ).scalar_one()
    return WorkspaceStats(
        total_notes=await count_notes(),
        published_notes=await count_notes(Note.status == NoteStatus.PUBLISHED),
        draft_notes=await count_notes(Note.status == NoteStatus.DRAFT),
        total_votes=total_votes,
    )
