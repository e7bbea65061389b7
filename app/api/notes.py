from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import PUBLIC_NOTES_PREFIX, build_cache_key, cache
from app.config import settings
from app.database import get_db
from app.security import Principal, get_current_user, get_optional_user
from app.services import notes as note_service
from app.services.notes import NoteFilters
from app.utils.pagination import create_pagination_meta, get_pagination_params
from app.utils.response import send_paginated_success, send_success
from models.notes import NoteStatus, NoteType
from schemas.notes import NoteCreate, NoteUpdate

router = APIRouter()

SortBy = Literal["newest", "oldest", "most_upvoted", "most_downvoted"]


def note_filters(
    search: Optional[str] = None,
    status: Optional[Literal["DRAFT", "PUBLISHED", "all"]] = None,
    type: Optional[Literal["PUBLIC", "PRIVATE", "all"]] = None,
    tags: Optional[str] = Query(None, description="Comma-separated tag slugs"),
    sortBy: Optional[SortBy] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
) -> NoteFilters:
    return NoteFilters(
        search=(search or "").strip() or None,
        tags=[t.strip() for t in (tags or "").split(",") if t.strip()],
        status=NoteStatus(status) if status and status != "all" else None,
        type=NoteType(type) if type and type != "all" else None,
        sort_by=sortBy or "newest",
        page=get_pagination_params(page, limit),
    )


def _paginated(views, total: int, filters: NoteFilters):
    pagination = create_pagination_meta(filters.page.page, filters.page.limit, total)
    return send_paginated_success([v.to_json() for v in views], pagination)


def _request_url(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


@router.get("/public")
async def get_public_notes(
    request: Request,
    filters: NoteFilters = Depends(note_filters),
    viewer: Optional[Principal] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    key = build_cache_key(PUBLIC_NOTES_PREFIX, viewer.user_id if viewer else None, _request_url(request))
    cached = await cache.get(key)
    if cached is not None:
        return send_paginated_success(cached["data"], cached["pagination"])
    views, total = await note_service.list_public_notes(db, viewer, filters)
    data = [v.to_json() for v in views]
    pagination = create_pagination_meta(filters.page.page, filters.page.limit, total)
    await cache.set(key, {"data": data, "pagination": pagination}, settings.CACHE_PUBLIC_NOTES_TTL)
    return send_paginated_success(data, pagination)


@router.get("/my-notes")
async def get_my_notes(
    filters: NoteFilters = Depends(note_filters),
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    views, total = await note_service.list_my_notes(db, actor, filters)
    return _paginated(views, total, filters)


@router.get("/workspace/{workspace_id}")
async def get_workspace_notes(
    workspace_id: int,
    filters: NoteFilters = Depends(note_filters),
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    views, total = await note_service.list_workspace_notes(db, actor, workspace_id, filters)
    return _paginated(views, total, filters)


@router.get("/{note_id}")
async def get_note(
    note_id: int,
    viewer: Optional[Principal] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    view = await note_service.get_note(db, viewer, note_id)
    return send_success(view.to_json())


@router.post("")
async def create_note(
    payload: NoteCreate,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    view = await note_service.create_note(db, actor, payload)
    return send_success(view.to_json(), "Note created successfully", 201)


@router.put("/{note_id}")
async def update_note(
    note_id: int,
    payload: NoteUpdate,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    view = await note_service.update_note(db, actor, note_id, payload)
    return send_success(view.to_json(), "Note updated successfully")


@router.delete("/{note_id}")
async def delete_note(
    note_id: int,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await note_service.delete_note(db, actor, note_id)
    return send_success(None, "Note deleted successfully")


@router.patch("/{note_id}/publish")
async def publish_note(
    note_id: int,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    view = await note_service.publish_note(db, actor, note_id)
    return send_success(view.to_json(), "Note published successfully")


@router.patch("/{note_id}/unpublish")
async def unpublish_note(
    note_id: int,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    view = await note_service.unpublish_note(db, actor, note_id)
    return send_success(view.to_json(), "Note unpublished successfully")
