from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import TAGS_PREFIX, build_cache_key, cache
from app.config import settings
from app.database import get_db
from app.security import Principal, get_optional_user
from app.services import tags as tag_service
from app.services.views import build_note_views
from app.utils.pagination import create_pagination_meta, get_pagination_params
from app.utils.response import send_paginated_success, send_success

router = APIRouter()


@router.get("")
async def get_all_tags(
    request: Request,
    viewer: Optional[Principal] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    key = build_cache_key(TAGS_PREFIX, viewer.user_id if viewer else None, request.url.path)
    cached = await cache.get(key)
    if cached is not None:
        return send_success(cached)
    data = [t.to_json() for t in await tag_service.list_tags(db)]
    await cache.set(key, data, settings.CACHE_TAG_LIST_TTL)
    return send_success(data)


@router.get("/popular")
async def get_popular_tags(limit: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    try:
        limit_num = int(limit) if limit else 20
    except ValueError:
        limit_num = 20
    tags = await tag_service.popular_tags(db, limit_num)
    return send_success([t.to_json() for t in tags])


@router.get("/search")
async def search_tags(q: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    tags = await tag_service.search_tags(db, q or "")
    return send_success([t.to_json() for t in tags])


@router.get("/{slug}")
async def get_tag(slug: str, db: AsyncSession = Depends(get_db)):
    tag = await tag_service.get_tag_by_slug(db, slug)
    return send_success(tag.to_json())


@router.get("/{slug}/notes")
async def get_notes_by_tag(
    slug: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    viewer: Optional[Principal] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    params = get_pagination_params(page, limit)
    notes, total = await tag_service.tagged_public_notes(db, slug, params.offset, params.limit)
    views = await build_note_views(db, notes, viewer.user_id if viewer else None)
    return send_paginated_success(
        [v.to_json() for v in views],
        create_pagination_meta(params.page, params.limit, total),
    )
