from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.security import Principal, get_current_user
from app.services import workspaces as workspace_service
from app.utils.pagination import create_pagination_meta, get_pagination_params
from app.utils.response import send_paginated_success, send_success
from schemas.workspace import WorkspaceCreate, WorkspaceUpdate

router = APIRouter()


@router.get("")
async def get_all_workspaces(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    params = get_pagination_params(page, limit)
    workspaces, total = await workspace_service.list_workspaces(db, actor, params)
    return send_paginated_success(
        [w.to_json() for w in workspaces],
        create_pagination_meta(params.page, params.limit, total),
    )


@router.post("")
async def create_workspace(
    payload: WorkspaceCreate,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    workspace = await workspace_service.create_workspace(db, actor, payload)
    return send_success(workspace.to_json(), "Workspace created successfully", 201)


@router.get("/{workspace_id}")
async def get_workspace(
    workspace_id: int,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    workspace = await workspace_service.get_workspace(db, actor, workspace_id)
    return send_success(workspace.to_json())


@router.put("/{workspace_id}")
async def update_workspace(
    workspace_id: int,
    payload: WorkspaceUpdate,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    workspace = await workspace_service.update_workspace(db, actor, workspace_id, payload)
    return send_success(workspace.to_json(), "Workspace updated successfully")


@router.delete("/{workspace_id}")
async def delete_workspace(
    workspace_id: int,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await workspace_service.delete_workspace(db, actor, workspace_id)
    return send_success(None, "Workspace deleted successfully")


@router.get("/{workspace_id}/stats")
async def get_workspace_stats(
    workspace_id: int,
    actor: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await workspace_service.workspace_stats(db, actor, workspace_id)
    return send_success(stats.to_json())
