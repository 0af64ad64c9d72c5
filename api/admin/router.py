"""
Admin API endpoints. Every route requires an admin.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query

from auth import dependencies as auth_dependencies
from auth import schemas as auth_schemas
from blogs import schemas as blog_schemas
from projects import schemas as project_schemas

from . import service

router = APIRouter(
    prefix="/admin",
    dependencies=[Depends(auth_dependencies.require_admin)],
)


@router.get("/dashboard")
async def dashboard() -> dict:
    return await service.dashboard()


@router.get("/projects")
async def list_projects(
    category: project_schemas.ProjectCategory | None = None,
    published: bool | None = None,
    search: str | None = Query(default=None, max_length=200),
    sort: project_schemas.ProjectSort = "newest",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> dict:
    return await service.list_projects(
        category=category,
        published=published,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )


@router.get("/blogs")
async def list_blogs(
    category: blog_schemas.BlogCategory | None = None,
    status: blog_schemas.PostStatus | None = None,
    author: int | None = None,
    sort: blog_schemas.PostSort = "newest",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> dict:
    return await service.list_blogs(
        category=category,
        status=status,
        author_id=author,
        sort=sort,
        page=page,
        limit=limit,
    )


@router.get("/users")
async def list_users(
    role: Literal["user", "admin"] | None = None,
    is_active: bool | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> dict:
    return await service.list_users(role=role, is_active=is_active, page=page, limit=limit)


@router.put("/users/{user_id}/status")
async def set_user_status(
    user_id: int,
    payload: auth_schemas.UserStatusRequest,
    current_user: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.set_user_status(user_id, is_active=payload.is_active, acting_user=current_user)
