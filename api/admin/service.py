"""
Admin business logic.

Reads across the feature packages; the only write here is a user's active
flag.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from auth import repository as auth_repository
from auth import service as auth_service
from blogs import repository as blog_repository
from blogs import service as blog_service
from core.errors import NotFoundError, ValidationError
from projects import repository as project_repository
from projects import service as project_service

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


def _pagination(page: int, limit: int, total: int) -> dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


async def dashboard() -> dict[str, Any]:
    project_overview = await project_repository.overview_stats()
    blog_overview = await blog_repository.overview_stats()
    user_overview = await auth_repository.user_stats()
    recent_projects = await project_repository.recent_projects(limit=RECENT_LIMIT)
    recent_blogs = await blog_repository.recent_posts(limit=RECENT_LIMIT)

    return {
        "stats": {
            "projects": project_service.overview_from_row(project_overview),
            "blogs": blog_service.overview_from_row(blog_overview),
            "users": user_overview,
        },
        "recent_activity": {
            "projects": [project_service.to_response(r) for r in recent_projects],
            "blogs": [blog_service.to_response(r) for r in recent_blogs],
        },
    }


async def list_projects(
    *,
    category: str | None = None,
    published: bool | None = None,
    search: str | None = None,
    sort: str = "newest",
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    return await project_service.list_projects(
        category=category,
        published=published,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
        is_admin=True,
    )


async def list_blogs(
    *,
    category: str | None = None,
    status: str | None = None,
    author_id: int | None = None,
    sort: str = "newest",
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    return await blog_service.list_posts_admin(
        category=category,
        status=status,
        author_id=author_id,
        sort=sort,
        page=page,
        limit=limit,
    )


async def list_users(
    *,
    role: str | None = None,
    is_active: bool | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    rows, total = await auth_repository.list_users(
        role=role,
        is_active=is_active,
        limit=limit,
        offset=(page - 1) * limit,
    )
    return {
        "results": len(rows),
        "pagination": _pagination(page, limit, total),
        "users": [auth_service.to_user_response(r) for r in rows],
    }


async def set_user_status(user_id: int, *, is_active: bool, acting_user: dict) -> dict[str, Any]:
    if int(acting_user["id"]) == user_id and not is_active:
        raise ValidationError.for_field("is_active", "You cannot deactivate your own account.")

    row = await auth_repository.set_user_active(user_id, is_active=is_active)
    if row is None:
        raise NotFoundError("User not found.")

    if not is_active:
        await auth_repository.revoke_all_refresh_tokens_for_user(user_id)
    logger.info("user_status_changed user_id=%s is_active=%s by=%s", user_id, is_active, acting_user["id"])
    return {"user": auth_service.to_user_response(row)}
