"""
Blog post API endpoints.

Static paths (`/categories`, `/tags`, `/admin/...`) are declared before the
catch-all `/{slug}` route.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from auth import dependencies as auth_dependencies
from auth import service as auth_service

from . import schemas, service

router = APIRouter(prefix="/blogs")


@router.get("")
async def list_blogs(
    category: schemas.BlogCategory | None = None,
    status: schemas.PostStatus | None = None,
    featured: bool | None = None,
    author: int | None = None,
    tags: str | None = Query(default=None, max_length=500),
    search: str | None = Query(default=None, max_length=200),
    sort: schemas.PostSort = "newest",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict | None = Depends(auth_dependencies.get_optional_user),
) -> dict:
    return await service.list_posts(
        category=category,
        status=status,
        featured=featured,
        author_id=author,
        tags=tags,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
        is_admin=auth_service.is_admin(current_user),
    )


@router.get("/categories")
async def blog_categories() -> dict:
    return {"categories": await service.categories()}


@router.get("/tags")
async def blog_tags() -> dict:
    return {"tags": await service.popular_tags()}


@router.get("/admin/stats")
async def blog_stats(_: dict = Depends(auth_dependencies.require_admin)) -> dict:
    return await service.stats()


@router.get("/admin/{post_id}")
async def get_blog_admin(
    post_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return {"blog": await service.get_post(post_id)}


@router.get("/{slug}")
async def get_blog(slug: str) -> dict:
    """
    Published post by slug. Each fetch counts as a view.
    """
    return {"blog": await service.get_published_post(slug)}


@router.post("/{post_id}/like")
async def like_blog(post_id: int) -> dict:
    return await service.like_post(post_id)


@router.post("", status_code=201)
async def create_blog(
    payload: schemas.PostCreate,
    current_user: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    blog = await service.create_post(payload, author_id=int(current_user["id"]))
    return {"message": "Blog post created successfully.", "blog": blog}


@router.put("/{post_id}")
async def update_blog(
    post_id: int,
    payload: schemas.PostUpdate,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    blog = await service.update_post(post_id, payload)
    return {"message": "Blog post updated successfully.", "blog": blog}


@router.delete("/{post_id}")
async def delete_blog(
    post_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    await service.delete_post(post_id)
    return {"ok": True, "message": "Blog post deleted successfully."}


@router.put("/{post_id}/featured-image")
async def upload_featured_image(
    post_id: int,
    file: UploadFile = File(...),
    alt: str = Form(default="", max_length=300),
    caption: str = Form(default="", max_length=500),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    blog = await service.set_featured_image(post_id, file, alt=alt, caption=caption)
    return {"message": "Featured image updated.", "blog": blog}
