"""
Blog post business logic.

Every write goes through `content.pipeline.save_document`, which owns slug,
`published_at`, read time and table of contents. Counters (views, likes) are
plain atomic updates and skip the pipeline.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from fastapi import UploadFile

from content import lifecycle, pipeline
from core.errors import NotFoundError
from media import storage

from . import repository, schemas

logger = logging.getLogger(__name__)

POST_KIND = pipeline.ContentKind(
    collection="blog_posts",
    title_max_length=150,
    body_field="content",
    is_published=lambda doc: doc.get("status") == lifecycle.PUBLISHED,
    status_field="status",
    derives_reading=True,
)

# Columns that may be written as NULL on update; others drop explicit nulls.
NULLABLE_FIELDS = {"featured_image", "series"}

POPULAR_TAGS_LIMIT = 20


def _store() -> pipeline.ContentStore:
    return pipeline.ContentStore(
        sibling_slugs=repository.sibling_slugs,
        insert=repository.insert_post,
        update=repository.update_post,
    )


def category_display(category: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in (category or "").split("-"))


def formatted_date(value: datetime | None) -> str | None:
    if value is None:
        return None
    return f"{value:%B} {value.day}, {value.year}"


def to_response(row: Mapping[str, Any]) -> dict[str, Any]:
    post = dict(row)
    post["formatted_publish_date"] = formatted_date(post.get("published_at"))
    post["category_display"] = category_display(str(post.get("category") or ""))
    if "author_name" in post:
        post["author"] = {
            "id": post.get("author_id"),
            "name": post.pop("author_name"),
            "email": post.pop("author_email", None),
        }
    return post


def _pagination(page: int, limit: int, total: int) -> dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def _update_values(payload: schemas.PostUpdate) -> dict[str, Any]:
    values = payload.model_dump(exclude_unset=True)
    return {k: v for k, v in values.items() if v is not None or k in NULLABLE_FIELDS}


async def list_posts(
    *,
    category: str | None = None,
    status: str | None = None,
    featured: bool | None = None,
    author_id: int | None = None,
    tags: str | None = None,
    search: str | None = None,
    sort: str = "newest",
    page: int = 1,
    limit: int = 10,
    is_admin: bool = False,
) -> dict[str, Any]:
    """
    Public listing. Only admins may ask for a status other than published.
    """
    effective_status = status if (status and is_admin) else lifecycle.PUBLISHED
    tag_list = schemas.split_tags(tags) if tags else None

    rows, total = await repository.list_posts(
        category=category,
        status=effective_status,
        featured=featured,
        author_id=author_id,
        tags=tag_list or None,
        search=(search or "").strip() or None,
        sort=sort,
        limit=limit,
        offset=(page - 1) * limit,
    )
    return {
        "results": len(rows),
        "pagination": _pagination(page, limit, total),
        "blogs": [to_response(r) for r in rows],
    }


async def list_posts_admin(
    *,
    category: str | None = None,
    status: str | None = None,
    author_id: int | None = None,
    sort: str = "newest",
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    rows, total = await repository.list_posts(
        category=category,
        status=status,
        author_id=author_id,
        sort=sort,
        admin_view=True,
        limit=limit,
        offset=(page - 1) * limit,
    )
    return {
        "results": len(rows),
        "pagination": _pagination(page, limit, total),
        "blogs": [to_response(r) for r in rows],
    }


async def get_published_post(slug: str) -> dict[str, Any]:
    row = await repository.view_published_post(slug)
    if row is None:
        raise NotFoundError("Blog post not found.")

    post = to_response(row)
    post["related_posts"] = await repository.related_summaries(list(row.get("related_post_ids") or []))
    return post


async def get_post(post_id: int) -> dict[str, Any]:
    row = await repository.get_post_by_id(post_id)
    if row is None:
        raise NotFoundError("Blog post not found.")
    return to_response(row)


async def create_post(payload: schemas.PostCreate, *, author_id: int) -> dict[str, Any]:
    values = payload.model_dump()
    values["author_id"] = author_id
    row = await pipeline.save_document(values, kind=POST_KIND, store=_store())
    logger.info("blog_post_created id=%s slug=%s status=%s", row["id"], row["slug"], row["status"])
    return to_response(row)


async def update_post(post_id: int, payload: schemas.PostUpdate) -> dict[str, Any]:
    current = await repository.get_post_by_id(post_id)
    if current is None:
        raise NotFoundError("Blog post not found.")

    values = _update_values(payload)
    row = await pipeline.save_document(values, kind=POST_KIND, store=_store(), current=current)

    if "featured_image" in values:
        await _drop_replaced_image(current, row)
    return to_response(row)


async def _drop_replaced_image(previous: Mapping[str, Any], saved: Mapping[str, Any]) -> None:
    old_url = (previous.get("featured_image") or {}).get("url")
    new_url = (saved.get("featured_image") or {}).get("url")
    if old_url and old_url != new_url:
        await storage.delete_many([old_url])


async def delete_post(post_id: int) -> None:
    row = await repository.delete_post(post_id)
    if row is None:
        raise NotFoundError("Blog post not found.")

    image = row.get("featured_image") or {}
    if image.get("url"):
        await storage.delete_many([image["url"]])
    logger.info("blog_post_deleted id=%s", post_id)


async def like_post(post_id: int) -> dict[str, int]:
    likes = await repository.like_post(post_id)
    if likes is None:
        raise NotFoundError("Blog post not found.")
    return {"likes": likes}


async def set_featured_image(
    post_id: int,
    file: UploadFile,
    *,
    alt: str = "",
    caption: str = "",
) -> dict[str, Any]:
    """
    Store a new featured image; the previous stored file is removed once the
    post points at the new one.
    """
    current = await repository.get_post_by_id(post_id)
    if current is None:
        raise NotFoundError("Blog post not found.")

    stored = await storage.save_upload(file)
    try:
        row = await pipeline.save_document(
            {"featured_image": {"url": stored.url, "alt": alt, "caption": caption}},
            kind=POST_KIND,
            store=_store(),
            current=current,
        )
    except Exception:
        await storage.delete_many([stored.url])
        raise

    await _drop_replaced_image(current, row)
    return to_response(row)


async def categories() -> list[dict[str, Any]]:
    rows = await repository.published_category_counts()
    return [
        {
            "name": r["name"],
            "display_name": category_display(str(r["name"])),
            "count": int(r["count"]),
        }
        for r in rows
    ]


async def popular_tags() -> list[dict[str, Any]]:
    rows = await repository.popular_tags(limit=POPULAR_TAGS_LIMIT)
    return [{"name": r["name"], "count": int(r["count"])} for r in rows]


def overview_from_row(row: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "total_blogs": int(row.get("total_blogs") or 0),
        "published_blogs": int(row.get("published_blogs") or 0),
        "draft_blogs": int(row.get("draft_blogs") or 0),
        "total_views": int(row.get("total_views") or 0),
        "total_likes": int(row.get("total_likes") or 0),
        "avg_read_time": round(float(row.get("avg_read_time") or 0), 1),
    }


async def stats() -> dict[str, Any]:
    overview = await repository.overview_stats()
    category_rows = await repository.published_category_counts()
    monthly_rows = await repository.monthly_published_counts()
    return {
        "overview": overview_from_row(overview),
        "category_stats": [{"category": r["name"], "count": int(r["count"])} for r in category_rows],
        "monthly_stats": [
            {"year": int(r["year"]), "month": int(r["month"]), "count": int(r["count"])}
            for r in monthly_rows
        ],
    }
