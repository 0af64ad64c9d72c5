"""
Project business logic.

Writes go through `content.pipeline.save_document` (slug and `published_at`);
projects carry no read time or table of contents. Image uploads and image
edits rewrite the `images` JSONB list through the same pipeline.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Mapping
from datetime import date
from typing import Any

from fastapi import UploadFile

from content import pipeline
from core.errors import NotFoundError
from media import storage

from . import repository, schemas

logger = logging.getLogger(__name__)

PROJECT_KIND = pipeline.ContentKind(
    collection="projects",
    title_max_length=100,
    body_field="description",
    is_published=lambda doc: doc.get("is_published") is True,
)

# Columns that may be written as NULL on update; others drop explicit nulls.
NULLABLE_FIELDS = {"long_description", "demo_url", "github_url", "start_date", "end_date", "my_role"}


def _store() -> pipeline.ContentStore:
    return pipeline.ContentStore(
        sibling_slugs=repository.sibling_slugs,
        insert=repository.insert_project,
        update=repository.update_project,
    )


def primary_image(images: list[Mapping[str, Any]] | None) -> Mapping[str, Any] | None:
    images = images or []
    for image in images:
        if image.get("is_primary"):
            return image
    return images[0] if images else None


def duration_days(start: date | None, end: date | None) -> int | None:
    if start is None or end is None:
        return None
    delta = abs(end - start)
    return math.ceil(delta.total_seconds() / 86400)


def to_response(row: Mapping[str, Any]) -> dict[str, Any]:
    project = dict(row)
    project["primary_image"] = primary_image(project.get("images"))
    project["duration_days"] = duration_days(project.get("start_date"), project.get("end_date"))
    if "created_by_name" in project:
        project["created_by"] = {
            "id": project.get("created_by"),
            "name": project.pop("created_by_name"),
        }
    return project


def _pagination(page: int, limit: int, total: int) -> dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def _update_values(payload: schemas.ProjectUpdate) -> dict[str, Any]:
    values = payload.model_dump(exclude_unset=True)
    return {k: v for k, v in values.items() if v is not None or k in NULLABLE_FIELDS}


def _split_filter(value: str | None, *, lower: bool = False) -> list[str] | None:
    if not value:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    if lower:
        items = [item.lower() for item in items]
    return items or None


async def list_projects(
    *,
    category: str | None = None,
    status: str | None = None,
    featured: bool | None = None,
    published: bool | None = None,
    year: int | None = None,
    tags: str | None = None,
    technologies: str | None = None,
    search: str | None = None,
    sort: str = "newest",
    page: int = 1,
    limit: int = 10,
    is_admin: bool = False,
) -> dict[str, Any]:
    """
    Public listing. Non-admins only ever see published projects; admins may
    filter on `published` or leave it open.
    """
    rows, total = await repository.list_projects(
        category=category,
        status=status,
        featured=featured,
        published=published if is_admin else True,
        year=year,
        tags=_split_filter(tags, lower=True),
        technologies=_split_filter(technologies),
        search=(search or "").strip() or None,
        sort=sort,
        limit=limit,
        offset=(page - 1) * limit,
    )
    return {
        "results": len(rows),
        "pagination": _pagination(page, limit, total),
        "projects": [to_response(r) for r in rows],
    }


async def get_published_project(slug: str) -> dict[str, Any]:
    row = await repository.get_published_project(slug)
    if row is None:
        raise NotFoundError("Project not found.")
    return to_response(row)


async def _current(project_id: int) -> dict[str, Any]:
    row = await repository.get_project_by_id(project_id)
    if row is None:
        raise NotFoundError("Project not found.")
    return row


async def get_project(project_id: int) -> dict[str, Any]:
    return to_response(await _current(project_id))


async def create_project(payload: schemas.ProjectCreate, *, created_by: int) -> dict[str, Any]:
    values = payload.model_dump()
    values["created_by"] = created_by
    row = await pipeline.save_document(values, kind=PROJECT_KIND, store=_store())
    logger.info("project_created id=%s slug=%s published=%s", row["id"], row["slug"], row["is_published"])
    return to_response(row)


async def update_project(project_id: int, payload: schemas.ProjectUpdate) -> dict[str, Any]:
    current = await _current(project_id)
    row = await pipeline.save_document(
        _update_values(payload),
        kind=PROJECT_KIND,
        store=_store(),
        current=current,
    )
    return to_response(row)


async def delete_project(project_id: int) -> None:
    row = await repository.delete_project(project_id)
    if row is None:
        raise NotFoundError("Project not found.")

    await storage.delete_many([image["url"] for image in row.get("images") or [] if image.get("url")])
    logger.info("project_deleted id=%s", project_id)


async def _save_images(current: Mapping[str, Any], images: list[dict[str, Any]]) -> dict[str, Any]:
    return await pipeline.save_document(
        {"images": images},
        kind=PROJECT_KIND,
        store=_store(),
        current=current,
    )


async def add_images(project_id: int, files: list[UploadFile], *, alt: str = "") -> dict[str, Any]:
    """
    Append uploaded images. The first image of a project without images
    becomes its primary image.
    """
    current = await _current(project_id)
    stored = await storage.save_uploads(files)

    images = [dict(image) for image in current.get("images") or []]
    first_is_primary = not images
    for index, item in enumerate(stored):
        images.append(
            {
                "id": uuid.uuid4().hex,
                "url": item.url,
                "alt": alt or str(current.get("title") or ""),
                "caption": "",
                "is_primary": first_is_primary and index == 0,
            }
        )

    try:
        row = await _save_images(current, images)
    except Exception:
        await storage.delete_many([item.url for item in stored])
        raise

    logger.info("project_images_added id=%s count=%s", project_id, len(stored))
    return to_response(row)


def _find_image(images: list[dict[str, Any]], image_id: str) -> dict[str, Any]:
    for image in images:
        if image.get("id") == image_id:
            return image
    raise NotFoundError("Image not found.")


async def set_primary_image(project_id: int, image_id: str) -> dict[str, Any]:
    current = await _current(project_id)
    images = [dict(image) for image in current.get("images") or []]
    _find_image(images, image_id)

    for image in images:
        image["is_primary"] = image.get("id") == image_id
    return to_response(await _save_images(current, images))


async def delete_image(project_id: int, image_id: str) -> dict[str, Any]:
    """
    Remove one image; if it was primary, the first remaining image takes over.
    """
    current = await _current(project_id)
    images = [dict(image) for image in current.get("images") or []]
    removed = _find_image(images, image_id)

    remaining = [image for image in images if image.get("id") != image_id]
    if removed.get("is_primary") and remaining:
        remaining[0]["is_primary"] = True

    row = await _save_images(current, remaining)
    if removed.get("url"):
        await storage.delete_many([removed["url"]])
    return to_response(row)


async def stats() -> dict[str, Any]:
    overview = await repository.overview_stats()
    category_rows = await repository.category_counts()
    year_rows = await repository.year_counts()
    return {
        "overview": overview_from_row(overview),
        "category_stats": [{"category": r["name"], "count": int(r["count"])} for r in category_rows],
        "year_stats": [{"year": int(r["year"]), "count": int(r["count"])} for r in year_rows],
    }


def overview_from_row(row: Mapping[str, Any]) -> dict[str, int]:
    return {
        "total_projects": int(row.get("total_projects") or 0),
        "published_projects": int(row.get("published_projects") or 0),
        "draft_projects": int(row.get("draft_projects") or 0),
        "featured_projects": int(row.get("featured_projects") or 0),
    }
