"""
Project persistence (raw SQL).
"""

from __future__ import annotations

from typing import Any

import asyncpg

from core import db
from core.errors import ConflictError

SLUG_CONSTRAINT = "projects_slug_key"

WRITABLE_COLUMNS = (
    "title",
    "slug",
    "description",
    "long_description",
    "category",
    "status",
    "priority",
    "technologies",
    "tags",
    "images",
    "demo_url",
    "github_url",
    "year",
    "start_date",
    "end_date",
    "team_size",
    "my_role",
    "challenges",
    "features",
    "learnings",
    "metrics",
    "is_published",
    "published_at",
    "is_featured",
    "order",
    "seo",
    "created_by",
)

READ_COLUMNS = WRITABLE_COLUMNS + ("id", "created_at", "updated_at")

SORTS = {
    "newest": 'p.created_at DESC, p.id DESC',
    "oldest": 'p.created_at ASC, p.id ASC',
    "order": 'p."order" ASC, p.created_at DESC, p.id DESC',
    "title": 'p.title ASC, p.id ASC',
    "year": 'p.year DESC, p."order" ASC, p.id DESC',
}


def _columns(alias: str = "p") -> str:
    return ", ".join(f'{alias}."{c}"' for c in READ_COLUMNS)


def _writable(values: dict[str, Any]) -> list[str]:
    return [c for c in WRITABLE_COLUMNS if c in values]


async def sibling_slugs(pattern: str, *, exclude_id: int | None = None) -> list[str]:
    rows = await db.fetch_all(
        """
        SELECT slug
        FROM projects
        WHERE slug ~* $1
          AND ($2::bigint IS NULL OR id <> $2)
        """,
        pattern,
        exclude_id,
    )
    return [str(r["slug"]) for r in rows]


async def insert_project(values: dict[str, Any]) -> dict[str, Any]:
    columns = _writable(values)
    sql = db.insert_sql("projects", columns, returning=_columns(alias="projects"))
    try:
        row = await db.fetch_one(sql, *(values[c] for c in columns))
    except asyncpg.UniqueViolationError as exc:
        if db.is_unique_violation(exc, constraint=SLUG_CONSTRAINT):
            raise ConflictError(f"Slug '{values.get('slug')}' is already taken.") from exc
        raise
    if row is None:
        raise RuntimeError("Failed to insert project.")
    return row


async def update_project(project_id: int, values: dict[str, Any]) -> dict[str, Any] | None:
    columns = _writable(values)
    sql = db.update_sql("projects", columns, returning=_columns(alias="projects"))
    try:
        return await db.fetch_one(sql, project_id, *(values[c] for c in columns))
    except asyncpg.UniqueViolationError as exc:
        if db.is_unique_violation(exc, constraint=SLUG_CONSTRAINT):
            raise ConflictError(f"Slug '{values.get('slug')}' is already taken.") from exc
        raise


async def get_project_by_id(project_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {_columns()}, u.name AS created_by_name
        FROM projects p
        JOIN users u ON u.id = p.created_by
        WHERE p.id = $1
        """,
        project_id,
    )


async def get_published_project(slug: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {_columns()}, u.name AS created_by_name
        FROM projects p
        JOIN users u ON u.id = p.created_by
        WHERE p.slug = $1
          AND p.is_published
        """,
        slug,
    )


async def list_projects(
    *,
    category: str | None = None,
    status: str | None = None,
    featured: bool | None = None,
    published: bool | None = None,
    year: int | None = None,
    tags: list[str] | None = None,
    technologies: list[str] | None = None,
    search: str | None = None,
    sort: str = "newest",
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[dict[str, Any]], int]:
    """
    Filtered page of projects plus the total matching count.

    `technologies` matches case-insensitively; `search` is a substring match
    on title, description, long description, technologies and tags.
    """
    order_by = SORTS.get(sort, SORTS["newest"])
    where = """
        WHERE ($1::text IS NULL OR p.category = $1)
          AND ($2::text IS NULL OR p.status = $2)
          AND ($3::boolean IS NULL OR p.is_featured = $3)
          AND ($4::boolean IS NULL OR p.is_published = $4)
          AND ($5::int IS NULL OR p.year = $5)
          AND ($6::text[] IS NULL OR p.tags && $6::text[])
          AND (
            $7::text[] IS NULL
            OR EXISTS (
              SELECT 1
              FROM unnest(p.technologies) AS tech
              WHERE lower(tech) = ANY($7::text[])
            )
          )
          AND (
            $8::text IS NULL
            OR strpos(lower(p.title), lower($8)) > 0
            OR strpos(lower(p.description), lower($8)) > 0
            OR strpos(lower(coalesce(p.long_description, '')), lower($8)) > 0
            OR EXISTS (
              SELECT 1
              FROM unnest(p.technologies || p.tags) AS term
              WHERE strpos(lower(term), lower($8)) > 0
            )
          )
    """
    lowered = [t.lower() for t in technologies] if technologies else None
    args = (category, status, featured, published, year, tags or None, lowered, search or None)

    rows = await db.fetch_all(
        f"""
        SELECT {_columns()}, u.name AS created_by_name
        FROM projects p
        JOIN users u ON u.id = p.created_by
        {where}
        ORDER BY {order_by}
        LIMIT $9
        OFFSET $10
        """,
        *args,
        limit,
        offset,
    )
    total = await db.fetch_value(f"SELECT count(*) FROM projects p {where}", *args)
    return rows, int(total or 0)


async def delete_project(project_id: int) -> dict[str, Any] | None:
    """
    Delete a project. Returns its image list, or None when not found.
    """
    return await db.fetch_one(
        """
        DELETE FROM projects
        WHERE id = $1
        RETURNING id, images
        """,
        project_id,
    )


async def overview_stats() -> dict[str, Any]:
    row = await db.fetch_one(
        """
        SELECT
          count(*) AS total_projects,
          count(*) FILTER (WHERE is_published) AS published_projects,
          count(*) FILTER (WHERE NOT is_published) AS draft_projects,
          count(*) FILTER (WHERE is_featured) AS featured_projects
        FROM projects
        """
    )
    return row or {}


async def category_counts() -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT category AS name, count(*) AS count
        FROM projects
        GROUP BY category
        ORDER BY count DESC, category ASC
        """
    )


async def year_counts() -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT year, count(*) AS count
        FROM projects
        GROUP BY year
        ORDER BY year DESC
        """
    )


async def recent_projects(limit: int = 5) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT p.id, p.title, p.slug, p.created_at, p.is_published, p.category, p.images,
               p.created_by, u.name AS created_by_name
        FROM projects p
        JOIN users u ON u.id = p.created_by
        ORDER BY p.created_at DESC, p.id DESC
        LIMIT $1
        """,
        limit,
    )
