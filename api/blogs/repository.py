"""
Blog post persistence (raw SQL).

`tsv` is a generated column used only for search; it is never selected.
"""

from __future__ import annotations

from typing import Any

import asyncpg

from core import db
from core.errors import ConflictError

SLUG_CONSTRAINT = "blog_posts_slug_key"

WRITABLE_COLUMNS = (
    "title",
    "slug",
    "excerpt",
    "content",
    "featured_image",
    "category",
    "tags",
    "status",
    "published_at",
    "read_time",
    "table_of_contents",
    "is_sticky",
    "is_featured",
    "order",
    "related_post_ids",
    "seo",
    "series",
    "author_id",
)

READ_COLUMNS = WRITABLE_COLUMNS + ("id", "views", "likes", "created_at", "updated_at")

# Listing order for public pages (by publish date) and admin pages (by creation).
PUBLIC_SORTS = {
    "newest": "p.published_at DESC NULLS LAST, p.id DESC",
    "oldest": "p.published_at ASC NULLS LAST, p.id ASC",
    "popular": "p.views DESC, p.likes DESC, p.id DESC",
    "title": "p.title ASC, p.id ASC",
}
ADMIN_SORTS = {
    "newest": "p.created_at DESC, p.id DESC",
    "oldest": "p.created_at ASC, p.id ASC",
    "popular": "p.views DESC, p.likes DESC, p.id DESC",
    "title": "p.title ASC, p.id ASC",
}


def _columns(alias: str = "p", *, exclude: tuple[str, ...] = ()) -> str:
    return ", ".join(f'{alias}."{c}"' for c in READ_COLUMNS if c not in exclude)


def _author_columns(alias: str = "u") -> str:
    return f"{alias}.name AS author_name, {alias}.email AS author_email"


def _writable(values: dict[str, Any]) -> list[str]:
    return [c for c in WRITABLE_COLUMNS if c in values]


async def sibling_slugs(pattern: str, *, exclude_id: int | None = None) -> list[str]:
    rows = await db.fetch_all(
        """
        SELECT slug
        FROM blog_posts
        WHERE slug ~* $1
          AND ($2::bigint IS NULL OR id <> $2)
        """,
        pattern,
        exclude_id,
    )
    return [str(r["slug"]) for r in rows]


async def insert_post(values: dict[str, Any]) -> dict[str, Any]:
    columns = _writable(values)
    sql = db.insert_sql("blog_posts", columns, returning=_columns(alias="blog_posts"))
    try:
        row = await db.fetch_one(sql, *(values[c] for c in columns))
    except asyncpg.UniqueViolationError as exc:
        if db.is_unique_violation(exc, constraint=SLUG_CONSTRAINT):
            raise ConflictError(f"Slug '{values.get('slug')}' is already taken.") from exc
        raise
    if row is None:
        raise RuntimeError("Failed to insert blog post.")
    return row


async def update_post(post_id: int, values: dict[str, Any]) -> dict[str, Any] | None:
    columns = _writable(values)
    sql = db.update_sql("blog_posts", columns, returning=_columns(alias="blog_posts"))
    try:
        return await db.fetch_one(sql, post_id, *(values[c] for c in columns))
    except asyncpg.UniqueViolationError as exc:
        if db.is_unique_violation(exc, constraint=SLUG_CONSTRAINT):
            raise ConflictError(f"Slug '{values.get('slug')}' is already taken.") from exc
        raise


async def get_post_by_id(post_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {_columns()}, {_author_columns()}
        FROM blog_posts p
        JOIN users u ON u.id = p.author_id
        WHERE p.id = $1
        """,
        post_id,
    )


async def view_published_post(slug: str) -> dict[str, Any] | None:
    """
    Fetch a published post by slug and count the view in the same statement.
    """
    return await db.fetch_one(
        f"""
        WITH viewed AS (
          UPDATE blog_posts
          SET views = views + 1
          WHERE slug = $1
            AND status = 'published'
          RETURNING {_columns(alias="blog_posts")}
        )
        SELECT {_columns()}, {_author_columns()}
        FROM viewed p
        JOIN users u ON u.id = p.author_id
        """,
        slug,
    )


async def related_summaries(post_ids: list[int]) -> list[dict[str, Any]]:
    if not post_ids:
        return []
    return await db.fetch_all(
        """
        SELECT id, title, slug, featured_image, excerpt, category, published_at
        FROM blog_posts
        WHERE id = ANY($1::bigint[])
          AND status = 'published'
        ORDER BY array_position($1::bigint[], id)
        """,
        post_ids,
    )


async def list_posts(
    *,
    category: str | None = None,
    status: str | None = None,
    featured: bool | None = None,
    author_id: int | None = None,
    tags: list[str] | None = None,
    search: str | None = None,
    sort: str = "newest",
    admin_view: bool = False,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[dict[str, Any]], int]:
    """
    Filtered page of posts plus the total matching count.

    `search` uses websearch syntax against title/excerpt/content and also
    matches an exact tag. The admin view leaves `content` out of each row.
    """
    sorts = ADMIN_SORTS if admin_view else PUBLIC_SORTS
    order_by = sorts.get(sort, sorts["newest"])
    exclude = ("content",) if admin_view else ()
    where = """
        WHERE ($1::text IS NULL OR p.category = $1)
          AND ($2::text IS NULL OR p.status = $2)
          AND ($3::boolean IS NULL OR p.is_featured = $3)
          AND ($4::bigint IS NULL OR p.author_id = $4)
          AND ($5::text[] IS NULL OR p.tags && $5::text[])
          AND (
            $6::text IS NULL
            OR p.tsv @@ websearch_to_tsquery('english', $6)
            OR lower($6) = ANY(p.tags)
          )
    """
    args = (category, status, featured, author_id, tags or None, search or None)

    rows = await db.fetch_all(
        f"""
        SELECT {_columns(exclude=exclude)}, {_author_columns()}
        FROM blog_posts p
        JOIN users u ON u.id = p.author_id
        {where}
        ORDER BY {order_by}
        LIMIT $7
        OFFSET $8
        """,
        *args,
        limit,
        offset,
    )
    total = await db.fetch_value(f"SELECT count(*) FROM blog_posts p {where}", *args)
    return rows, int(total or 0)


async def delete_post(post_id: int) -> dict[str, Any] | None:
    """
    Delete a post. Returns its media references, or None when not found.
    """
    return await db.fetch_one(
        """
        DELETE FROM blog_posts
        WHERE id = $1
        RETURNING id, featured_image
        """,
        post_id,
    )


async def like_post(post_id: int) -> int | None:
    row = await db.fetch_one(
        """
        UPDATE blog_posts
        SET likes = likes + 1
        WHERE id = $1
        RETURNING likes
        """,
        post_id,
    )
    return int(row["likes"]) if row is not None else None


async def published_category_counts() -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT category AS name, count(*) AS count
        FROM blog_posts
        WHERE status = 'published'
        GROUP BY category
        ORDER BY count DESC, category ASC
        """
    )


async def popular_tags(limit: int = 20) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT tag AS name, count(*) AS count
        FROM blog_posts, unnest(tags) AS tag
        WHERE status = 'published'
        GROUP BY tag
        ORDER BY count DESC, tag ASC
        LIMIT $1
        """,
        limit,
    )


async def overview_stats() -> dict[str, Any]:
    row = await db.fetch_one(
        """
        SELECT
          count(*) AS total_blogs,
          count(*) FILTER (WHERE status = 'published') AS published_blogs,
          count(*) FILTER (WHERE status = 'draft') AS draft_blogs,
          coalesce(sum(views), 0) AS total_views,
          coalesce(sum(likes), 0) AS total_likes,
          coalesce(avg(read_time), 0)::float8 AS avg_read_time
        FROM blog_posts
        """
    )
    return row or {}


async def monthly_published_counts(months: int = 12) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT
          extract(year FROM published_at)::int AS year,
          extract(month FROM published_at)::int AS month,
          count(*) AS count
        FROM blog_posts
        WHERE status = 'published'
          AND published_at IS NOT NULL
        GROUP BY 1, 2
        ORDER BY year DESC, month DESC
        LIMIT $1
        """,
        months,
    )


async def recent_posts(limit: int = 5) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT p.id, p.title, p.slug, p.created_at, p.status, p.views, p.featured_image,
               u.name AS author_name
        FROM blog_posts p
        JOIN users u ON u.id = p.author_id
        ORDER BY p.created_at DESC, p.id DESC
        LIMIT $1
        """,
        limit,
    )
