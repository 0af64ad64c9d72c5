"""
asyncpg pool and raw-SQL helpers shared by every repository module.

The API opens the pool in its lifespan hook and the seed CLI opens it around
its run. Queries use asyncpg positional placeholders ($1, $2, ...) and rows
come back as plain dicts. Each pooled connection registers a json/jsonb codec
so JSONB columns read and write as lists and dicts.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .config import env_int, env_str

_pool: asyncpg.Pool | None = None


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = env_str("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def _init_connection(conn: asyncpg.Connection) -> None:
    for type_name in ("jsonb", "json"):
        await conn.set_type_codec(
            type_name,
            encoder=json.dumps,
            decoder=json.loads,
            schema="pg_catalog",
        )


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=1,
        max_size=env_int("DB_POOL_MAX_SIZE", 5),
        command_timeout=30,
        init=_init_connection,
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("Database pool is closed; call init_pool() first.")
    return _pool


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    row = await pool().fetchrow(sql, *args)
    return None if row is None else dict(row)


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    return [dict(row) for row in await pool().fetch(sql, *args)]


async def fetch_value(sql: str, *args: Any) -> Any:
    return await pool().fetchval(sql, *args)


async def execute(sql: str, *args: Any) -> None:
    await pool().execute(sql, *args)


def is_unique_violation(exc: BaseException, *, constraint: str | None = None) -> bool:
    """
    True when `exc` is a UNIQUE violation, optionally on a specific constraint.
    """
    if not isinstance(exc, asyncpg.UniqueViolationError):
        return False
    if constraint is None:
        return True
    return getattr(exc, "constraint_name", None) == constraint


def _quote(column: str) -> str:
    return f'"{column}"'


def insert_sql(table: str, columns: list[str], *, returning: str) -> str:
    """
    `INSERT INTO table (c1, c2) VALUES ($1, $2) RETURNING ...`

    Column names must come from a whitelist, never from user input.
    """
    names = ", ".join(_quote(c) for c in columns)
    params = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
    return f"INSERT INTO {table} ({names}) VALUES ({params}) RETURNING {returning}"


def update_sql(table: str, columns: list[str], *, returning: str) -> str:
    """
    `UPDATE table SET c1 = $2, ..., updated_at = now() WHERE id = $1 RETURNING ...`
    """
    assignments = [f"{_quote(c)} = ${i}" for i, c in enumerate(columns, start=2)]
    assignments.append("updated_at = now()")
    return f"UPDATE {table} SET {', '.join(assignments)} WHERE id = $1 RETURNING {returning}"
