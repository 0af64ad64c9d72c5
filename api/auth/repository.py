"""
Users and refresh tokens.

Emails are stored lower-cased; every lookup normalizes first so callers can
pass whatever the client typed.
"""

from __future__ import annotations

from datetime import datetime, timezone

from core import db

USER_COLUMNS = "id, name, email, role, is_active, created_at, updated_at"
TOKEN_COLUMNS = (
    "id, user_id, token_hash, expires_at, revoked_at, replaced_by_token_id, "
    "created_at, last_used_at, user_agent, ip_address"
)

USER_FILTER = """
    ($1::text IS NULL OR role = $1)
    AND ($2::boolean IS NULL OR is_active = $2)
"""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _required(row: dict | None, what: str) -> dict:
    if row is None:
        raise RuntimeError(f"Failed to {what}.")
    return row


async def create_user(
    *,
    name: str,
    email: str,
    password_hash: str,
    role: str = "user",
    is_active: bool = True,
) -> dict:
    row = await db.fetch_one(
        f"""
        INSERT INTO users (name, email, password_hash, role, is_active)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING {USER_COLUMNS}
        """,
        name.strip(),
        normalize_email(email),
        password_hash,
        role,
        is_active,
    )
    return _required(row, "create user")


async def ensure_admin(*, name: str, email: str, password_hash: str) -> tuple[dict, bool]:
    """
    Insert the admin if the email is new, otherwise promote and reactivate the
    existing account. An existing password is kept.

    Returns (user_row, created).
    """
    row = await db.fetch_one(
        f"""
        INSERT INTO users AS u (name, email, password_hash, role, is_active)
        VALUES ($1, $2, $3, 'admin', true)
        ON CONFLICT (email) DO UPDATE
        SET role = 'admin', is_active = true, updated_at = now()
        RETURNING {USER_COLUMNS}, (xmax = 0) AS created
        """,
        name.strip(),
        normalize_email(email),
        password_hash,
    )
    row = _required(row, "provision admin user")
    return row, bool(row.pop("created"))


async def _user_where(clause: str, value) -> dict | None:
    # Includes password_hash: only the auth service reads these rows.
    return await db.fetch_one(
        f"SELECT {USER_COLUMNS}, password_hash FROM users WHERE {clause} = $1",
        value,
    )


async def get_user_by_email(email: str) -> dict | None:
    return await _user_where("email", normalize_email(email))


async def get_user_by_id(user_id: int) -> dict | None:
    return await _user_where("id", user_id)


async def list_users(
    *,
    role: str | None = None,
    is_active: bool | None = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[dict], int]:
    rows = await db.fetch_all(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE {USER_FILTER}
        ORDER BY created_at DESC, id DESC
        LIMIT $3 OFFSET $4
        """,
        role,
        is_active,
        limit,
        offset,
    )
    total = await db.fetch_value(f"SELECT count(*) FROM users WHERE {USER_FILTER}", role, is_active)
    return rows, int(total or 0)


async def set_user_active(user_id: int, *, is_active: bool) -> dict | None:
    return await db.fetch_one(
        f"""
        UPDATE users
        SET is_active = $2, updated_at = now()
        WHERE id = $1
        RETURNING {USER_COLUMNS}
        """,
        user_id,
        is_active,
    )


async def user_stats() -> dict[str, int]:
    row = await db.fetch_one(
        """
        SELECT
          count(*) AS total_users,
          count(*) FILTER (WHERE is_active) AS active_users,
          count(*) FILTER (WHERE role = 'admin') AS admin_users
        FROM users
        """
    )
    row = row or {}
    return {key: int(row.get(key) or 0) for key in ("total_users", "active_users", "admin_users")}


async def insert_refresh_token(
    *,
    user_id: int,
    token_hash: str,
    expires_at: datetime,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> dict:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    row = await db.fetch_one(
        f"""
        INSERT INTO refresh_tokens (user_id, token_hash, expires_at, user_agent, ip_address)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING {TOKEN_COLUMNS}
        """,
        user_id,
        token_hash,
        expires_at,
        user_agent,
        ip_address,
    )
    return _required(row, "insert refresh token")


async def get_refresh_token_by_hash(token_hash: str) -> dict | None:
    return await db.fetch_one(
        f"SELECT {TOKEN_COLUMNS} FROM refresh_tokens WHERE token_hash = $1",
        token_hash,
    )


async def _revoke(clause: str, value, *, touch: bool = False) -> bool:
    used = ", last_used_at = now()" if touch else ""
    row = await db.fetch_one(
        f"""
        UPDATE refresh_tokens
        SET revoked_at = now(){used}
        WHERE {clause} = $1 AND revoked_at IS NULL
        RETURNING id
        """,
        value,
    )
    return row is not None


async def consume_refresh_token(token_id: int) -> bool:
    """
    Mark a refresh token used and revoked in one statement. False when it
    was already revoked (reuse, or a concurrent refresh won).
    """
    return await _revoke("id", token_id, touch=True)


async def revoke_refresh_token_by_hash(token_hash: str) -> bool:
    return await _revoke("token_hash", token_hash)


async def revoke_refresh_token_by_id(token_id: int) -> bool:
    return await _revoke("id", token_id)


async def revoke_all_refresh_tokens_for_user(user_id: int) -> None:
    await db.execute(
        "UPDATE refresh_tokens SET revoked_at = now() WHERE user_id = $1 AND revoked_at IS NULL",
        user_id,
    )


async def set_refresh_token_replacement(*, old_token_id: int, new_token_id: int) -> None:
    await db.execute(
        "UPDATE refresh_tokens SET replaced_by_token_id = $2 WHERE id = $1",
        old_token_id,
        new_token_id,
    )
