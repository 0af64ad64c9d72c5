"""
Auth business logic.

A session is one refresh token row. Refreshing consumes the presented token
(single use) and opens a replacement linked to it; logout revokes one token
or every token of the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import HTTPException, status

from core.errors import ConflictError, ValidationError

from . import repository, schemas, security

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class ClientInfo:
    user_agent: str | None = None
    ip_address: str | None = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _inactive() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive.")


def to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        name=str(user_row.get("name") or ""),
        email=str(user_row["email"]),
        role=str(user_row.get("role") or "user"),
        is_active=bool(user_row["is_active"]),
        created_at=user_row["created_at"],
    )


def is_admin(user_row: dict | None) -> bool:
    return user_row is not None and str(user_row.get("role") or "") == ADMIN_ROLE


def _password_hash(password: str) -> str:
    try:
        return security.hash_password(password)
    except security.AuthSecurityError as exc:
        raise ValidationError.for_field("password", str(exc)) from exc


async def _open_session(
    user_row: dict,
    client: ClientInfo,
    *,
    replaces_token_id: int | None = None,
) -> schemas.TokenPairResponse:
    refresh = security.new_refresh_token()
    token_row = await repository.insert_refresh_token(
        user_id=int(user_row["id"]),
        token_hash=refresh.digest,
        expires_at=refresh.expires_at,
        user_agent=client.user_agent,
        ip_address=client.ip_address,
    )
    if replaces_token_id is not None:
        await repository.set_refresh_token_replacement(
            old_token_id=replaces_token_id,
            new_token_id=int(token_row["id"]),
        )

    return schemas.TokenPairResponse(
        access_token=security.issue_access_token(user_row),
        refresh_token=refresh.raw,
    )


async def register(payload: schemas.RegisterRequest, client: ClientInfo) -> schemas.AuthResponse:
    if await repository.get_user_by_email(payload.email) is not None:
        raise ConflictError("Email is already registered.")

    user_row = await repository.create_user(
        name=payload.name,
        email=payload.email,
        password_hash=_password_hash(payload.password),
    )
    logger.info("user_registered user_id=%s", user_row["id"])

    tokens = await _open_session(user_row, client)
    return schemas.AuthResponse(user=to_user_response(user_row), tokens=tokens)


async def login(payload: schemas.LoginRequest, client: ClientInfo) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(payload.email)
    password_hash = str((user_row or {}).get("password_hash") or "")
    if user_row is None or not security.verify_password(payload.password, password_hash):
        raise _unauthorized("Invalid email or password.")
    if not user_row.get("is_active"):
        raise _inactive()

    tokens = await _open_session(user_row, client)
    return schemas.AuthResponse(user=to_user_response(user_row), tokens=tokens)


async def refresh_session(payload: schemas.RefreshRequest, client: ClientInfo) -> schemas.TokenPairResponse:
    try:
        digest = security.refresh_digest(payload.refresh_token)
    except security.AuthSecurityError as exc:
        raise ValidationError.for_field("refresh_token", str(exc)) from exc

    token_row = await repository.get_refresh_token_by_hash(digest)
    if token_row is None:
        raise _unauthorized("Invalid refresh token.")
    token_id = int(token_row["id"])

    expires_at = token_row.get("expires_at")
    if not isinstance(expires_at, datetime) or expires_at <= datetime.now(timezone.utc):
        await repository.revoke_refresh_token_by_id(token_id)
        raise _unauthorized("Refresh token is expired.")

    user_row = await repository.get_user_by_id(int(token_row["user_id"]))
    if user_row is None or not user_row.get("is_active"):
        await repository.revoke_refresh_token_by_id(token_id)
        raise _unauthorized("Invalid refresh token owner.")

    # Losing this race means the token was already used or revoked.
    if not await repository.consume_refresh_token(token_id):
        logger.warning("refresh_token_reuse token_id=%s user_id=%s", token_id, user_row["id"])
        raise _unauthorized("Refresh token is revoked.")

    return await _open_session(user_row, client, replaces_token_id=token_id)


async def logout(payload: schemas.LogoutRequest, *, current_user_id: int | None = None) -> dict[str, bool]:
    if payload.refresh_token:
        await repository.revoke_refresh_token_by_hash(security.refresh_digest(payload.refresh_token))
        return {"ok": True}

    if current_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide refresh_token or authenticated user.",
        )
    await repository.revoke_all_refresh_tokens_for_user(current_user_id)
    return {"ok": True}


async def authenticate(access_token: str) -> dict:
    """
    Resolve a bearer token to its (active) user row.
    """
    try:
        claims = security.read_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise _unauthorized(str(exc)) from exc

    user_row = await repository.get_user_by_id(claims.user_id)
    if user_row is None:
        raise _unauthorized("User not found.")
    if not user_row.get("is_active"):
        raise _inactive()
    return user_row


async def provision_admin(*, name: str, email: str, password: str) -> tuple[dict, bool]:
    """
    Idempotent admin bootstrap. Re-running it with the same email only makes
    sure the account is an active admin.
    """
    email = repository.normalize_email(email)
    if not email or "@" not in email:
        raise ValidationError.for_field("email", "Admin email is invalid.")
    user_row, created = await repository.ensure_admin(
        name=name or "Admin",
        email=email,
        password_hash=_password_hash(password),
    )
    logger.info("admin_provisioned email=%s user_id=%s created=%s", email, user_row["id"], created)
    return user_row, created
