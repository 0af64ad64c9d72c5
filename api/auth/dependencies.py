"""
Auth dependencies for protected FastAPI routes.

- get_current_user: valid bearer token required (401/403 otherwise)
- get_optional_user: anonymous on a missing or unusable token
- require_admin: current user must have the admin role
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status

from . import service

BEARER_SCHEME = "bearer"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def parse_bearer(authorization: str | None) -> str | None:
    """
    Token from an `Authorization: Bearer <token>` header; None when absent.
    """
    raw = (authorization or "").strip()
    if not raw:
        return None

    scheme, _, token = raw.partition(" ")
    if scheme.lower() != BEARER_SCHEME or not token.strip():
        raise _unauthorized("Authorization must be: Bearer <token>.")
    return token.strip()


async def get_current_user(authorization: str | None = Header(default=None)) -> dict:
    token = parse_bearer(authorization)
    if token is None:
        raise _unauthorized("Missing Authorization header.")
    return await service.authenticate(token)


async def get_optional_user(authorization: str | None = Header(default=None)) -> dict | None:
    try:
        token = parse_bearer(authorization)
        return await service.authenticate(token) if token is not None else None
    except HTTPException:
        return None


async def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    if not service.is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required.",
        )
    return current_user
