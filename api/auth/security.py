"""
Credential primitives: bcrypt password hashes, JWT access tokens and opaque
refresh tokens.

Access tokens carry the user's role so admin-only routes can be rejected
early, but the role is always re-read from the users table before a request
is served (see `service.authenticate`).
"""

from __future__ import annotations

import hashlib
import secrets
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

from core.config import env_int, env_str

DEV_JWT_SECRET = "dev-change-this-secret"
ACCESS_TOKEN_TYPE = "access"

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


class AuthSecurityError(RuntimeError):
    pass


@dataclass(frozen=True)
class TokenSettings:
    secret: str
    algorithm: str
    access_ttl: timedelta
    refresh_ttl: timedelta


@dataclass(frozen=True)
class AccessClaims:
    user_id: int
    email: str
    role: str
    expires_at: datetime


@dataclass(frozen=True)
class RefreshToken:
    raw: str
    digest: str
    expires_at: datetime


def token_settings() -> TokenSettings:
    return TokenSettings(
        secret=env_str("JWT_SECRET", DEV_JWT_SECRET),
        algorithm=env_str("JWT_ALG", "HS256"),
        access_ttl=timedelta(minutes=env_int("ACCESS_TOKEN_EXPIRE_MIN", 15)),
        refresh_ttl=timedelta(days=env_int("REFRESH_TOKEN_EXPIRE_DAYS", 30)),
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _password_bytes(plain_password: str) -> bytes:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    if len(password) > BCRYPT_MAX_BYTES:
        raise AuthSecurityError(f"Password is longer than {BCRYPT_MAX_BYTES} bytes.")
    return password


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(_password_bytes(plain_password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), password_hash.encode("utf-8"))
    except (AuthSecurityError, ValueError):
        return False


def issue_access_token(user_row: Mapping[str, Any], *, now: datetime | None = None) -> str:
    settings = token_settings()
    issued_at = now or _utc_now()
    payload = {
        "sub": str(user_row["id"]),
        "email": str(user_row["email"]),
        "role": str(user_row.get("role") or "user"),
        "type": ACCESS_TOKEN_TYPE,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + settings.access_ttl).timestamp()),
    }
    return jwt.encode(payload, settings.secret, algorithm=settings.algorithm)


def read_access_token(token: str) -> AccessClaims:
    """
    Verify signature, expiry and token type; raise AuthSecurityError otherwise.
    """
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    settings = token_settings()
    try:
        payload = jwt.decode(
            raw,
            settings.secret,
            algorithms=[settings.algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Access token has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    if str(payload.get("type") or "").lower() != ACCESS_TOKEN_TYPE:
        raise AuthSecurityError("Token is not an access token.")

    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        raise AuthSecurityError("Invalid access token subject.")

    return AccessClaims(
        user_id=int(subject),
        email=str(payload.get("email") or ""),
        role=str(payload.get("role") or "user"),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )


def refresh_digest(raw_refresh_token: str) -> str:
    token = (raw_refresh_token or "").strip().encode("utf-8")
    if not token:
        raise AuthSecurityError("Refresh token is empty.")
    return hashlib.sha256(token).hexdigest()


def new_refresh_token(*, now: datetime | None = None) -> RefreshToken:
    """
    Opaque URL-safe token; only its SHA-256 digest is stored.
    """
    raw = secrets.token_urlsafe(48)
    return RefreshToken(
        raw=raw,
        digest=refresh_digest(raw),
        expires_at=(now or _utc_now()) + token_settings().refresh_ttl,
    )
