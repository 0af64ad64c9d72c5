"""
Seed operations, shared by the CLI.

Sample content is always owned by an explicitly named admin; nothing here
guesses an owner from whatever users happen to exist.
"""

from __future__ import annotations

import logging

from auth import repository as auth_repository
from auth import service as auth_service
from blogs import schemas as blog_schemas
from blogs import service as blog_service
from core import db
from core.errors import ContentError
from projects import schemas as project_schemas
from projects import service as project_service

from .data import SAMPLE_POSTS, SAMPLE_PROJECTS

logger = logging.getLogger(__name__)


class SeedError(RuntimeError):
    pass


async def bootstrap_admin(*, name: str, email: str, password: str) -> dict:
    if not email or not password:
        raise SeedError("Admin email and password are required (ADMIN_EMAIL / ADMIN_PASSWORD).")
    try:
        user_row, created = await auth_service.provision_admin(name=name, email=email, password=password)
    except ContentError as exc:
        reason = "; ".join(error["message"] for error in exc.errors) or exc.message
        raise SeedError(f"Cannot bootstrap admin: {reason}") from exc
    return {"id": int(user_row["id"]), "email": user_row["email"], "created": created}


async def resolve_owner(admin_email: str) -> dict:
    user_row = await auth_repository.get_user_by_email(admin_email)
    if user_row is None:
        raise SeedError(f"No user with email {admin_email!r}. Run bootstrap-admin first.")
    if not auth_service.is_admin(user_row):
        raise SeedError(f"User {admin_email!r} is not an admin.")
    return user_row


async def reset_content() -> None:
    await db.execute("DELETE FROM blog_posts")
    await db.execute("DELETE FROM projects")
    logger.info("seed_reset tables=blog_posts,projects")


async def load_samples(*, admin_email: str, reset: bool = False) -> dict[str, int]:
    """
    Create the sample projects and posts through the services.
    """
    owner = await resolve_owner(admin_email)
    owner_id = int(owner["id"])
    if reset:
        await reset_content()

    projects = 0
    for item in SAMPLE_PROJECTS:
        project = await project_service.create_project(
            project_schemas.ProjectCreate.model_validate(item),
            created_by=owner_id,
        )
        projects += 1
        logger.info("seed_project slug=%s", project["slug"])

    posts = 0
    for item in SAMPLE_POSTS:
        post = await blog_service.create_post(
            blog_schemas.PostCreate.model_validate(item),
            author_id=owner_id,
        )
        posts += 1
        logger.info("seed_post slug=%s read_time=%s", post["slug"], post["read_time"])

    return {"projects": projects, "posts": posts}
