"""Tests for the seed CLI and loader."""

import asyncio

import pytest

from auth import repository as auth_repository
from blogs import schemas as blog_schemas
from projects import schemas as project_schemas
from seed import loader
from seed.__main__ import build_parser
from seed.data import SAMPLE_POSTS, SAMPLE_PROJECTS


class TestSampleData:
    @pytest.mark.parametrize("item", SAMPLE_PROJECTS, ids=lambda item: item["title"])
    def test_projects_validate(self, item) -> None:
        project_schemas.ProjectCreate.model_validate(item)

    @pytest.mark.parametrize("item", SAMPLE_POSTS, ids=lambda item: item["title"])
    def test_posts_validate(self, item) -> None:
        blog_schemas.PostCreate.model_validate(item)


class TestParser:
    def test_sample_requires_admin_email(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["sample"])

    def test_sample_args(self) -> None:
        args = build_parser().parse_args(["sample", "--admin-email", "me@example.com", "--reset"])
        assert args.command == "sample"
        assert args.admin_email == "me@example.com"
        assert args.reset is True


class TestLoader:
    def test_bootstrap_requires_credentials(self) -> None:
        with pytest.raises(loader.SeedError):
            asyncio.run(loader.bootstrap_admin(name="Admin", email="", password=""))

    def test_bootstrap_rejects_bad_email(self) -> None:
        with pytest.raises(loader.SeedError, match="Admin email is invalid"):
            asyncio.run(loader.bootstrap_admin(name="Admin", email="not-an-email", password="long-enough-password"))

    def test_bootstrap_reports_password_reason(self) -> None:
        with pytest.raises(loader.SeedError, match="longer than 72 bytes"):
            asyncio.run(loader.bootstrap_admin(name="Admin", email="admin@example.com", password="x" * 80))

    def test_owner_must_exist(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fake_get(email: str):
            return None

        monkeypatch.setattr(auth_repository, "get_user_by_email", fake_get)
        with pytest.raises(loader.SeedError):
            asyncio.run(loader.resolve_owner("nobody@example.com"))

    def test_owner_must_be_admin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fake_get(email: str):
            return {"id": 2, "email": email, "role": "user"}

        monkeypatch.setattr(auth_repository, "get_user_by_email", fake_get)
        with pytest.raises(loader.SeedError):
            asyncio.run(loader.resolve_owner("reader@example.com"))
