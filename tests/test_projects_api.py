"""Tests for project responses, image management and endpoints."""

import asyncio
from datetime import date

import pytest

from core.errors import NotFoundError
from projects import repository, service

PAYLOAD = {
    "title": "Weather Dashboard",
    "description": "Forecasts with offline support.",
    "category": "web",
    "technologies": "React, PWA",
    "tags": ["Weather", "PWA"],
    "github_url": "https://github.com/someone/weather",
    "year": 2025,
    "start_date": "2025-01-01",
    "end_date": "2025-01-31",
}


@pytest.fixture
def fake_projects(monkeypatch: pytest.MonkeyPatch, memory_store):
    monkeypatch.setattr(repository, "sibling_slugs", memory_store.sibling_slugs)
    monkeypatch.setattr(repository, "insert_project", memory_store.insert)
    monkeypatch.setattr(repository, "update_project", memory_store.update)

    async def fake_get(project_id: int):
        row = memory_store.rows.get(project_id)
        return dict(row) if row else None

    monkeypatch.setattr(repository, "get_project_by_id", fake_get)
    return memory_store


class TestComputedFields:
    def test_primary_image(self) -> None:
        images = [{"id": "a", "is_primary": False}, {"id": "b", "is_primary": True}]
        assert service.primary_image(images)["id"] == "b"
        assert service.primary_image([{"id": "a"}])["id"] == "a"
        assert service.primary_image([]) is None

    def test_duration_days(self) -> None:
        assert service.duration_days(date(2024, 1, 15), date(2024, 6, 30)) == 167
        assert service.duration_days(date(2024, 1, 15), None) is None

    def test_to_response_nests_creator(self) -> None:
        project = service.to_response({"id": 1, "created_by": 3, "created_by_name": "Ada", "images": []})
        assert project["created_by"] == {"id": 3, "name": "Ada"}
        assert project["primary_image"] is None


class TestListProjects:
    def test_published_filter_is_admin_only(self, monkeypatch: pytest.MonkeyPatch) -> None:
        captured: list = []

        async def fake_list(**kwargs):
            captured.append(kwargs)
            return [], 0

        monkeypatch.setattr(repository, "list_projects", fake_list)
        asyncio.run(service.list_projects(published=False, technologies="React, Vue"))
        asyncio.run(service.list_projects(published=False, is_admin=True))

        assert captured[0]["published"] is True
        assert captured[0]["technologies"] == ["React", "Vue"]
        assert captured[1]["published"] is False


class TestProjectQueries:
    @pytest.fixture
    def sql(self, monkeypatch: pytest.MonkeyPatch) -> list:
        statements: list = []

        async def fake_fetch_all(query: str, *args):
            statements.append((query, args))
            return []

        async def fake_fetch_value(query: str, *args):
            statements.append((query, args))
            return 0

        monkeypatch.setattr(repository.db, "fetch_all", fake_fetch_all)
        monkeypatch.setattr(repository.db, "fetch_value", fake_fetch_value)
        return statements

    def test_search_is_literal(self, sql) -> None:
        asyncio.run(repository.list_projects(search="100%_done"))

        query, args = sql[0]
        assert args[7] == "100%_done"
        assert "ILIKE" not in query
        assert "strpos(lower(p.title), lower($8)) > 0" in query

    def test_recent_projects_select_creator(self, sql) -> None:
        asyncio.run(repository.recent_projects(3))

        query, args = sql[0]
        assert "p.created_by," in query
        assert args == (3,)


class TestImages:
    def _project(self, store, images=None):
        return store.add(
            id=1,
            title="Weather Dashboard",
            slug="weather-dashboard",
            description="Forecasts.",
            is_published=True,
            published_at=None,
            images=images or [],
        )

    def test_first_upload_becomes_primary(self, as_admin, fake_projects) -> None:
        self._project(fake_projects)
        response = as_admin.post(
            "/projects/1/images",
            files=[("files", ("a.png", b"a", "image/png")), ("files", ("b.png", b"b", "image/png"))],
        )

        assert response.status_code == 200
        images = response.json()["project"]["images"]
        assert [image["is_primary"] for image in images] == [True, False]
        assert images[0]["alt"] == "Weather Dashboard"
        assert response.json()["project"]["primary_image"]["id"] == images[0]["id"]

    def test_later_uploads_keep_primary(self, as_admin, fake_projects) -> None:
        self._project(fake_projects, images=[{"id": "old", "url": "https://cdn.example.com/x.png", "is_primary": True}])
        response = as_admin.post("/projects/1/images", files=[("files", ("c.png", b"c", "image/png"))])
        images = response.json()["project"]["images"]
        assert [image["is_primary"] for image in images] == [True, False]

    def test_rejected_upload_writes_nothing(self, as_admin, fake_projects) -> None:
        self._project(fake_projects)
        response = as_admin.post("/projects/1/images", files=[("files", ("run.exe", b"x", "application/octet-stream"))])
        assert response.status_code == 422
        assert fake_projects.rows[1]["images"] == []

    def test_set_primary(self, fake_projects) -> None:
        self._project(fake_projects, images=[{"id": "a", "is_primary": True}, {"id": "b", "is_primary": False}])
        project = asyncio.run(service.set_primary_image(1, "b"))
        assert [image["is_primary"] for image in project["images"]] == [False, True]

    def test_delete_primary_promotes_next(self, fake_projects) -> None:
        self._project(
            fake_projects,
            images=[
                {"id": "a", "url": "https://cdn.example.com/a.png", "is_primary": True},
                {"id": "b", "url": "https://cdn.example.com/b.png", "is_primary": False},
            ],
        )
        project = asyncio.run(service.delete_image(1, "a"))
        assert project["images"] == [{"id": "b", "url": "https://cdn.example.com/b.png", "is_primary": True}]

    def test_unknown_image(self, fake_projects) -> None:
        self._project(fake_projects)
        with pytest.raises(NotFoundError):
            asyncio.run(service.set_primary_image(1, "nope"))


class TestProjectEndpoints:
    def test_create(self, as_admin, fake_projects) -> None:
        response = as_admin.post("/projects", json=PAYLOAD)

        assert response.status_code == 201
        project = response.json()["project"]
        assert project["slug"] == "weather-dashboard"
        assert project["technologies"] == ["React", "PWA"]
        assert project["tags"] == ["weather", "pwa"]
        assert project["published_at"] is not None
        assert project["duration_days"] == 30
        assert "read_time" not in project

    @pytest.mark.parametrize(
        "field, value",
        [
            ("github_url", "https://gitlab.com/someone/weather"),
            ("demo_url", "ftp://example.com"),
            ("year", 2019),
            ("technologies", []),
            ("category", "games"),
        ],
    )
    def test_invalid_payload(self, as_admin, fake_projects, field, value) -> None:
        response = as_admin.post("/projects", json={**PAYLOAD, field: value})
        assert response.status_code == 422

    def test_unpublish_keeps_date(self, as_admin, fake_projects) -> None:
        project = as_admin.post("/projects", json=PAYLOAD).json()["project"]
        hidden = as_admin.put(f"/projects/{project['id']}", json={"is_published": False}).json()["project"]
        assert hidden["published_at"] == project["published_at"]

    def test_missing_slug(self, client, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fake_get(slug: str):
            return None

        monkeypatch.setattr(repository, "get_published_project", fake_get)
        assert client.get("/projects/ghost").status_code == 404
