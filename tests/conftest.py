"""
Shared fixtures.

Nothing here needs a database: repositories are monkeypatched per test and
the save pipeline runs against an in-memory store.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from content import pipeline
from core.errors import ConflictError

ADMIN_USER = {
    "id": 1,
    "name": "Admin",
    "email": "admin@example.com",
    "role": "admin",
    "is_active": True,
    "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
}

READER_USER = {
    "id": 2,
    "name": "Reader",
    "email": "reader@example.com",
    "role": "user",
    "is_active": True,
    "created_at": datetime(2026, 1, 2, tzinfo=timezone.utc),
}


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.delenv("MAX_FILE_SIZE", raising=False)
    monkeypatch.delenv("ALLOWED_FILE_TYPES", raising=False)


class MemoryStore:
    """
    Dict-backed stand-in for one collection's repository.

    `stale_lookups` makes the next N sibling lookups return nothing, which
    simulates another writer taking the slug between lookup and insert.
    """

    def __init__(self) -> None:
        self.rows: dict[int, dict[str, Any]] = {}
        self.stale_lookups = 0
        self.inserts = 0
        self._next_id = 1

    async def sibling_slugs(self, pattern: str, *, exclude_id: int | None = None) -> list[str]:
        if self.stale_lookups > 0:
            self.stale_lookups -= 1
            return []
        regex = re.compile(pattern, re.IGNORECASE)
        return [
            row["slug"]
            for row in self.rows.values()
            if row["id"] != exclude_id and regex.search(row.get("slug") or "")
        ]

    def _check_slug(self, slug: str | None, *, exclude_id: int | None = None) -> None:
        for row in self.rows.values():
            if row["id"] != exclude_id and slug is not None and row.get("slug") == slug:
                raise ConflictError(f"Slug '{slug}' is already taken.")

    async def insert(self, values: dict[str, Any]) -> dict[str, Any]:
        self.inserts += 1
        self._check_slug(values.get("slug"))
        row = {"published_at": None, **values, "id": self._next_id}
        self.rows[row["id"]] = row
        self._next_id += 1
        return dict(row)

    async def update(self, document_id: int, values: dict[str, Any]) -> dict[str, Any] | None:
        if document_id not in self.rows:
            return None
        self._check_slug(values.get("slug"), exclude_id=document_id)
        self.rows[document_id].update(values)
        return dict(self.rows[document_id])

    def add(self, **row: Any) -> dict[str, Any]:
        row.setdefault("id", self._next_id)
        self.rows[row["id"]] = row
        self._next_id = max(self._next_id, row["id"]) + 1
        return dict(row)

    def store(self) -> pipeline.ContentStore:
        return pipeline.ContentStore(
            sibling_slugs=self.sibling_slugs,
            insert=self.insert,
            update=self.update,
        )


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def client():
    from main import app

    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def as_admin(client: TestClient) -> TestClient:
    from auth import dependencies as auth_dependencies

    client.app.dependency_overrides[auth_dependencies.get_current_user] = lambda: ADMIN_USER
    client.app.dependency_overrides[auth_dependencies.get_optional_user] = lambda: ADMIN_USER
    return client


@pytest.fixture
def as_reader(client: TestClient) -> TestClient:
    from auth import dependencies as auth_dependencies

    client.app.dependency_overrides[auth_dependencies.get_current_user] = lambda: READER_USER
    client.app.dependency_overrides[auth_dependencies.get_optional_user] = lambda: READER_USER
    return client
