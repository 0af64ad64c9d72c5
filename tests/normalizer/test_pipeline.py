"""Tests for the document save pipeline."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from blogs.service import POST_KIND
from content import pipeline
from core.errors import ConflictError, NotFoundError, ValidationError
from projects.service import PROJECT_KIND

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _post(**overrides):
    values = {
        "title": "Hello World",
        "excerpt": "Short summary.",
        "content": "<h1>Intro</h1><p>x</p><h2>Sub <b>Point</b></h2>",
        "category": "web-development",
        "tags": ["python"],
        "status": "draft",
        "author_id": 1,
    }
    values.update(overrides)
    return values


def _save(store, values, current=None, now=NOW):
    return asyncio.run(
        pipeline.save_document(values, kind=POST_KIND, store=store.store(), current=current, now=now)
    )


class TestValidateDocument:
    def test_collects_every_error(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            pipeline.validate_document({"title": "  ", "content": ""}, current=None, kind=POST_KIND)
        fields = [e["field"] for e in excinfo.value.errors]
        assert fields == ["title", "content"]

    def test_title_is_trimmed_and_bounded(self) -> None:
        cleaned = pipeline.validate_document(_post(title="  Spaced  "), current=None, kind=POST_KIND)
        assert cleaned["title"] == "Spaced"

        with pytest.raises(ValidationError):
            pipeline.validate_document(_post(title="x" * 151), current=None, kind=POST_KIND)

    def test_unsluggable_title(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            pipeline.validate_document(_post(title="!!!"), current=None, kind=POST_KIND)
        assert excinfo.value.errors[0]["field"] == "title"

    def test_partial_update_skips_absent_fields(self) -> None:
        current = {"id": 1, **_post()}
        assert pipeline.validate_document({"tags": ["go"]}, current=current, kind=POST_KIND) == {"tags": ["go"]}


class TestPrepareDocument:
    def test_new_post(self) -> None:
        document, candidate = pipeline.prepare_document(_post(status="published"), current=None, kind=POST_KIND, now=NOW)
        assert candidate == "hello-world"
        assert document["published_at"] == NOW
        assert document["read_time"] == 1
        assert [h["anchor"] for h in document["table_of_contents"]] == ["intro", "sub-point"]

    def test_unchanged_title_keeps_slug(self) -> None:
        current = {"id": 1, "slug": "hello-world", **_post()}
        _, candidate = pipeline.prepare_document({"title": "Hello World"}, current=current, kind=POST_KIND, now=NOW)
        assert candidate is None

    def test_project_kind_has_no_reading_fields(self) -> None:
        values = {"title": "Portfolio Site", "description": "A site.", "is_published": True}
        document, _ = pipeline.prepare_document(values, current=None, kind=PROJECT_KIND, now=NOW)
        assert document["published_at"] == NOW
        assert "read_time" not in document
        assert "table_of_contents" not in document


class TestSaveDocument:
    def test_sequential_duplicates_get_suffixes(self, memory_store) -> None:
        first = _save(memory_store, _post())
        second = _save(memory_store, _post())
        third = _save(memory_store, _post(title="HELLO world!"))
        assert [first["slug"], second["slug"], third["slug"]] == ["hello-world", "hello-world-2", "hello-world-3"]

    def test_retitle_excludes_itself(self, memory_store) -> None:
        post = _save(memory_store, _post(title="Original"))
        updated = _save(memory_store, {"title": "original"}, current=post)
        assert updated["slug"] == "original"

    def test_retitle_onto_existing_title(self, memory_store) -> None:
        _save(memory_store, _post(title="Taken"))
        other = _save(memory_store, _post(title="Other"))
        updated = _save(memory_store, {"title": "Taken"}, current=other)
        assert updated["slug"] == "taken-2"

    def test_draft_has_no_publish_date(self, memory_store) -> None:
        assert _save(memory_store, _post())["published_at"] is None

    def test_publish_transition_stamps_once(self, memory_store) -> None:
        draft = _save(memory_store, _post())
        published = _save(memory_store, {"status": "published"}, current=draft)
        assert published["published_at"] == NOW

    def test_resave_is_idempotent(self, memory_store) -> None:
        post = _save(memory_store, _post(status="published"))
        again = _save(
            memory_store,
            {"status": "published", "content": post["content"]},
            current=post,
            now=NOW + timedelta(days=3),
        )
        for field in ("published_at", "read_time", "table_of_contents", "slug"):
            assert again[field] == post[field]

    def test_republish_keeps_original_date(self, memory_store) -> None:
        post = _save(memory_store, _post(status="published"))
        draft = _save(memory_store, {"status": "draft"}, current=post, now=NOW + timedelta(days=1))
        republished = _save(memory_store, {"status": "published"}, current=draft, now=NOW + timedelta(days=2))
        assert draft["published_at"] == NOW
        assert republished["published_at"] == NOW

    def test_body_change_rederives(self, memory_store) -> None:
        post = _save(memory_store, _post())
        updated = _save(memory_store, {"content": "<h2>New</h2> " + "word " * 450}, current=post)
        assert updated["read_time"] == 3
        assert updated["table_of_contents"] == [{"level": 2, "title": "New", "anchor": "new"}]

    def test_archived_cannot_be_reopened(self, memory_store) -> None:
        post = _save(memory_store, _post(status="archived"))
        with pytest.raises(ValidationError) as excinfo:
            _save(memory_store, {"status": "draft"}, current=post)
        assert excinfo.value.errors[0]["field"] == "status"

    def test_conflict_is_retried_once(self, memory_store) -> None:
        _save(memory_store, _post())
        memory_store.stale_lookups = 1
        second = _save(memory_store, _post())
        assert second["slug"] == "hello-world-2"

    def test_second_conflict_surfaces(self, memory_store) -> None:
        _save(memory_store, _post())
        memory_store.stale_lookups = 2
        inserts_before = memory_store.inserts
        with pytest.raises(ConflictError):
            _save(memory_store, _post())
        assert memory_store.inserts - inserts_before == pipeline.SLUG_CONFLICT_ATTEMPTS

    def test_update_of_missing_row(self, memory_store) -> None:
        ghost = {"id": 99, "slug": "ghost", **_post()}
        with pytest.raises(NotFoundError):
            _save(memory_store, {"tags": ["x"]}, current=ghost)
