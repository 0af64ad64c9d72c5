"""
Document save pipeline.

Flow for every create/update of a project or post:
1) validate the incoming values against the current row
2) derive the slug candidate (only when the title is new or changed)
3) derive `published_at` (only on the first transition into published)
4) derive read time + table of contents (only when the body changed)
5) persist, resolving the slug against sibling rows first

Stages 1-4 are pure and callable on their own. Step 5 is the only one that
talks to storage; a UNIQUE violation on the slug (two saves racing for the
same suffix) re-runs the slug lookup and retries once.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from core.errors import ConflictError, NotFoundError, ValidationError

from . import lifecycle
from .derivations import derive_body_fields
from .slugs import assign_unique_slug, sibling_regex, slug_candidate, slugify_text

logger = logging.getLogger(__name__)

SLUG_CONFLICT_ATTEMPTS = 2


@dataclass(frozen=True)
class ContentKind:
    """
    What the pipeline needs to know about one collection.
    """

    collection: str
    title_max_length: int
    body_field: str
    is_published: Callable[[Mapping[str, Any]], bool]
    status_field: str | None = None
    derives_reading: bool = False


@dataclass(frozen=True)
class ContentStore:
    """
    Storage callables for one collection.

    - sibling_slugs(regex, exclude_id=...) -> slugs matching `regex`
    - insert(values) -> stored row
    - update(document_id, values) -> stored row, or None when it is gone
    Both writers raise ConflictError on a slug UNIQUE violation.
    """

    sibling_slugs: Callable[..., Awaitable[list[str]]]
    insert: Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]
    update: Callable[[int, dict[str, Any]], Awaitable[dict[str, Any] | None]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _changed(values: Mapping[str, Any], current: Mapping[str, Any] | None, field: str) -> bool:
    if current is None:
        return True
    return field in values and values[field] != current.get(field)


def validate_document(
    values: Mapping[str, Any],
    *,
    current: Mapping[str, Any] | None,
    kind: ContentKind,
) -> dict[str, Any]:
    """
    Return a cleaned copy of `values` or raise ValidationError listing every
    problem found.
    """
    cleaned = dict(values)
    errors: list[dict[str, str]] = []

    if current is None or "title" in cleaned:
        title = str(cleaned.get("title") or "").strip()
        cleaned["title"] = title
        if not title:
            errors.append({"field": "title", "message": "Title is required."})
        elif len(title) > kind.title_max_length:
            errors.append(
                {
                    "field": "title",
                    "message": f"Title cannot be more than {kind.title_max_length} characters.",
                }
            )
        elif not slugify_text(title):
            errors.append({"field": "title", "message": "Title must contain at least one letter or digit."})

    if current is None or kind.body_field in cleaned:
        body = cleaned.get(kind.body_field)
        if not isinstance(body, str) or not body.strip():
            errors.append({"field": kind.body_field, "message": f"{kind.body_field} is required."})

    if kind.status_field and kind.status_field in cleaned:
        previous = current.get(kind.status_field) if current is not None else None
        try:
            lifecycle.check_status_transition(previous, str(cleaned[kind.status_field]))
        except ValidationError as exc:
            errors.extend(exc.errors)

    if errors:
        raise ValidationError("Validation failed.", errors=errors)
    return cleaned


def derive_slug_candidate(
    values: Mapping[str, Any],
    *,
    current: Mapping[str, Any] | None,
) -> str | None:
    """
    Slug candidate for a new or retitled document; None keeps the stored slug.
    """
    if not _changed(values, current, "title"):
        return None
    return slug_candidate(str(values.get("title") or ""))


def derive_timestamps(
    values: Mapping[str, Any],
    *,
    current: Mapping[str, Any] | None,
    kind: ContentKind,
    now: datetime,
) -> dict[str, Any]:
    was_published = kind.is_published(current) if current is not None else False
    merged = {**(current or {}), **values}
    stamp = lifecycle.publish_timestamp(
        was_published=was_published,
        is_published=kind.is_published(merged),
        published_at=(current or {}).get("published_at"),
        now=now,
    )
    return {"published_at": stamp} if stamp is not None else {}


def derive_outline(
    values: Mapping[str, Any],
    *,
    current: Mapping[str, Any] | None,
    kind: ContentKind,
) -> dict[str, Any]:
    if not kind.derives_reading or not _changed(values, current, kind.body_field):
        return {}
    return derive_body_fields(str(values.get(kind.body_field) or ""))


def prepare_document(
    values: Mapping[str, Any],
    *,
    current: Mapping[str, Any] | None,
    kind: ContentKind,
    now: datetime,
) -> tuple[dict[str, Any], str | None]:
    """
    Run every pure stage. Returns (values to write, slug candidate or None).
    """
    document = validate_document(values, current=current, kind=kind)
    candidate = derive_slug_candidate(document, current=current)
    document.update(derive_timestamps(document, current=current, kind=kind, now=now))
    document.update(derive_outline(document, current=current, kind=kind))
    return document, candidate


async def _persist(
    document: dict[str, Any],
    *,
    current: Mapping[str, Any] | None,
    store: ContentStore,
) -> dict[str, Any]:
    if current is None:
        return await store.insert(document)

    row = await store.update(int(current["id"]), document)
    if row is None:
        raise NotFoundError("Document not found.")
    return row


async def save_document(
    values: Mapping[str, Any],
    *,
    kind: ContentKind,
    store: ContentStore,
    current: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Validate, derive and persist one document; returns the stored row.

    `current` is the stored row for updates (None creates). `values` only
    needs the fields being written.
    """
    document, candidate = prepare_document(
        values,
        current=current,
        kind=kind,
        now=now or _utc_now(),
    )
    exclude_id = int(current["id"]) if current is not None else None

    attempts = 0
    while True:
        attempts += 1
        if candidate is not None:
            siblings = await store.sibling_slugs(sibling_regex(candidate), exclude_id=exclude_id)
            document["slug"] = assign_unique_slug(candidate, siblings)

        try:
            return await _persist(document, current=current, store=store)
        except ConflictError:
            if candidate is None or attempts >= SLUG_CONFLICT_ATTEMPTS:
                raise
            logger.warning(
                "slug_conflict_retry collection=%s slug=%s attempt=%s",
                kind.collection,
                document.get("slug"),
                attempts,
            )
