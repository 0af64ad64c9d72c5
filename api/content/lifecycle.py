"""
Publication lifecycle rules.

Posts move through draft/published/archived; projects only have a boolean
`is_published`. Both get `published_at` stamped the first time they become
published, and it is never cleared afterwards (a republish keeps the
original date).
"""

from __future__ import annotations

from datetime import datetime

from core.errors import ValidationError

DRAFT = "draft"
PUBLISHED = "published"
ARCHIVED = "archived"

POST_STATUSES = (DRAFT, PUBLISHED, ARCHIVED)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    DRAFT: frozenset({PUBLISHED, ARCHIVED}),
    PUBLISHED: frozenset({DRAFT, ARCHIVED}),
    ARCHIVED: frozenset(),
}


def check_status_transition(current: str | None, target: str) -> None:
    """
    Raise ValidationError when `current -> target` is not allowed.

    `current=None` means the document is being created; any known status
    is a valid starting point then.
    """
    if target not in ALLOWED_TRANSITIONS:
        raise ValidationError.for_field("status", f"Unknown status '{target}'.")
    if current is None or current == target:
        return
    if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise ValidationError.for_field(
            "status",
            f"Cannot change status from '{current}' to '{target}'.",
        )


def publish_timestamp(
    *,
    was_published: bool,
    is_published: bool,
    published_at: datetime | None,
    now: datetime,
) -> datetime | None:
    """
    New `published_at` value, or None when it must stay as it is.

    Only a transition into published on a document that was never
    stamped produces a timestamp.
    """
    if published_at is not None:
        return None
    if is_published and not was_published:
        return now
    return None
