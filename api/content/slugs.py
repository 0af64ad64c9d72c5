"""
Slug helpers.

The same transliteration rule produces document slugs (which must be unique
per collection) and heading anchors (which only need to be readable).
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from slugify import slugify

from core.errors import ValidationError

SLUG_SEPARATOR = "-"


def slugify_text(text: str) -> str:
    """
    Transliterate to ASCII, lowercase, collapse separator runs.

    Result only holds `[a-z0-9-]` with no leading/trailing `-`; it is empty
    when nothing in `text` survives.
    """
    return slugify(text or "", lowercase=True, separator=SLUG_SEPARATOR)


def slug_candidate(title: str, *, field: str = "title") -> str:
    candidate = slugify_text(title)
    if not candidate:
        raise ValidationError.for_field(
            field,
            "Title must contain at least one letter or digit.",
        )
    return candidate


def sibling_regex(candidate: str) -> str:
    """
    POSIX regex for the candidate and its `-<n>` variants.

    Candidates only contain `[a-z0-9-]`, so no escaping is needed. Used with
    Postgres' case-insensitive `~*` operator.
    """
    return f"^{candidate}(-[0-9]+)?$"


def is_sibling(candidate: str, slug: str) -> bool:
    return re.fullmatch(rf"{re.escape(candidate)}(-[0-9]+)?", slug or "", flags=re.IGNORECASE) is not None


def assign_unique_slug(candidate: str, existing: Iterable[str]) -> str:
    """
    Pick the slug for `candidate` given the slugs already stored.

    No siblings: the candidate itself. `n` siblings: `candidate-(n+1)`,
    bumped further while that exact value is taken.
    """
    taken = {slug.lower() for slug in existing if is_sibling(candidate, slug)}
    if not taken:
        return candidate

    suffix = len(taken) + 1
    slug = f"{candidate}{SLUG_SEPARATOR}{suffix}"
    while slug in taken:
        suffix += 1
        slug = f"{candidate}{SLUG_SEPARATOR}{suffix}"
    return slug
