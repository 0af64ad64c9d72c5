"""
Fields derived from a document body.

Both derivations are heuristics over raw markup:
- read time counts whitespace-separated tokens, tags included
- the outline is a regex scan for <h1>..<h6>, not an HTML parse
"""

from __future__ import annotations

import html
import logging
import math
import re
from typing import Any

from .slugs import slugify_text

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
MIN_READ_TIME_MINUTES = 1

# A heading body may not contain another heading opening tag; an unclosed
# heading therefore fails to match and the scan resumes at the next one.
_HEADING_RE = re.compile(
    r"<h([1-6])\b[^>]*>((?:(?!<h[1-6]\b).)*?)</h[1-6]\s*>",
    re.IGNORECASE | re.DOTALL,
)
_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")


def word_count(body: str) -> int:
    return len((body or "").split())


def estimate_read_time(body: str) -> int:
    """
    Minutes to read `body` at 200 words/minute, rounded up, at least 1.
    """
    minutes = math.ceil(word_count(body) / WORDS_PER_MINUTE)
    return max(MIN_READ_TIME_MINUTES, minutes)


def heading_text(fragment: str) -> str:
    text = _TAG_RE.sub("", fragment or "")
    text = html.unescape(text)
    return _SPACE_RE.sub(" ", text).strip()


def extract_table_of_contents(body: str) -> list[dict[str, Any]]:
    toc: list[dict[str, Any]] = []
    for match in _HEADING_RE.finditer(body or ""):
        title = heading_text(match.group(2))
        toc.append(
            {
                "level": int(match.group(1)),
                "title": title,
                "anchor": slugify_text(title),
            }
        )
    return toc


def derive_body_fields(body: str) -> dict[str, Any]:
    """
    Read time and outline for `body`.

    A failing derivation never blocks the save: it falls back to the minimum
    read time / an empty outline and logs a warning.
    """
    try:
        read_time = estimate_read_time(body)
    except Exception:
        logger.warning("read_time_fallback body_chars=%s", len(body or ""), exc_info=True)
        read_time = MIN_READ_TIME_MINUTES

    try:
        toc = extract_table_of_contents(body)
    except Exception:
        logger.warning("table_of_contents_fallback body_chars=%s", len(body or ""), exc_info=True)
        toc = []

    return {"read_time": read_time, "table_of_contents": toc}
