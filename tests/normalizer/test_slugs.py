"""Tests for slug derivation and suffix assignment."""

import re

import pytest

from content.slugs import assign_unique_slug, is_sibling, sibling_regex, slug_candidate, slugify_text
from core.errors import ValidationError

SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


class TestSlugifyText:
    @pytest.mark.parametrize(
        "title, expected",
        [
            ("Hello World", "hello-world"),
            ("  Hello,   World!  ", "hello-world"),
            ("Crème Brûlée Recipes", "creme-brulee-recipes"),
            ("Node.js Event Loop", "node-js-event-loop"),
            ("--Leading and trailing--", "leading-and-trailing"),
        ],
    )
    def test_known_titles(self, title: str, expected: str) -> None:
        assert slugify_text(title) == expected

    @pytest.mark.parametrize(
        "title",
        ["Ünïcödé Tïtlé", "C++ vs. C#: 2026 Edition", "Über   cool___stuff", "Ça va? Très bien!"],
    )
    def test_output_alphabet(self, title: str) -> None:
        slug = slugify_text(title)
        assert slug == slug.lower()
        assert SLUG_RE.match(slug)

    def test_case_insensitive_titles_share_a_candidate(self) -> None:
        assert slugify_text("My First Post") == slugify_text("MY FIRST POST")

    def test_nothing_sluggable(self) -> None:
        assert slugify_text("!!! ??? ...") == ""
        assert slugify_text("") == ""


class TestSlugCandidate:
    def test_returns_candidate(self) -> None:
        assert slug_candidate("Hello World") == "hello-world"

    def test_empty_candidate_is_a_title_error(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            slug_candidate("***")
        assert excinfo.value.errors[0]["field"] == "title"


class TestSiblings:
    def test_regex_matches_numbered_variants_only(self) -> None:
        regex = re.compile(sibling_regex("x"), re.IGNORECASE)
        assert regex.search("x")
        assert regex.search("x-12")
        assert regex.search("X-2")
        assert not regex.search("x-ray")
        assert not regex.search("xx")

    def test_is_sibling(self) -> None:
        assert is_sibling("hello-world", "hello-world-3")
        assert not is_sibling("hello-world", "hello-world-tour")


class TestAssignUniqueSlug:
    def test_no_siblings_keeps_candidate(self) -> None:
        assert assign_unique_slug("hello-world", []) == "hello-world"

    def test_first_duplicate_gets_two(self) -> None:
        assert assign_unique_slug("x", ["x"]) == "x-2"

    def test_suffix_follows_sibling_count(self) -> None:
        assert assign_unique_slug("x", ["x", "x-2"]) == "x-3"

    def test_taken_suffix_is_bumped(self) -> None:
        assert assign_unique_slug("x", ["x", "x-3"]) == "x-4"
        assert assign_unique_slug("hello-world", ["hello-world-2"]) == "hello-world-3"

    def test_unrelated_slugs_ignored(self) -> None:
        assert assign_unique_slug("x", ["x-ray", "xylophone"]) == "x"

    def test_case_insensitive_siblings(self) -> None:
        assert assign_unique_slug("x", ["X"]) == "x-2"
