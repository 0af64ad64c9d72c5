"""Tests for read time and table-of-contents derivation."""

import pytest

from content import derivations


class TestReadTime:
    @pytest.mark.parametrize(
        "words, minutes",
        [(0, 1), (1, 1), (200, 1), (201, 2), (450, 3), (1000, 5)],
    )
    def test_rounds_up_with_floor(self, words: int, minutes: int) -> None:
        body = " ".join(["word"] * words)
        assert derivations.estimate_read_time(body) == minutes

    def test_counts_raw_markup_tokens(self) -> None:
        assert derivations.word_count("<p>one two</p>\n<p>three</p>") == 3


class TestTableOfContents:
    def test_order_and_nested_markup(self) -> None:
        body = "<h1>Intro</h1><p>x</p><h2>Sub <b>Point</b></h2>"
        assert derivations.extract_table_of_contents(body) == [
            {"level": 1, "title": "Intro", "anchor": "intro"},
            {"level": 2, "title": "Sub Point", "anchor": "sub-point"},
        ]

    def test_entities_and_whitespace(self) -> None:
        toc = derivations.extract_table_of_contents("<h2>Microtasks &amp;\n   Promises</h2>")
        assert toc == [{"level": 2, "title": "Microtasks & Promises", "anchor": "microtasks-promises"}]

    def test_attributes_and_case(self) -> None:
        toc = derivations.extract_table_of_contents('<H3 id="setup" class="x">Setup</H3>')
        assert toc == [{"level": 3, "title": "Setup", "anchor": "setup"}]

    def test_empty_heading(self) -> None:
        assert derivations.extract_table_of_contents("<h2></h2>") == [{"level": 2, "title": "", "anchor": ""}]

    def test_unclosed_heading_is_skipped(self) -> None:
        body = "<h2>Broken<p>text</p><h3>Fine</h3><h2>Also fine</h2>"
        assert derivations.extract_table_of_contents(body) == [
            {"level": 3, "title": "Fine", "anchor": "fine"},
            {"level": 2, "title": "Also fine", "anchor": "also-fine"},
        ]

    def test_no_headings(self) -> None:
        assert derivations.extract_table_of_contents("<p>plain</p>") == []
        assert derivations.extract_table_of_contents("") == []


class TestDeriveBodyFields:
    def test_both_fields(self) -> None:
        fields = derivations.derive_body_fields("<h1>Title</h1> " + "word " * 450)
        assert fields["read_time"] == 3
        assert fields["table_of_contents"][0]["anchor"] == "title"

    def test_failing_read_time_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def boom(body: str) -> int:
            raise RuntimeError("boom")

        monkeypatch.setattr(derivations, "estimate_read_time", boom)
        fields = derivations.derive_body_fields("<h1>Kept</h1>")
        assert fields["read_time"] == 1
        assert fields["table_of_contents"] == [{"level": 1, "title": "Kept", "anchor": "kept"}]

    def test_failing_outline_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def boom(body: str) -> list:
            raise RuntimeError("boom")

        monkeypatch.setattr(derivations, "extract_table_of_contents", boom)
        fields = derivations.derive_body_fields("one two three")
        assert fields == {"read_time": 1, "table_of_contents": []}
