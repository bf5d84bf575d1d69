"""Unit tests for planner/escaping.py."""
from __future__ import annotations

import pytest

from planner.escaping import escape_concat_path, escape_filter_path, escape_text


class TestEscapeText:

    def test_quote(self):
        assert escape_text("hi'there") == "hi\\'there"

    def test_colon(self):
        assert escape_text("Time: 10:30") == "Time\\: 10\\:30"

    @pytest.mark.parametrize("text", ["a:b'c", "::''", "it's 5:00 o'clock", ":"])
    def test_each_special_gets_exactly_one_backslash(self, text):
        escaped = escape_text(text)
        for i, ch in enumerate(escaped):
            if ch in ":'":
                assert escaped[i - 1] == "\\"
                assert i < 2 or escaped[i - 2] != "\\"
        assert escaped.count("\\") == text.count(":") + text.count("'")

    @pytest.mark.parametrize("text", [
        "Arey yaar, subah walk", "नमस्ते दुनिया", "50% off!", 'say "hi"', "a\\b", "",
    ])
    def test_other_characters_pass_through(self, text):
        assert escape_text(text) == text

    def test_empty_text_is_legal(self):
        assert escape_text("") == ""


class TestEscapePaths:

    def test_filter_path_quote(self):
        # Closes the filtergraph quote, then escapes the quote for the option parser.
        assert escape_filter_path("/subs/it's.srt") == "/subs/it\\'\\''s.srt"

    def test_filter_path_colon(self):
        assert escape_filter_path("/a:b/x.srt") == "/a\\:b/x.srt"

    def test_filter_path_backslash(self):
        assert escape_filter_path("/a\\b.srt") == "/a\\\\b.srt"

    def test_filter_path_plain(self):
        assert escape_filter_path("/app/fonts/NotoSans-Regular.ttf") == "/app/fonts/NotoSans-Regular.ttf"

    def test_concat_path_quote(self):
        assert escape_concat_path("/tmp/it's.jpg") == "/tmp/it'\\''s.jpg"

    def test_concat_path_plain(self):
        assert escape_concat_path("/tmp/img_000.jpg") == "/tmp/img_000.jpg"
