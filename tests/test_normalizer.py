"""Tests for text normalisation and statistics."""

import pytest

from regionocr.ocr.normalizer import (
    count_chars,
    count_lines,
    count_words,
    looks_like_text,
    normalize_text,
    preview,
    text_statistics,
)


class TestNormalizeText:
    def test_collapses_spaces_and_tabs(self):
        assert normalize_text("a  \t b\t\tc") == "a b c"

    def test_removes_space_before_punctuation(self):
        assert normalize_text("Hello , world ! Ok ?") == "Hello, world! Ok?"

    def test_space_after_punctuation_kept(self):
        assert normalize_text("one, two; three") == "one, two; three"

    def test_line_endings_normalized(self):
        assert normalize_text("a\r\nb\rc") == "a\nb\nc"

    def test_lines_stripped(self):
        assert normalize_text("  first  \n   second ") == "first\nsecond"

    def test_blank_line_runs_collapsed(self):
        assert normalize_text("para one\n\n\n\n\npara two") == "para one\n\npara two"

    def test_single_blank_line_kept(self):
        assert normalize_text("a\n\nb") == "a\n\nb"

    def test_whitespace_only_lines_count_as_blank(self):
        assert normalize_text("a\n  \n\t\n \nb") == "a\n\nb"

    def test_outer_whitespace_stripped(self):
        assert normalize_text("\n\n  text \n\n") == "text"

    @pytest.mark.parametrize("raw", [None, "", "   \n\t "])
    def test_empty_input(self, raw):
        assert normalize_text(raw) == ""

    @pytest.mark.parametrize(
        "raw",
        [
            "Hello ,  world\r\n\r\n\r\nNext  line .",
            " a ,\n\n\n\n b ; c\t!",
            "x \r y\n\n\n\n\n\nz :",
        ],
    )
    def test_idempotent(self, raw):
        once = normalize_text(raw)
        assert normalize_text(once) == once

    def test_tesseract_style_output(self):
        raw = "Invoice  No . 42\n\n\n\nTotal :   $10\n\x0c"
        # Trailing form feed goes away with its stripped line
        assert normalize_text(raw) == "Invoice No. 42\n\nTotal: $10"


class TestCounts:
    def test_word_count_ignores_extra_whitespace(self):
        assert count_words("  a  b   c ") == 3

    def test_word_count_empty(self):
        assert count_words("") == 0
        assert count_words(None) == 0

    def test_char_count_is_code_points(self):
        assert count_chars("héllo") == 5
        assert count_chars("日本語") == 3

    def test_line_count(self):
        assert count_lines("a\nb\n\nc") == 4
        assert count_lines("") == 0


class TestHelpers:
    def test_looks_like_text(self):
        assert looks_like_text("Hello world")
        assert not looks_like_text("ab")
        assert not looks_like_text("~~~ ... ---")

    def test_preview_truncates(self):
        assert preview("x" * 60, max_length=50) == "x" * 50 + "..."
        assert preview("short") == "short"

    def test_statistics(self):
        stats = text_statistics("Hi there\nyou")
        assert stats.chars == 12
        assert stats.words == 3
        assert stats.lines == 2
        assert stats.alphanumeric == 10
        assert stats.whitespace == 2
        assert stats.summary() == "Text: 12 characters, 3 words"
