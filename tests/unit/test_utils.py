"""Tests for text utility helpers."""

import pytest

from blog_thread.utils import (
    count_words, truncate_words, normalize_phrase, is_sentinel,
    strip_marker, format_marker, truncate_text
)


def test_count_words():
    """Words are whitespace separated."""
    assert count_words("one two  three\nfour") == 4
    assert count_words("") == 0
    assert count_words(None) == 0


def test_truncate_words_keeps_short_text_untouched():
    """Text under the limit is returned as-is, whitespace included."""
    text = "a  b\nc"
    assert truncate_words(text, 5) == text


def test_truncate_words_cuts_long_text():
    """Text over the limit keeps the first max_words words."""
    assert truncate_words("a b c d e", 3) == "a b c"


@pytest.mark.parametrize("text", [
    "Content not found",
    "content not found.",
    "  CONTENT   NOT FOUND  ",
    '"Content not found"',
])
def test_sentinel_variants(text):
    """Sentinel comparison ignores case, whitespace and punctuation."""
    assert is_sentinel(text, "Content not found")


def test_sentinel_rejects_other_text():
    """Text that merely contains the phrase is not the sentinel."""
    assert not is_sentinel("Content not found on the first page, but here is the article", "Content not found")
    assert not is_sentinel(None, "Content not found")


def test_normalize_phrase():
    """Normalisation lowercases and collapses whitespace."""
    assert normalize_phrase("  Hello\n  World! ") == "hello world"


@pytest.mark.parametrize("raw,index,total,expected", [
    ("1/5 Hook tweet", 1, 5, "Hook tweet"),
    ("(2/5) Second", 2, 5, "Second"),
    ("3/5: Third", 3, 5, "Third"),
    ("🧵 1/5 Thread start", 1, 5, "Thread start"),
    ("10 / 12 - Spaced", 10, 12, "Spaced"),
    ("No marker here", 1, 5, "No marker here"),
])
def test_strip_marker(raw, index, total, expected):
    """Leading k/N markers are removed in their common forms."""
    assert strip_marker(raw, index, total) == expected


@pytest.mark.parametrize("raw,index,total", [
    ("24/7 support is the real product.", 1, 3),
    ("9/11 changed airport security.", 2, 5),
    ("1/2 of users never scroll.", 1, 3),
    ("3/5 Wrong position", 1, 5),
    ("1/30 is not a marker", 1, 3),
    ("1/3rd of the budget", 1, 3),
])
def test_strip_marker_keeps_other_fractions(raw, index, total):
    """Only a marker matching this entry's own position is removed."""
    assert strip_marker(raw, index, total) == raw


def test_strip_marker_only_removes_leading():
    """Fractions later in the text are left alone."""
    assert strip_marker("Growth was 3/4 of target", 3, 4) == "Growth was 3/4 of target"


def test_format_marker():
    """Marker is index/total."""
    assert format_marker(2, 7) == "2/7"


def test_truncate_text():
    """Long text is cut with suffix within max_length."""
    assert truncate_text("short", 10) == "short"
    assert truncate_text("0123456789abc", 10) == "0123456..."
    assert truncate_text("abcdef", 2) == ".."
