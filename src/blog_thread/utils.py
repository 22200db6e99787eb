"""
Utility functions shared across blog-thread modules.

Text helpers used by the extractor, thread generator and orchestrator:
word counting, sentinel comparison, thread marker handling and truncation.
"""

import re
from typing import Optional


# Leading "k/N" marker, optionally wrapped or followed by punctuation, e.g.
# "1/5 ", "(2/5) ", "3/5: ", "🧵 1/5"
_MARKER_PATTERN = re.compile(r"^\s*(?:🧵\s*)?[\(\[]?\s*(\d+)\s*/\s*(\d+)(?!\w)\s*[\)\]]?[.:\-–)]?\s*")


def count_words(text: Optional[str]) -> int:
    """Count whitespace-separated words in text."""
    if not text:
        return 0
    return len(text.split())


def truncate_words(text: str, max_words: int) -> str:
    """
    Truncate text to at most max_words words.

    Whitespace inside the kept portion is normalised to single spaces only
    when truncation actually happens.
    """
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words])


def normalize_phrase(text: Optional[str]) -> str:
    """
    Normalise a phrase for sentinel comparison.

    Lowercases, collapses internal whitespace and strips surrounding
    whitespace and trailing punctuation.
    """
    if not text:
        return ""
    collapsed = " ".join(text.split()).lower()
    return collapsed.strip(" .!\"'`")


def is_sentinel(text: Optional[str], sentinel: str) -> bool:
    """Return True if text is the sentinel phrase (case/whitespace-insensitive)."""
    return normalize_phrase(text) == normalize_phrase(sentinel)


def strip_marker(text: str, index: int, total: int) -> str:
    """
    Remove a leading thread marker that reads exactly index/total.

    Any other leading fraction ("24/7", "1/2 of users") is part of the
    tweet and is kept.
    """
    match = _MARKER_PATTERN.match(text)
    if match and (int(match.group(1)), int(match.group(2))) == (index, total):
        return text[match.end():].strip()
    return text.strip()


def format_marker(index: int, total: int) -> str:
    """Format the thread numbering marker, e.g. "2/5"."""
    return f"{index}/{total}"


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate text to maximum length with suffix.

    Args:
        text: Text to truncate
        max_length: Maximum length including suffix
        suffix: Suffix to add if truncated

    Returns:
        Truncated text with suffix if needed
    """
    if len(text) <= max_length:
        return text

    # If suffix is longer than max_length, return truncated suffix
    if len(suffix) >= max_length:
        return suffix[:max_length]

    actual_max = max_length - len(suffix)
    return text[:actual_max] + suffix
