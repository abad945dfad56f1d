"""Split text into word-like units and locate words inside it.

The dictionary checker tokenises with offsets so every deterministic issue
carries an exact span. The same helpers recover positions for language model
issues, which only report the word itself.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_WORD_PATTERN = re.compile(r"[A-Za-z']+")
_CAMEL_CASE = re.compile(r"[a-z][A-Z]")
_CONTEXT_RADIUS = 40


@dataclass(frozen=True)
class Token:
    """A word and its half-open ``[start, end)`` span in the source text."""

    word: str
    start: int
    end: int


def tokenize(text: str) -> list[Token]:
    """Return every word-like unit in ``text`` in source order."""

    return [
        Token(word=match.group(), start=match.start(), end=match.end())
        for match in _WORD_PATTERN.finditer(text)
    ]


def should_skip_word(word: str) -> bool:
    """Return True for tokens the dictionary should not judge.

    Single letters, ALL-CAPS acronyms and camelCase brand/code names are
    never flagged.
    """
    if len(word) <= 1:
        return True
    if word.isupper():
        return True
    if _CAMEL_CASE.search(word):
        return True
    return False


def _whole_word_pattern(word: str) -> re.Pattern[str]:
    # Lookarounds rather than \b: words may start or end with an apostrophe.
    return re.compile(rf"(?<!\w){re.escape(word)}(?!\w)", re.IGNORECASE)


def find_word_positions(text: str, word: str) -> list[tuple[int, int]]:
    """Return all case-insensitive whole-word occurrences of ``word``."""

    if not word:
        return []
    return [
        (match.start(), match.end())
        for match in _whole_word_pattern(word).finditer(text)
    ]


def find_word_position(text: str, word: str) -> tuple[int, int] | None:
    """Return the first occurrence of ``word`` in ``text``.

    Whole-word matches win; a plain case-insensitive substring search is the
    fallback so phrases with odd boundaries can still be ordered.
    """
    if not word:
        return None
    match = _whole_word_pattern(word).search(text)
    if match is not None:
        return match.start(), match.end()
    index = text.lower().find(word.lower())
    if index >= 0:
        return index, index + len(word)
    return None


def context_snippet(
    text: str, start: int, end: int, radius: int = _CONTEXT_RADIUS
) -> str:
    """Return the text around ``[start, end)`` on a single line."""

    lower = max(0, start - radius)
    upper = min(len(text), max(end, start) + radius)
    return text[lower:upper].replace("\n", " ")
