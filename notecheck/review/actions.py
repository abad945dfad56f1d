"""Accept and dismiss actions on an issue list.

Both actions return new lists; records are never edited in place.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from notecheck.language_check.tokenizer import find_word_position
from notecheck.models import Issue, Position


@dataclass(frozen=True)
class AppliedSuggestion:
    text: str
    issues: list[Issue]
    replacements: int = 0


def dismiss_issue(issues: Sequence[Issue], word: str) -> list[Issue]:
    """Return ``issues`` without any record whose identity matches ``word``."""
    identity = word.lower()
    return [issue for issue in issues if issue.identity != identity]


def apply_suggestion(
    text: str, issues: Sequence[Issue], word: str, suggestion: str
) -> AppliedSuggestion:
    """Replace every whole-word occurrence of ``word`` with ``suggestion``.

    Matching is case-sensitive, so "Teh" is left alone when accepting a fix
    for "teh". The accepted identity is removed from the issue list.
    """
    if not word:
        raise ValueError("word must not be empty")
    pattern = re.compile(rf"(?<!\w){re.escape(word)}(?!\w)")
    new_text, count = pattern.subn(lambda _match: suggestion, text)
    return AppliedSuggestion(
        text=new_text,
        issues=dismiss_issue(issues, word),
        replacements=count,
    )


def locate_issue(text: str, issue: Issue) -> Position | None:
    """Return where ``issue`` sits in ``text``.

    The record's own position is trusted while the text there still reads
    ``word``; otherwise the first whole-word match is used.
    """
    position = issue.position
    if position is not None and position.end <= len(text):
        if text[position.start : position.end].lower() == issue.identity:
            return position
    span = find_word_position(text, issue.word)
    if span is None:
        return None
    return Position(start=span[0], end=span[1])
