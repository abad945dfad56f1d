"""Combine dictionary and language model issue lists into one display list.

Conflicts are settled by identity (case-insensitive ``word``):
- a generative ``terminology`` or ``grammar`` record replaces the dictionary
  record for the same word
- a generative ``spelling`` record for a word the dictionary already flagged
  is dropped; the dictionary record stays

The result is ordered by where each word first occurs in the text.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from notecheck.language_check.tokenizer import find_word_position
from notecheck.models import Issue, IssueKind

_OVERRIDING_KINDS = frozenset({IssueKind.TERMINOLOGY, IssueKind.GRAMMAR})


def dedupe_issues(issues: Iterable[Issue]) -> list[Issue]:
    """Return ``issues`` keeping only the first record for each identity."""
    seen: set[str] = set()
    unique: list[Issue] = []
    for issue in issues:
        if issue.identity in seen:
            continue
        seen.add(issue.identity)
        unique.append(issue)
    return unique


def sort_by_position(issues: Iterable[Issue], text: str) -> list[Issue]:
    """Stable sort by first occurrence in ``text``; unlocated records go last."""
    located: list[tuple[int, Issue]] = []
    unlocated: list[Issue] = []
    for issue in issues:
        span = find_word_position(text, issue.word)
        if span is None:
            unlocated.append(issue)
        else:
            located.append((span[0], issue))
    located.sort(key=lambda pair: pair[0])
    return [issue for _, issue in located] + unlocated


def merge_issues(
    deterministic: Sequence[Issue],
    generative: Sequence[Issue],
    text: str,
) -> list[Issue]:
    deterministic = dedupe_issues(deterministic)
    generative = dedupe_issues(generative)

    generative_by_identity = {issue.identity: issue for issue in generative}
    kept_deterministic = [
        issue
        for issue in deterministic
        if not (
            issue.identity in generative_by_identity
            and generative_by_identity[issue.identity].kind in _OVERRIDING_KINDS
        )
    ]

    kept_identities = {issue.identity for issue in kept_deterministic}
    kept_generative = [
        issue for issue in generative if issue.identity not in kept_identities
    ]
    return sort_by_position(kept_deterministic + kept_generative, text)
