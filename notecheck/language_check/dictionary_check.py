"""Deterministic spelling checks for a block of text.

Tokenises the text, skips tokens the dictionary should not judge, treats
custom terminology as correct and asks the dictionary backend about the
rest. Only ``spelling`` issues are produced here.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable

from notecheck.models import Issue

from .dictionary import DictionaryOracle
from .language_check_config import DEFAULT_CUSTOM_TERMS, DEFAULT_MAX_SUGGESTIONS
from .tokenizer import should_skip_word, tokenize

LOGGER = logging.getLogger(__name__)


@dataclass
class DictionaryStats:
    """Aggregate counts for one dictionary check."""

    total_words: int = 0
    correct_words: int = 0
    error_count: int = 0
    skipped: int = 0
    custom_term_matches: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class DictionaryReport:
    """Issues and counts produced by :func:`check_text`."""

    errors: list[Issue] = field(default_factory=list)
    stats: DictionaryStats = field(default_factory=DictionaryStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "errors": [issue.to_event_payload() for issue in self.errors],
            "stats": self.stats.to_dict(),
        }


def collect_custom_terms(
    extra_terms: Iterable[str] | None = None, *, include_defaults: bool = True
) -> set[str]:
    """Return the lower-cased union of default and caller-supplied terms."""
    terms = {term.lower() for term in DEFAULT_CUSTOM_TERMS} if include_defaults else set()
    for term in extra_terms or ():
        if term is None:
            continue
        cleaned = str(term).strip().lower()
        if cleaned:
            terms.add(cleaned)
    return terms


def _is_correct(oracle: DictionaryOracle, word: str) -> bool:
    try:
        return oracle.correct(word)
    except Exception:
        LOGGER.exception("Dictionary lookup failed for %r; assuming correct", word)
        return True


def _suggestions(oracle: DictionaryOracle, word: str, limit: int) -> list[str]:
    try:
        return list(oracle.suggest(word))[:limit]
    except Exception:
        LOGGER.exception("Suggestion lookup failed for %r", word)
        return []


def check_text(
    text: str,
    custom_terms: Iterable[str] | None = None,
    oracle: DictionaryOracle | None = None,
    *,
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
    include_default_terms: bool = True,
) -> DictionaryReport:
    """Run the dictionary over ``text``.

    Args:
        text: Text to check
        custom_terms: Words to treat as correct (case-insensitive)
        oracle: Dictionary backend; None means every word is correct
        max_suggestions: Maximum replacement candidates per issue
        include_default_terms: Also apply ``DEFAULT_CUSTOM_TERMS``

    Returns:
        A DictionaryReport with one issue per distinct misspelt word (first
        occurrence) and counts over every token.
    """
    terms = collect_custom_terms(custom_terms, include_defaults=include_default_terms)
    tokens = tokenize(text)
    report = DictionaryReport()
    stats = report.stats
    stats.total_words = len(tokens)
    seen: set[str] = set()

    for token in tokens:
        word = token.word
        if should_skip_word(word):
            stats.skipped += 1
            stats.correct_words += 1
            continue
        if word.lower() in terms:
            stats.custom_term_matches += 1
            stats.correct_words += 1
            continue
        if oracle is None or _is_correct(oracle, word):
            stats.correct_words += 1
            continue

        identity = word.lower()
        if identity in seen:
            continue
        seen.add(identity)
        stats.error_count += 1
        report.errors.append(
            Issue.from_dictionary_match(
                word,
                token.start,
                token.end,
                _suggestions(oracle, word, max_suggestions),
                issue_id=f"err-{len(report.errors)}",
            )
        )

    LOGGER.debug(
        "Dictionary check: %d word(s), %d error(s), %d skipped",
        stats.total_words,
        stats.error_count,
        stats.skipped,
    )
    return report
