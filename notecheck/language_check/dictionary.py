"""Dictionary backends used by the deterministic checker.

The checker only needs two questions answered per word: is it spelt
correctly, and what could replace it. Two backends answer them:

- ``SpellCheckerOracle`` wraps pyspellchecker's frequency dictionary and runs
  in-process.
- ``LanguageToolOracle`` asks a LanguageTool instance (local Java server)
  and keeps only ``misspelling`` matches.

Backends are built once by :func:`load_dictionary` and then shared read-only
by every request.
"""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Any, Iterable, Protocol

import language_tool_python
from language_tool_python.utils import LanguageToolError
from spellchecker import SpellChecker

from .language_check_config import DEFAULT_DISABLED_RULES

LOGGER = logging.getLogger(__name__)

BACKEND_SPELLCHECKER = "spellchecker"
BACKEND_LANGUAGETOOL = "languagetool"
BACKEND_NONE = "none"
BACKENDS = (BACKEND_SPELLCHECKER, BACKEND_LANGUAGETOOL, BACKEND_NONE)

# Default LanguageTool server configuration. Single-word checks are quick so
# the request limit matters more than the check timeout.
_DEFAULT_CONFIG = {
    "requestLimitPeriodInSeconds": 60,
    "maxCheckTimeMillis": 10000,
}

# Transient errors that should trigger a retry
TRANSIENT_ERRORS = (
    ConnectionError,
    TimeoutError,
    OSError,
    LanguageToolError,
)


class DictionaryOracle(Protocol):
    """Shared contract for dictionary backends."""

    def correct(self, word: str) -> bool:
        """Return True when ``word`` is spelt correctly."""
        ...

    def suggest(self, word: str) -> list[str]:
        """Return replacement candidates, most preferred first."""
        ...


def _match_case(word: str, candidate: str) -> str:
    if word[:1].isupper() and candidate[:1].islower():
        return candidate[:1].upper() + candidate[1:]
    return candidate


class SpellCheckerOracle:
    """Dictionary backed by pyspellchecker's word-frequency lists."""

    def __init__(
        self,
        language: str = "en",
        *,
        extra_words_path: str | Path | None = None,
        spell: SpellChecker | None = None,
    ) -> None:
        self.language = language
        self._spell = spell or SpellChecker(language=language)
        if extra_words_path is not None:
            path = Path(extra_words_path)
            LOGGER.info("Loading extra dictionary words from %s", path)
            self._spell.word_frequency.load_text_file(str(path))

    def correct(self, word: str) -> bool:
        return not self._spell.unknown([word])

    def suggest(self, word: str) -> list[str]:
        lower_word = word.lower()
        preferred = self._spell.correction(lower_word)
        candidates = [
            candidate
            for candidate in (self._spell.candidates(lower_word) or ())
            if candidate != lower_word
        ]
        candidates.sort(key=lambda c: (-self._spell.word_usage_frequency(c), c))
        ordered: list[str] = []
        if preferred and preferred != lower_word:
            ordered.append(preferred)
        ordered.extend(c for c in candidates if c not in ordered)
        return [_match_case(word, candidate) for candidate in ordered]


def _retry_with_backoff(
    func: Any,
    func_arg: Any,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
) -> Any:
    """Execute a function with exponential backoff retry logic.

    Args:
            func: The function to call (e.g., tool.check)
            func_arg: The argument to pass to func (e.g., a word)
            max_retries: Maximum number of retry attempts (total attempts = max_retries + 1)
            base_delay: Initial delay in seconds
            max_delay: Maximum delay in seconds

    Returns:
            The return value of func

    Raises:
            The last exception if all retries fail
    """
    for attempt in range(max_retries + 1):
        try:
            return func(func_arg)
        except TRANSIENT_ERRORS as exc:
            if attempt >= max_retries:
                LOGGER.error(
                    "Dictionary lookup failed after %d attempt(s): %s",
                    attempt + 1,
                    exc,
                )
                raise

            delay = base_delay * (2**attempt)
            # Add a small random jitter to avoid a thundering herd
            jitter = random.uniform(0.75, 1.25)
            delay = min(delay * jitter, max_delay)

            LOGGER.warning(
                "Dictionary lookup attempt %d failed (transient error: %s); "
                "retrying in %.1f second(s)...",
                attempt + 1,
                type(exc).__name__,
                delay,
            )
            time.sleep(delay)
    raise RuntimeError("Retry logic completed without returning or raising")


class LanguageToolManager:
    """Factory class responsible for configuring LanguageTool instances."""

    def __init__(
        self,
        *,
        disabled_rules: Iterable[str] | None = None,
        base_language: str = "en-US",
        config: dict[str, Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.base_language = base_language
        self.logger = logger or LOGGER
        self.config = dict(config) if config is not None else dict(_DEFAULT_CONFIG)
        self.disabled_rules = set(
            DEFAULT_DISABLED_RULES if disabled_rules is None else disabled_rules
        )

    def build_tool(self, language: str | None = None) -> Any:
        """Build a LanguageTool instance for ``language``."""

        language = language or self.base_language
        kwargs: dict[str, Any] = {}
        if self.config:
            kwargs["config"] = self.config

        try:
            tool = language_tool_python.LanguageTool(language, **kwargs)
        except TypeError:
            if "config" not in kwargs:
                raise
            # Older language_tool_python versions do not accept config.
            kwargs.pop("config")
            self.logger.info(
                "LanguageTool does not accept 'config'; using the default constructor",
            )
            tool = language_tool_python.LanguageTool(language, **kwargs)

        if self.disabled_rules:
            tool.disabled_rules = set(self.disabled_rules)
        self.logger.info("Created LanguageTool for language: %s", language)
        return tool


class LanguageToolOracle:
    """Dictionary backed by LanguageTool's spelling rules.

    Results are cached per word; LanguageTool round trips are far slower
    than a dictionary lookup and speaker notes repeat words a lot.
    """

    def __init__(self, tool: Any, *, max_retries: int = 2) -> None:
        self._tool = tool
        self._max_retries = max_retries
        self._cache: dict[str, list[str] | None] = {}

    def _lookup(self, word: str) -> list[str] | None:
        """Return None for a correct word, otherwise its replacements."""
        if word in self._cache:
            return self._cache[word]
        matches = _retry_with_backoff(
            self._tool.check, word, max_retries=self._max_retries
        )
        result: list[str] | None = None
        for match in matches or []:
            if getattr(match, "ruleIssueType", "") != "misspelling":
                continue
            result = [str(r) for r in (getattr(match, "replacements", None) or [])]
            break
        self._cache[word] = result
        return result

    def correct(self, word: str) -> bool:
        return self._lookup(word) is None

    def suggest(self, word: str) -> list[str]:
        return list(self._lookup(word) or [])

    def close(self) -> None:
        if hasattr(self._tool, "close"):
            self._tool.close()


def load_dictionary(
    backend: str = BACKEND_SPELLCHECKER,
    *,
    language: str = "en",
    extra_words_path: str | Path | None = None,
    manager: LanguageToolManager | None = None,
) -> DictionaryOracle | None:
    """Build the dictionary backend once at startup.

    Returns None when the backend is disabled or cannot be loaded; the
    checker then treats every word as correct instead of blocking requests.
    """
    backend = (backend or BACKEND_SPELLCHECKER).strip().lower()
    if backend not in BACKENDS:
        raise ValueError(f"Unknown dictionary backend '{backend}'")
    if backend == BACKEND_NONE:
        LOGGER.info("Dictionary checking disabled; all words are treated as correct")
        return None

    try:
        if backend == BACKEND_LANGUAGETOOL:
            tool_manager = manager or LanguageToolManager(
                base_language=_languagetool_code(language)
            )
            return LanguageToolOracle(tool_manager.build_tool())
        return SpellCheckerOracle(language, extra_words_path=extra_words_path)
    except Exception:
        LOGGER.exception(
            "Dictionary backend '%s' could not be loaded; using basic spell check",
            backend,
        )
        return None


def _languagetool_code(language: str) -> str:
    # pyspellchecker uses bare codes ("en"); LanguageTool wants a variant.
    if language == "en":
        return "en-US"
    return language
