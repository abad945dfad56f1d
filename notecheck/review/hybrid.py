"""Run the dictionary and language model checkers together.

The dictionary always runs. The language model is optional: when it is not
configured or fails, results fall back to the dictionary alone and the
result says so through ``fallback_mode``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Iterable

from notecheck.language_check.dictionary import DictionaryOracle
from notecheck.language_check.dictionary_check import (
    DictionaryReport,
    DictionaryStats,
    check_text,
)
from notecheck.language_check.language_check_config import DEFAULT_MAX_SUGGESTIONS
from notecheck.llm.provider import LLMProviderConfigurationError
from notecheck.models import Issue

from .generative_check import GenerativeChecker
from .merge import merge_issues

LOGGER = logging.getLogger(__name__)

NO_MODEL_REASON = "No language model configured"


@dataclass
class CheckResult:
    """Merged issues of a full check plus how they were produced."""

    errors: list[Issue] = field(default_factory=list)
    terminology: list[str] = field(default_factory=list)
    fallback_mode: bool = False
    fallback_reason: str | None = None
    dictionary_stats: DictionaryStats = field(default_factory=DictionaryStats)
    generative_count: int | None = None
    total_time_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "errors": [issue.to_event_payload() for issue in self.errors],
            "terminology": list(self.terminology),
            "fallback_mode": self.fallback_mode,
            "fallback_reason": self.fallback_reason,
            "stats": {
                "dictionary": self.dictionary_stats.to_dict(),
                "generative": (
                    None
                    if self.generative_count is None
                    else {"error_count": self.generative_count}
                ),
                "total_time_ms": self.total_time_ms,
            },
        }


def _failure_message(exc: BaseException) -> str:
    # LLMParseError.__str__ appends the whole response; the first arg is enough
    if exc.args:
        return str(exc.args[0])
    return type(exc).__name__


def _renumber(issues: Iterable[Issue]) -> list[Issue]:
    return [issue.with_id(f"err-{index}") for index, issue in enumerate(issues)]


class HybridChecker:
    """Entry point for quick, full and streamed checks.

    Built once at startup with an already-loaded dictionary and an optional
    generative checker; safe to share between requests.
    """

    def __init__(
        self,
        oracle: DictionaryOracle | None,
        generative: GenerativeChecker | None = None,
        *,
        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
    ) -> None:
        self._oracle = oracle
        self._generative = generative
        self._max_suggestions = max_suggestions

    @property
    def ai_configured(self) -> bool:
        return self._generative is not None and self._generative.is_configured

    @property
    def dictionary_loaded(self) -> bool:
        return self._oracle is not None

    def quick_check(
        self, text: str, terminology: Iterable[str] = ()
    ) -> DictionaryReport:
        """Dictionary-only check for fast feedback while typing."""
        return check_text(
            text,
            terminology,
            self._oracle,
            max_suggestions=self._max_suggestions,
        )

    def full_check(
        self, text: str, context: str = "", terminology: Iterable[str] = ()
    ) -> CheckResult:
        started = time.perf_counter()
        terms = list(terminology)
        report = self.quick_check(text, terms)
        result = CheckResult(terminology=terms, dictionary_stats=report.stats)

        generative_issues: list[Issue] = []
        if not self.ai_configured:
            result.fallback_mode = True
            result.fallback_reason = NO_MODEL_REASON
        else:
            try:
                generative = self._generative.check(text, context, terms)
            except Exception as exc:  # noqa: BLE001
                LOGGER.warning(
                    "Language model check failed; using dictionary results only: %s",
                    _failure_message(exc),
                )
                result.fallback_mode = True
                result.fallback_reason = _failure_message(exc)
            else:
                generative_issues = generative.issues
                result.generative_count = len(generative_issues)

        result.errors = _renumber(merge_issues(report.errors, generative_issues, text))
        result.total_time_ms = int((time.perf_counter() - started) * 1000)
        LOGGER.info(
            "Full check: %d issue(s) in %d ms (fallback=%s)",
            len(result.errors),
            result.total_time_ms,
            result.fallback_mode,
        )
        return result

    async def stream_check(
        self, text: str, context: str = "", terminology: Iterable[str] = ()
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield stream protocol messages for one check.

        Dictionary issues come first, then model issues as they complete,
        then one ``done`` message with the merged list. A model failure
        before any model issue arrived falls back to the dictionary result;
        a failure after that ends the stream with an error message.
        """
        terms = list(terminology)
        # LanguageTool lookups block; keep them off the event loop
        report = await asyncio.to_thread(self.quick_check, text, terms)
        for issue in report.errors:
            yield {"type": "error", "error": issue.to_event_payload()}

        generative_issues: list[Issue] = []
        fallback_mode = not self.ai_configured
        if not fallback_mode:
            offset = len(report.errors)
            try:
                async for issue in self._generative.stream(text, context, terms):
                    # Keep ids unique across both sources within one stream
                    issue = issue.with_id(f"err-{offset + len(generative_issues)}")
                    generative_issues.append(issue)
                    yield {"type": "error", "error": issue.to_event_payload()}
            except Exception as exc:  # noqa: BLE001
                message = _failure_message(exc)
                if generative_issues:
                    LOGGER.warning("Streamed check failed mid-response: %s", message)
                    yield {"type": "error", "message": message}
                    return
                LOGGER.warning(
                    "Language model stream failed; using dictionary results only: %s",
                    message,
                )
                fallback_mode = True

        merged = merge_issues(report.errors, generative_issues, text)
        yield {
            "type": "done",
            "errors": [issue.to_event_payload() for issue in merged],
            "fallback_mode": fallback_mode,
        }

    def extract_terminology(self, slide_content: str) -> list[str]:
        if self._generative is None:
            raise LLMProviderConfigurationError(NO_MODEL_REASON)
        return self._generative.extract_terminology(slide_content)

    def close(self) -> None:
        close = getattr(self._oracle, "close", None)
        if callable(close):
            close()
