"""Language model checker: single-shot, streamed and terminology extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Iterable

from notecheck.llm.provider import LLMParseError, LLMProviderConfigurationError
from notecheck.llm.service import LLMService
from notecheck.models import Issue
from notecheck.prompt.render_prompt import (
    SPELLCHECK_TEMPLATES,
    TERMINOLOGY_TEMPLATES,
    render_prompts,
)

from .stream_extractor import extract_issues

LOGGER = logging.getLogger(__name__)

DEFAULT_MIN_TEXT_LENGTH = 10


@dataclass
class GenerativeResult:
    issues: list[Issue] = field(default_factory=list)
    # True when the text was too short to send to the model
    skipped: bool = False


def _check_context(
    text: str, context: str = "", terminology: Iterable[str] = ()
) -> dict[str, Any]:
    terms = [str(term).strip() for term in terminology if str(term).strip()]
    return {
        "speaker_notes": text,
        "slide_content": context.strip(),
        "terminology": terms,
        "has_terminology": bool(terms),
    }


def check_system_prompt() -> str:
    """System instructions shared by every spell-check request."""
    system, _ = render_prompts(*SPELLCHECK_TEMPLATES, context=_check_context(""))
    return system


def terminology_system_prompt() -> str:
    system, _ = render_prompts(*TERMINOLOGY_TEMPLATES)
    return system


def build_check_prompts(
    text: str, context: str = "", terminology: Iterable[str] = ()
) -> list[str]:
    """Return the user prompts for checking ``text``."""
    _, user = render_prompts(
        *SPELLCHECK_TEMPLATES, context=_check_context(text, context, terminology)
    )
    return [user]


def parse_issue_payload(payload: Any) -> list[Issue]:
    """Normalise a parsed model response into generative issues.

    Accepts ``{"errors": [...]}`` or a bare array. Objects missing a word or
    a suggestion are dropped; a payload of any other shape raises
    :class:`LLMParseError`.
    """
    if isinstance(payload, dict) and isinstance(payload.get("errors"), list):
        items = payload["errors"]
    elif isinstance(payload, list):
        items = payload
    else:
        raise LLMParseError(
            "Expected an errors array in the model response",
            response_text=str(payload),
        )

    issues: list[Issue] = []
    for item in items:
        try:
            issues.append(
                Issue.from_llm_response(item, issue_id=f"err-{len(issues)}")
            )
        except ValueError as exc:
            LOGGER.debug("Dropping invalid issue object %r: %s", item, exc)
    return issues


def _terminology_items(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("terminology", "terms"):
            if isinstance(payload.get(key), list):
                return payload[key]
    return []


class GenerativeChecker:
    """Ask a language model for spelling, terminology and grammar issues.

    ``service`` must be built with :func:`check_system_prompt`;
    ``terminology_service`` with :func:`terminology_system_prompt`.
    """

    def __init__(
        self,
        service: LLMService,
        *,
        terminology_service: LLMService | None = None,
        min_text_length: int = DEFAULT_MIN_TEXT_LENGTH,
    ) -> None:
        self._service = service
        self._terminology_service = terminology_service
        self._min_text_length = min_text_length

    @property
    def is_configured(self) -> bool:
        return self._service.is_configured

    @property
    def can_extract_terminology(self) -> bool:
        return (
            self._terminology_service is not None
            and self._terminology_service.is_configured
        )

    def _too_short(self, text: str) -> bool:
        return len(text.strip()) < self._min_text_length

    def check(
        self, text: str, context: str = "", terminology: Iterable[str] = ()
    ) -> GenerativeResult:
        if self._too_short(text):
            return GenerativeResult(skipped=True)

        payload = self._service.generate(
            build_check_prompts(text, context, terminology), filter_json=True
        )
        issues = parse_issue_payload(payload)
        LOGGER.info("Language model reported %d issue(s)", len(issues))
        return GenerativeResult(issues=issues)

    async def stream(
        self, text: str, context: str = "", terminology: Iterable[str] = ()
    ) -> AsyncIterator[Issue]:
        """Yield issues as the model's streamed response completes each one."""
        if self._too_short(text):
            return
        prompts = build_check_prompts(text, context, terminology)
        async for issue in extract_issues(self._service.stream(prompts)):
            yield issue

    def extract_terminology(self, slide_content: str) -> list[str]:
        """Return terms from ``slide_content`` the checker should not flag.

        Brand names, acronyms and jargon; an unparsable response yields an
        empty list.
        """
        if not slide_content or not slide_content.strip():
            return []
        if not self.can_extract_terminology:
            raise LLMProviderConfigurationError(
                "No LLM providers are configured for terminology extraction"
            )

        _, user = render_prompts(
            *TERMINOLOGY_TEMPLATES, context={"slide_content": slide_content.strip()}
        )
        try:
            payload = self._terminology_service.generate([user], filter_json=True)
        except LLMParseError as exc:
            LOGGER.warning("Could not parse terminology response: %s", exc)
            return []

        terms: list[str] = []
        for item in _terminology_items(payload):
            if isinstance(item, str) and item.strip() and item.strip() not in terms:
                terms.append(item.strip())
        return terms
