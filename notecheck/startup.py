"""Build the shared checker from settings.

Called once by the server lifespan and by the CLI; everything returned here
lives for the rest of the process.
"""

from __future__ import annotations

import logging

from notecheck.config import Settings
from notecheck.language_check.dictionary import load_dictionary
from notecheck.llm.provider_registry import create_provider_chain
from notecheck.llm.service import LLMService
from notecheck.review.generative_check import (
    GenerativeChecker,
    check_system_prompt,
    terminology_system_prompt,
)
from notecheck.review.hybrid import HybridChecker

LOGGER = logging.getLogger(__name__)


def _build_service(settings: Settings, system_prompt: str) -> LLMService:
    providers = create_provider_chain(
        system_prompt=system_prompt,
        filter_json=True,
        dotenv_path=settings.dotenv_path,
        primary=settings.llm_primary,
        fallbacks=settings.fallback_providers(),
        skip_unconfigured=True,
    )
    return LLMService(providers)


def build_generative_checker(settings: Settings) -> GenerativeChecker | None:
    if not settings.ai_enabled:
        LOGGER.info("Language model checks disabled by configuration")
        return None

    service = _build_service(settings, check_system_prompt())
    if not service.is_configured:
        LOGGER.warning(
            "No LLM provider has credentials; running dictionary checks only"
        )
        return None
    LOGGER.info("LLM providers: %s", ", ".join(service.provider_order()))
    return GenerativeChecker(
        service,
        terminology_service=_build_service(settings, terminology_system_prompt()),
        min_text_length=settings.min_text_length,
    )


def build_checker(settings: Settings) -> HybridChecker:
    oracle = load_dictionary(
        settings.dictionary_backend,
        language=settings.language,
        extra_words_path=settings.extra_words_path,
    )
    return HybridChecker(
        oracle,
        build_generative_checker(settings),
        max_suggestions=settings.max_suggestions,
    )
