from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

from .gemini_llm import GeminiLLM
from .mistral_llm import MistralLLM
from .provider import LLMProvider, LLMProviderConfigurationError, ProviderFactory

LOGGER = logging.getLogger(__name__)


def _gemini_factory(
    *,
    system_prompt: str | Path,
    filter_json: bool,
    dotenv_path: str | Path | None,
) -> LLMProvider:
    return GeminiLLM(
        system_prompt=system_prompt,
        filter_json=filter_json,
        dotenv_path=dotenv_path,
    )


def _mistral_factory(
    *,
    system_prompt: str | Path,
    filter_json: bool,
    dotenv_path: str | Path | None,
) -> LLMProvider:
    return MistralLLM(
        system_prompt=system_prompt,
        filter_json=filter_json,
        dotenv_path=dotenv_path,
    )


_PROVIDER_FACTORIES: dict[str, ProviderFactory] = {
    "gemini": _gemini_factory,
    "mistral": _mistral_factory,
}


def available_providers() -> list[str]:
    return list(_PROVIDER_FACTORIES)


def _split_names(value: str | None) -> list[str]:
    if not value:
        return []
    return [chunk.strip().lower() for chunk in value.split(",") if chunk.strip()]


def create_provider_chain(
    *,
    system_prompt: str | Path,
    filter_json: bool = False,
    dotenv_path: str | Path | None = None,
    primary: str | None = None,
    fallbacks: Sequence[str] | None = None,
    skip_unconfigured: bool = False,
    factories: dict[str, ProviderFactory] | None = None,
) -> list[LLMProvider]:
    """Return configured providers honoring environment/priority hints.

    With ``skip_unconfigured`` a provider whose construction fails for lack
    of credentials is left out of the chain instead of aborting; an empty
    chain means the generative checker is unavailable.
    """

    registry = _PROVIDER_FACTORIES if factories is None else factories
    order: list[str] = []
    seen: set[str] = set()

    # LLM_PRIMARY/LLM_FALLBACK may live in the dotenv file
    if dotenv_path is not None:
        load_dotenv(dotenv_path=str(dotenv_path), override=True)

    candidates: list[str] = []
    if primary:
        candidates.extend(_split_names(primary))
    else:
        candidates.extend(_split_names(os.environ.get("LLM_PRIMARY")))

    if fallbacks:
        candidates.extend(name.lower() for name in fallbacks)
    else:
        candidates.extend(_split_names(os.environ.get("LLM_FALLBACK")))

    if not candidates:
        candidates = list(registry.keys())

    for name in candidates:
        if name in seen:
            continue
        seen.add(name)
        if name not in registry:
            raise ValueError(f"Unknown LLM provider '{name}'")
        order.append(name)

    providers: list[LLMProvider] = []
    for name in order:
        try:
            provider = registry[name](
                system_prompt=system_prompt,
                filter_json=filter_json,
                dotenv_path=dotenv_path,
            )
        except LLMProviderConfigurationError as exc:
            if not skip_unconfigured:
                raise
            LOGGER.warning("Skipping LLM provider %s: %s", name, exc)
            continue
        providers.append(provider)
    return providers
