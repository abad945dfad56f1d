from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Sequence

from .provider import (
    LLMProvider,
    LLMProviderConfigurationError,
    LLMProviderError,
    LLMQuotaError,
    ProviderReporter,
    ProviderStatus,
)

LOGGER = logging.getLogger(__name__)


class LLMService:
    """Facade that routes LLM requests across a priority-ordered provider list.

    Constructed once at application startup and passed to whatever needs it;
    tests hand in their own providers.
    """

    def __init__(
        self,
        providers: Sequence[LLMProvider],
        *,
        reporter: ProviderReporter | None = None,
    ) -> None:
        self._providers = list(providers)
        self._reporter = reporter

    @property
    def is_configured(self) -> bool:
        return bool(self._providers)

    def provider_order(self) -> list[str]:
        """Names of the providers, in the order they are tried."""

        return [provider.name for provider in self._providers]

    def health_check(self) -> list[tuple[str, bool]]:
        """Pair each provider name with its health check result."""

        return [(provider.name, provider.health_check()) for provider in self._providers]

    def generate(
        self,
        user_prompts: Sequence[str],
        *,
        filter_json: bool = False,
    ) -> Any:
        """Return the first provider response, moving on only past quota errors."""

        self._require_providers()
        last_error: LLMQuotaError | None = None
        for provider in self._providers:
            try:
                value = provider.generate(user_prompts, filter_json=filter_json)
                self._report(provider.name, ProviderStatus.SUCCESS)
                return value
            except LLMQuotaError as exc:
                last_error = exc
                self._report(provider.name, ProviderStatus.QUOTA, exc)
                continue
            except LLMProviderError as exc:
                self._report(provider.name, ProviderStatus.FAILURE, exc)
                raise
        raise LLMQuotaError("All providers exceeded quota") from last_error

    async def stream(self, user_prompts: Sequence[str]) -> AsyncIterator[str]:
        """Stream from the first provider that accepts the request.

        Falling back is only possible before the first fragment has been
        yielded; a quota error mid-stream is raised to the caller.
        """

        self._require_providers()
        last_error: LLMQuotaError | None = None
        for provider in self._providers:
            started = False
            try:
                async for fragment in provider.stream(user_prompts):
                    started = True
                    yield fragment
            except LLMQuotaError as exc:
                if started:
                    self._report(provider.name, ProviderStatus.FAILURE, exc)
                    raise
                last_error = exc
                self._report(provider.name, ProviderStatus.QUOTA, exc)
                continue
            except LLMProviderError as exc:
                self._report(provider.name, ProviderStatus.FAILURE, exc)
                raise
            self._report(provider.name, ProviderStatus.SUCCESS)
            return
        raise LLMQuotaError("All providers exceeded quota") from last_error

    def _require_providers(self) -> None:
        if not self._providers:
            raise LLMProviderConfigurationError("No LLM providers are configured")

    def _report(
        self,
        provider_name: str,
        status: ProviderStatus,
        error: Exception | None = None,
    ) -> None:
        if status is ProviderStatus.SUCCESS:
            LOGGER.debug("Provider %s succeeded", provider_name)
        else:
            LOGGER.warning("Provider %s reported %s: %s", provider_name, status.value, error)
        if self._reporter is None:
            return
        self._reporter(provider_name, status, error)
