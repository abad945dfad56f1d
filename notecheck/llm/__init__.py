"""Generative model clients and the provider fallback facade."""

from .provider import (
    LLMParseError,
    LLMProvider,
    LLMProviderConfigurationError,
    LLMProviderError,
    LLMQuotaError,
    ProviderStatus,
)
from .service import LLMService

__all__ = [
    "LLMParseError",
    "LLMProvider",
    "LLMProviderConfigurationError",
    "LLMProviderError",
    "LLMQuotaError",
    "LLMService",
    "ProviderStatus",
]
