from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Protocol, Sequence

ProviderReporter = Callable[[str, "ProviderStatus", Exception | None], None]


class ProviderStatus(str, Enum):
    """Outcome of one provider attempt, passed to the service reporter."""

    SUCCESS = "success"
    QUOTA = "quota"
    FAILURE = "failure"


class LLMProviderError(Exception):
    """Base class for errors raised by model providers."""


class LLMQuotaError(LLMProviderError):
    """The provider refused the call for quota or rate-limit reasons."""


class LLMProviderConfigurationError(LLMProviderError):
    """The provider is missing credentials or cannot be constructed."""


_DETAIL_LIMIT = 2000


def _clip(text: str) -> str:
    if len(text) <= _DETAIL_LIMIT:
        return text
    return f"{text[:_DETAIL_LIMIT]}... [truncated]"


class LLMParseError(LLMProviderError):
    """Model output that could not be turned into the expected JSON.

    Keeps the raw ``response_text`` and the ``prompts`` that produced it so
    the logged message shows what the model actually returned.
    """

    def __init__(
        self,
        message: str,
        *,
        response_text: str | None = None,
        prompts: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.response_text = response_text
        self.prompts = prompts

    def __str__(self) -> str:
        message = super().__str__()
        if self.response_text is not None:
            message += f"\n--- Model output ---\n{_clip(self.response_text)}"
        if self.prompts:
            prompt_text = _clip("\n".join(self.prompts))
            message += f"\n--- Prompts ---\n{prompt_text}"
        return message


def resolve_system_prompt(system_prompt: str | Path) -> str:
    """Return prompt text from either a direct string or a path to a file."""
    if not isinstance(system_prompt, (str, Path)):
        raise TypeError(
            f"system_prompt must be str or Path, got {type(system_prompt)}"
        )
    # Multi-line or long strings are always treated as the prompt itself
    if isinstance(system_prompt, str) and (
        "\n" in system_prompt or len(system_prompt) >= 500
    ):
        return system_prompt
    try:
        prompt_path = Path(system_prompt)
        if prompt_path.is_file():
            return prompt_path.read_text(encoding="utf-8")
    except (OSError, ValueError):
        pass
    return str(system_prompt)


def is_rate_limit_error(exc: BaseException) -> bool:
    """Return True for SDK exceptions that carry an HTTP 429 status."""
    for attr in ("status_code", "code"):
        if getattr(exc, attr, None) == 429:
            return True
    return False


class LLMProvider(Protocol):
    """What the service needs from a model backend."""

    name: str

    def generate(
        self,
        user_prompts: Sequence[str],
        *,
        filter_json: bool = False,
    ) -> Any:
        """Return the complete response, parsed as JSON when filter_json is set."""
        ...

    def stream(self, user_prompts: Sequence[str]) -> AsyncIterator[str]:
        """Yield the response text fragment by fragment as it is generated."""
        ...

    def health_check(self) -> bool:
        """Return True when the provider looks usable."""
        ...


class ProviderFactory(Protocol):
    def __call__(
        self,
        *,
        system_prompt: str | Path,
        filter_json: bool,
        dotenv_path: str | Path | None,
    ) -> LLMProvider: ...
