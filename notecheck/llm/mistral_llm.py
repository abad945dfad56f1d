from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, AsyncIterator, Sequence, cast

from dotenv import load_dotenv
from mistralai import Mistral, models

from .json_utils import parse_json_response
from .provider import (
    LLMParseError,
    LLMProviderConfigurationError,
    LLMQuotaError,
    is_rate_limit_error,
    resolve_system_prompt,
)


class MistralLLM:
    """Wrapper around the Mistral SDK with system instructions.

    Single responses go through ``beta.conversations.start``; streaming uses
    ``chat.stream_async`` since conversations do not expose token deltas in
    the same shape.
    """

    name = "mistral"
    MODEL = "mistral-small-latest"
    TEMPERATURE = 0.2

    def __init__(
        self,
        system_prompt: str | Path,
        *,
        client: Mistral | None = None,
        dotenv_path: str | Path | None = None,
        filter_json: bool = False,
        model: str | None = None,
    ) -> None:
        self._system_prompt = resolve_system_prompt(system_prompt)

        if dotenv_path is not None:
            # Existing environment variables take precedence over the file
            load_dotenv(dotenv_path=Path(dotenv_path))
        else:
            load_dotenv()

        # Mistral SDK does not read MISTRAL_API_KEY from the environment itself
        if client is None:
            api_key = os.environ.get("MISTRAL_API_KEY")
            if not api_key:
                raise LLMProviderConfigurationError(
                    "MISTRAL_API_KEY environment variable is required but not set. "
                    "Please set it in your .env file or environment."
                )
            client = Mistral(api_key=api_key)
        self._client = client
        self._filter_json = filter_json
        self._model = model or os.environ.get("MISTRAL_MODEL") or self.MODEL

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @property
    def model(self) -> str:
        return self._model

    def generate(
        self,
        user_prompts: Sequence[str],
        *,
        filter_json: bool | None = None,
    ) -> Any:
        if not user_prompts:
            raise ValueError("user_prompts must not be empty.")

        apply_filter = self._filter_json if filter_json is None else filter_json

        inputs = cast(
            models.ConversationInputs,
            [
                models.MessageInputEntry(
                    role="user",
                    content="\n".join(user_prompts),
                )
            ],
        )

        try:
            response = self._client.beta.conversations.start(
                inputs=inputs,
                instructions=self._system_prompt,
                model=self._model,
                completion_args={"temperature": self.TEMPERATURE},
                tools=[],
            )
        except Exception as exc:
            if is_rate_limit_error(exc):
                raise LLMQuotaError(
                    "Mistral provider: quota exhausted or rate limited"
                ) from exc
            raise

        if not apply_filter:
            return response

        return self._parse_response_json(response, prompts=list(user_prompts))

    async def stream(self, user_prompts: Sequence[str]) -> AsyncIterator[str]:
        """Yield content deltas from ``chat.stream_async``."""
        if not user_prompts:
            raise ValueError("user_prompts must not be empty.")

        messages = [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": "\n".join(user_prompts)},
        ]
        try:
            response = await self._client.chat.stream_async(
                model=self._model,
                messages=messages,
                temperature=self.TEMPERATURE,
            )
            async for event in response:
                content = self._delta_content(event)
                if content:
                    yield content
        except Exception as exc:
            if is_rate_limit_error(exc):
                raise LLMQuotaError(
                    "Mistral provider: quota exhausted or rate limited"
                ) from exc
            raise

    def health_check(self) -> bool:
        return True

    @staticmethod
    def _delta_content(event: Any) -> str | None:
        data = getattr(event, "data", event)
        choices = getattr(data, "choices", None)
        if not choices:
            return None
        delta = getattr(choices[0], "delta", None)
        content = getattr(delta, "content", None)
        # Content chunks may arrive as a list of typed parts
        if isinstance(content, list):
            return "".join(
                part if isinstance(part, str) else getattr(part, "text", "") or ""
                for part in content
            )
        return content if isinstance(content, str) else None

    @staticmethod
    def _response_text(response: Any) -> str | None:
        # Conversations return `outputs` entries; chat completions `choices`
        for entry in getattr(response, "outputs", None) or ():
            content = (
                entry.get("content") if isinstance(entry, dict) else getattr(entry, "content", None)
            )
            if isinstance(content, str) and content.strip():
                return content
        choices = getattr(response, "choices", None)
        if choices:
            content = getattr(getattr(choices[0], "message", None), "content", None)
            if isinstance(content, str):
                return content
        return None

    def _parse_response_json(
        self, response: Any, prompts: list[str] | None = None
    ) -> Any:
        """Parse the JSON payload of a conversation or chat response.

        Raises:
            LLMParseError: When no text content is found or it does not parse.
        """
        text = self._response_text(response)
        if text is None:
            raise LLMParseError(
                "Mistral response has no text content to parse",
                response_text=str(response),
                prompts=prompts,
            )

        try:
            return parse_json_response(text)
        except (ValueError, json.JSONDecodeError) as exc:
            raise LLMParseError(str(exc), response_text=text, prompts=prompts) from exc
