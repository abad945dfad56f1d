from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, AsyncIterator, Sequence

from dotenv import load_dotenv
from google import genai
from google.genai import types

from .json_utils import parse_json_response
from .provider import (
    LLMParseError,
    LLMProviderConfigurationError,
    LLMQuotaError,
    is_rate_limit_error,
    resolve_system_prompt,
)

LOGGER = logging.getLogger(__name__)


def _env_number(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


class GeminiLLM:
    """Gemini client bound to one system instruction.

    ``system_prompt`` is the instruction text or a path to a file holding it.
    Rate-limited calls are retried ``max_retries`` times (GEMINI_MAX_RETRIES)
    with exponential backoff starting at ``min_request_interval`` seconds.
    """

    name = "gemini"
    MODEL = "gemini-2.5-flash"
    # Spell checking is latency bound; thinking adds seconds for little gain.
    THINKING_BUDGET = 0
    TEMPERATURE = 0.0

    def __init__(
        self,
        system_prompt: str | Path,
        *,
        client: genai.Client | None = None,
        dotenv_path: str | Path | None = None,
        filter_json: bool = False,
        model: str | None = None,
        max_retries: int | None = None,
        min_request_interval: float | None = None,
    ) -> None:
        self._system_prompt = resolve_system_prompt(system_prompt)

        if dotenv_path is not None:
            load_dotenv(dotenv_path=Path(dotenv_path))
        else:
            load_dotenv()

        if client is None:
            if not (os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")):
                raise LLMProviderConfigurationError(
                    "GEMINI_API_KEY (or GOOGLE_API_KEY) is not set; add it to .env "
                    "or the environment."
                )
            client = genai.Client()
        self._client = client
        self._filter_json = filter_json
        self._model = model or os.environ.get("GEMINI_MODEL") or self.MODEL

        if max_retries is None:
            max_retries = int(_env_number("GEMINI_MAX_RETRIES", 0))
        if min_request_interval is None:
            min_request_interval = _env_number("GEMINI_MIN_REQUEST_INTERVAL", 0.0)
        self._max_retries = max(0, max_retries)
        self._min_request_interval = max(0.0, min_request_interval)

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @property
    def model(self) -> str:
        return self._model

    def _build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=self._system_prompt,
            thinking_config=types.ThinkingConfig(thinking_budget=self.THINKING_BUDGET),
            temperature=self.TEMPERATURE,
            response_mime_type="application/json",
        )

    def generate(
        self,
        user_prompts: Sequence[str],
        *,
        filter_json: bool | None = None,
    ) -> Any:
        if not user_prompts:
            raise ValueError("user_prompts must not be empty.")

        apply_filter = self._filter_json if filter_json is None else filter_json
        contents = "\n".join(user_prompts)
        config = self._build_config()

        # Retry rate-limit errors with exponential backoff
        for attempt in range(self._max_retries + 1):
            try:
                response = self._client.models.generate_content(
                    model=self._model,
                    contents=contents,
                    config=config,
                )
            except Exception as exc:
                # google.genai.errors.ClientError carries the HTTP status in `code`
                if not is_rate_limit_error(exc):
                    raise
                if attempt >= self._max_retries:
                    raise LLMQuotaError(
                        "Gemini provider: rate limited (exhausted retries)"
                    ) from exc
                backoff_delay = max(self._min_request_interval, 0.1) * (2**attempt)
                LOGGER.warning(
                    "Gemini rate limited (attempt %d); retrying in %.1f second(s)",
                    attempt + 1,
                    backoff_delay,
                )
                time.sleep(backoff_delay)
                continue

            if not apply_filter:
                return response
            return self._parse_response_json(response, prompts=list(user_prompts))

    async def stream(self, user_prompts: Sequence[str]) -> AsyncIterator[str]:
        """Yield response text chunks from ``generate_content_stream``."""
        if not user_prompts:
            raise ValueError("user_prompts must not be empty.")

        try:
            response = await self._client.aio.models.generate_content_stream(
                model=self._model,
                contents="\n".join(user_prompts),
                config=self._build_config(),
            )
            async for chunk in response:
                text = getattr(chunk, "text", None)
                if text:
                    yield text
        except Exception as exc:
            if is_rate_limit_error(exc):
                raise LLMQuotaError("Gemini provider: quota exhausted or rate limited") from exc
            raise

    def health_check(self) -> bool:
        return True

    def _parse_response_json(
        self, response: Any, prompts: list[str] | None = None
    ) -> Any:
        text = getattr(response, "text", None)
        if not isinstance(text, str):
            raise LLMParseError(
                "Gemini response has no text to parse",
                response_text=str(response),
                prompts=prompts,
            )
        try:
            return parse_json_response(text)
        except (ValueError, json.JSONDecodeError) as exc:
            raise LLMParseError(str(exc), response_text=text, prompts=prompts) from exc
