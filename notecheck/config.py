"""Runtime settings read from the environment (and ``.env``)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from notecheck.language_check.language_check_config import DEFAULT_MAX_SUGGESTIONS
from notecheck.review.generative_check import DEFAULT_MIN_TEXT_LENGTH

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _read_int_env(var_name: str, *, default: int) -> int:
    try:
        raw = os.environ.get(var_name)
        if raw is None or not raw.strip():
            return default
        return int(raw)
    except ValueError:
        return default


def _read_bool_env(var_name: str, *, default: bool) -> bool:
    raw = os.environ.get(var_name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


def _read_str_env(var_name: str) -> str | None:
    raw = os.environ.get(var_name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass
class Settings:
    """Configuration for the checker, the HTTP server and the CLI."""

    # Dictionary
    dictionary_backend: str = "spellchecker"
    language: str = "en"
    extra_words_path: Path | None = None
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS

    # Language model
    ai_enabled: bool = True
    min_text_length: int = DEFAULT_MIN_TEXT_LENGTH
    llm_primary: str | None = None
    llm_fallback: str | None = None

    # Server
    host: str = "127.0.0.1"
    port: int = 3000

    # Logging
    log_level: str = "INFO"

    dotenv_path: Path | None = None

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> "Settings":
        """Load ``.env`` without overriding existing variables, then read them."""
        if dotenv_path is not None:
            load_dotenv(dotenv_path=Path(dotenv_path))
        else:
            load_dotenv()

        extra_words = _read_str_env("NOTECHECK_EXTRA_WORDS")
        return cls(
            dictionary_backend=(
                _read_str_env("NOTECHECK_DICTIONARY_BACKEND") or "spellchecker"
            ).lower(),
            language=_read_str_env("NOTECHECK_LANGUAGE") or "en",
            extra_words_path=Path(extra_words) if extra_words else None,
            max_suggestions=max(
                1, _read_int_env("NOTECHECK_MAX_SUGGESTIONS", default=DEFAULT_MAX_SUGGESTIONS)
            ),
            ai_enabled=_read_bool_env("NOTECHECK_AI_ENABLED", default=True),
            min_text_length=max(
                0,
                _read_int_env(
                    "NOTECHECK_MIN_TEXT_LENGTH", default=DEFAULT_MIN_TEXT_LENGTH
                ),
            ),
            llm_primary=_read_str_env("LLM_PRIMARY"),
            llm_fallback=_read_str_env("LLM_FALLBACK"),
            host=_read_str_env("NOTECHECK_HOST") or "127.0.0.1",
            port=_read_int_env("NOTECHECK_PORT", default=3000),
            log_level=(_read_str_env("NOTECHECK_LOG_LEVEL") or "INFO").upper(),
            dotenv_path=Path(dotenv_path) if dotenv_path is not None else None,
        )

    def fallback_providers(self) -> list[str] | None:
        if not self.llm_fallback:
            return None
        return [name.strip() for name in self.llm_fallback.split(",") if name.strip()]
