from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from notecheck.config import Settings

_VARIABLES = (
    "NOTECHECK_DICTIONARY_BACKEND",
    "NOTECHECK_LANGUAGE",
    "NOTECHECK_EXTRA_WORDS",
    "NOTECHECK_MAX_SUGGESTIONS",
    "NOTECHECK_AI_ENABLED",
    "NOTECHECK_MIN_TEXT_LENGTH",
    "NOTECHECK_HOST",
    "NOTECHECK_PORT",
    "NOTECHECK_LOG_LEVEL",
    "LLM_PRIMARY",
    "LLM_FALLBACK",
)


@pytest.fixture
def empty_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for name in _VARIABLES:
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / ".env"
    path.write_text("", encoding="utf-8")
    return path


def test_defaults(empty_dotenv: Path) -> None:
    settings = Settings.from_env(empty_dotenv)

    assert settings.dictionary_backend == "spellchecker"
    assert settings.language == "en"
    assert settings.ai_enabled is True
    assert settings.min_text_length == 10
    assert (settings.host, settings.port) == ("127.0.0.1", 3000)
    assert settings.log_level == "INFO"
    assert settings.fallback_providers() is None
    assert settings.dotenv_path == empty_dotenv


def test_reads_environment(empty_dotenv: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTECHECK_DICTIONARY_BACKEND", "LanguageTool")
    monkeypatch.setenv("NOTECHECK_EXTRA_WORDS", "/tmp/words.txt")
    monkeypatch.setenv("NOTECHECK_MAX_SUGGESTIONS", "3")
    monkeypatch.setenv("NOTECHECK_AI_ENABLED", "off")
    monkeypatch.setenv("NOTECHECK_PORT", "8080")
    monkeypatch.setenv("NOTECHECK_LOG_LEVEL", "debug")
    monkeypatch.setenv("LLM_PRIMARY", "mistral")
    monkeypatch.setenv("LLM_FALLBACK", "gemini, ,other")

    settings = Settings.from_env(empty_dotenv)

    assert settings.dictionary_backend == "languagetool"
    assert settings.extra_words_path == Path("/tmp/words.txt")
    assert settings.max_suggestions == 3
    assert settings.ai_enabled is False
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.llm_primary == "mistral"
    assert settings.fallback_providers() == ["gemini", "other"]


def test_invalid_values_use_defaults(empty_dotenv: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTECHECK_PORT", "not-a-port")
    monkeypatch.setenv("NOTECHECK_AI_ENABLED", "maybe")
    monkeypatch.setenv("NOTECHECK_MAX_SUGGESTIONS", "0")

    settings = Settings.from_env(empty_dotenv)

    assert settings.port == 3000
    assert settings.ai_enabled is True
    assert settings.max_suggestions == 1


def test_dotenv_does_not_override_environment(
    empty_dotenv: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    empty_dotenv.write_text("NOTECHECK_PORT=9000\n", encoding="utf-8")
    monkeypatch.setenv("NOTECHECK_PORT", "8000")

    settings = Settings.from_env(empty_dotenv)

    assert settings.port == 8000
