"""Deterministic checker package exports.

This package exposes the key helpers used by other parts of the project
so callers can import from ``notecheck.language_check``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    # Resolved lazily at runtime by __getattr__ below
    from .dictionary import (
        DictionaryOracle,
        LanguageToolManager,
        LanguageToolOracle,
        SpellCheckerOracle,
        load_dictionary,
    )
    from .dictionary_check import (
        DictionaryReport,
        DictionaryStats,
        check_text,
        collect_custom_terms,
    )
    from .language_check_config import (
        DEFAULT_CUSTOM_TERMS,
        DEFAULT_DISABLED_RULES,
        DEFAULT_MAX_SUGGESTIONS,
    )
    from .tokenizer import (
        Token,
        context_snippet,
        find_word_position,
        find_word_positions,
        should_skip_word,
        tokenize,
    )

__all__ = [
    "DictionaryOracle",
    "LanguageToolManager",
    "LanguageToolOracle",
    "SpellCheckerOracle",
    "load_dictionary",
    "DictionaryReport",
    "DictionaryStats",
    "check_text",
    "collect_custom_terms",
    "DEFAULT_CUSTOM_TERMS",
    "DEFAULT_DISABLED_RULES",
    "DEFAULT_MAX_SUGGESTIONS",
    "Token",
    "context_snippet",
    "find_word_position",
    "find_word_positions",
    "should_skip_word",
    "tokenize",
]

_LAZY_EXPORTS = {
    # attribute -> (module, attribute)
    "DictionaryOracle": (".dictionary", "DictionaryOracle"),
    "LanguageToolManager": (".dictionary", "LanguageToolManager"),
    "LanguageToolOracle": (".dictionary", "LanguageToolOracle"),
    "SpellCheckerOracle": (".dictionary", "SpellCheckerOracle"),
    "load_dictionary": (".dictionary", "load_dictionary"),
    "DictionaryReport": (".dictionary_check", "DictionaryReport"),
    "DictionaryStats": (".dictionary_check", "DictionaryStats"),
    "check_text": (".dictionary_check", "check_text"),
    "collect_custom_terms": (".dictionary_check", "collect_custom_terms"),
    "DEFAULT_CUSTOM_TERMS": (".language_check_config", "DEFAULT_CUSTOM_TERMS"),
    "DEFAULT_DISABLED_RULES": (".language_check_config", "DEFAULT_DISABLED_RULES"),
    "DEFAULT_MAX_SUGGESTIONS": (".language_check_config", "DEFAULT_MAX_SUGGESTIONS"),
    "Token": (".tokenizer", "Token"),
    "context_snippet": (".tokenizer", "context_snippet"),
    "find_word_position": (".tokenizer", "find_word_position"),
    "find_word_positions": (".tokenizer", "find_word_positions"),
    "should_skip_word": (".tokenizer", "should_skip_word"),
    "tokenize": (".tokenizer", "tokenize"),
}


def __getattr__(name: str):
    """Lazily import and return exported attributes.

    The dictionary backends import language_tool_python and pyspellchecker;
    deferring them keeps ``import notecheck.language_check.tokenizer`` light.
    """

    if name in _LAZY_EXPORTS:
        module_name, attr = _LAZY_EXPORTS[name]
        from importlib import import_module

        mod = import_module(f"notecheck.language_check{module_name}")
        value = getattr(mod, attr)
        globals()[name] = value
        return value
    raise AttributeError(name)


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(_LAZY_EXPORTS.keys()))
