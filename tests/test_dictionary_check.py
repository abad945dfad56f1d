from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from notecheck.language_check import dictionary
from notecheck.language_check.dictionary import (
    LanguageToolOracle,
    SpellCheckerOracle,
    load_dictionary,
)
from notecheck.language_check.dictionary_check import (
    check_text,
    collect_custom_terms,
)
from notecheck.models import Origin


class FakeOracle:
    """Dictionary that knows a fixed set of misspellings."""

    def __init__(self, corrections: dict[str, list[str]]) -> None:
        self._corrections = corrections
        self.looked_up: list[str] = []

    def correct(self, word: str) -> bool:
        self.looked_up.append(word)
        return word.lower() not in self._corrections

    def suggest(self, word: str) -> list[str]:
        return list(self._corrections.get(word.lower(), []))


class BrokenOracle:
    def correct(self, word: str) -> bool:
        raise RuntimeError("dictionary offline")

    def suggest(self, word: str) -> list[str]:
        raise RuntimeError("dictionary offline")


class DummyMatch:
    def __init__(self, issue_type: str, replacements: list[str]) -> None:
        self.ruleId = "MORFOLOGIK_RULE_EN_US"
        self.ruleIssueType = issue_type
        self.replacements = replacements


class DummyTool:
    def __init__(self, matches: dict[str, list[DummyMatch]]) -> None:
        self._matches = matches
        self.captured_texts: list[str] = []
        self.closed = False

    def check(self, text: str) -> list[DummyMatch]:
        self.captured_texts.append(text)
        return self._matches.get(text, [])

    def close(self) -> None:
        self.closed = True


def test_end_to_end_scenario_without_generative_checker() -> None:
    text = "This is a tset of teh systme"
    oracle = FakeOracle({"tset": ["test"], "teh": ["the"], "systme": ["system"]})

    report = check_text(text, oracle=oracle)

    assert [issue.word for issue in report.errors] == ["tset", "teh", "systme"]
    assert [issue.suggestions for issue in report.errors] == [
        ("test",),
        ("the",),
        ("system",),
    ]
    assert all(issue.origin == Origin.DETERMINISTIC for issue in report.errors)
    assert [issue.issue_id for issue in report.errors] == ["err-0", "err-1", "err-2"]
    first = report.errors[0]
    assert first.position is not None
    assert text[first.position.start : first.position.end] == "tset"
    assert report.stats.total_words == 7
    assert report.stats.error_count == 3
    # "a" is skipped but still counts as correct
    assert report.stats.skipped == 1
    assert report.stats.correct_words == 4


def test_custom_terms_are_case_insensitive() -> None:
    oracle = FakeOracle({"acmecloud": ["accloud"], "teh": ["the"]})

    report = check_text("Acmecloud beats teh rest", ["ACMECLOUD"], oracle)

    assert [issue.word for issue in report.errors] == ["teh"]
    assert report.stats.custom_term_matches == 1
    assert "Acmecloud" not in oracle.looked_up


def test_default_terms_can_be_disabled() -> None:
    oracle = FakeOracle({"webinar": ["seminar"]})

    assert check_text("Join the webinar", oracle=oracle).errors == []
    report = check_text("Join the webinar", oracle=oracle, include_default_terms=False)
    assert [issue.word for issue in report.errors] == ["webinar"]


def test_skipped_words_never_reach_the_oracle() -> None:
    oracle = FakeOracle({"kpi": ["kip"]})

    check_text("The KPI for iPhone sales", oracle=oracle, include_default_terms=False)

    assert "KPI" not in oracle.looked_up
    assert "iPhone" not in oracle.looked_up


def test_repeated_misspelling_reported_once() -> None:
    oracle = FakeOracle({"teh": ["the"]})

    report = check_text("teh cat and Teh dog", oracle=oracle)

    assert len(report.errors) == 1
    assert report.errors[0].word == "teh"
    assert report.stats.error_count == 1


def test_suggestions_are_limited() -> None:
    oracle = FakeOracle({"teh": ["the", "ten", "tea", "tech", "ted", "tee", "tel"]})

    report = check_text("teh", oracle=oracle, max_suggestions=3)

    assert report.errors[0].suggestions == ("the", "ten", "tea")


def test_no_oracle_means_every_word_is_correct() -> None:
    report = check_text("Thiss is cmpletely wrnog")

    assert report.errors == []
    assert report.stats.correct_words == report.stats.total_words == 4


def test_oracle_failures_are_logged_and_treated_as_correct(caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="notecheck.language_check.dictionary_check"):
        report = check_text("broken dictionary", oracle=BrokenOracle())

    assert report.errors == []
    assert "Dictionary lookup failed" in caplog.text


def test_report_to_dict() -> None:
    report = check_text("teh", oracle=FakeOracle({"teh": ["the"]}))
    payload = report.to_dict()

    assert payload["stats"]["error_count"] == 1
    assert payload["errors"][0]["word"] == "teh"
    assert payload["errors"][0]["position"] == {"start": 0, "end": 3}


def test_collect_custom_terms_strips_and_lowercases() -> None:
    terms = collect_custom_terms(["  FooCloud ", "", None], include_defaults=False)  # type: ignore[list-item]
    assert terms == {"foocloud"}


def test_languagetool_oracle_uses_misspelling_matches_and_caches() -> None:
    tool = DummyTool(
        {
            "teh": [
                DummyMatch("grammar", ["ignored"]),
                DummyMatch("misspelling", ["the", "tech"]),
            ]
        }
    )
    oracle = LanguageToolOracle(tool)

    assert oracle.correct("teh") is False
    assert oracle.suggest("teh") == ["the", "tech"]
    assert oracle.correct("the") is True
    assert tool.captured_texts == ["teh", "the"]

    oracle.close()
    assert tool.closed


def test_languagetool_oracle_retries_transient_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(dictionary.time, "sleep", lambda _delay: None)
    calls: list[str] = []

    class FlakyTool:
        def check(self, text: str) -> list[DummyMatch]:
            calls.append(text)
            if len(calls) == 1:
                raise ConnectionError("server restarting")
            return []

    oracle = LanguageToolOracle(FlakyTool(), max_retries=2)

    assert oracle.correct("fine") is True
    assert calls == ["fine", "fine"]


def test_spellchecker_oracle_suggests_corrections() -> None:
    oracle = SpellCheckerOracle("en")

    assert oracle.correct("hello") is True
    assert oracle.correct("hapenning") is False
    assert oracle.suggest("hapenning")[0] == "happening"
    assert oracle.suggest("Hapenning")[0] == "Happening"


def test_spellchecker_oracle_loads_extra_words(tmp_path: Path) -> None:
    words = tmp_path / "words.txt"
    words.write_text("zorblatt\n", encoding="utf-8")

    oracle = SpellCheckerOracle("en", extra_words_path=words)

    assert oracle.correct("zorblatt") is True


def test_load_dictionary_none_backend() -> None:
    assert load_dictionary("none") is None


def test_load_dictionary_unknown_backend() -> None:
    with pytest.raises(ValueError, match="Unknown dictionary backend"):
        load_dictionary("hunspell")


def test_load_dictionary_failure_degrades_to_none(monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom(*args: object, **kwargs: object) -> None:
        raise OSError("dictionary file missing")

    monkeypatch.setattr(dictionary, "SpellCheckerOracle", _boom)

    assert load_dictionary("spellchecker") is None
